"""
Schémas Pydantic pour le module Equipe.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.security.views import UtilisateurVue
from app.services.formation.status import FormationStatus


class EquipeStatistiques(BaseModel):
    """Indicateurs de conformité d'une équipe."""
    equipe_id: int
    nom: str
    code: Optional[str] = None
    member_count: int
    valid_count: int
    warning_count: int
    expired_count: int
    mandatory_count: int
    compliance_rate: int = Field(..., ge=0, le=100)
    status: FormationStatus
    repartition: Dict[str, int] = Field(
        default_factory=dict, description="Pourcentage de formations par statut"
    )


class PortfolioStatistiques(BaseModel):
    """Indicateurs globaux sur les équipes listées."""
    total_teams: int
    total_members: int
    average_compliance: int
    compliant_teams: int
    at_risk_teams: int


class EquipeList(BaseModel):
    """Équipes visibles par l'appelant et indicateurs globaux."""
    equipes: List[EquipeStatistiques]
    statistiques: PortfolioStatistiques


class ResponsableRef(BaseModel):
    """Responsable d'équipe (identité seule)."""
    id: int
    nom: str
    prenom: str

    model_config = ConfigDict(from_attributes=True)


class EquipeDetail(BaseModel):
    """Détail d'une équipe : membres filtrés selon l'appelant."""
    id: int
    nom: str
    code: Optional[str] = None
    actif: bool
    statistiques: EquipeStatistiques
    responsables: List[ResponsableRef]
    membres: List[UtilisateurVue]


# =============================================================================
# ÉCRITURE
# =============================================================================

def _check_disjoint(membres_ids: Optional[List[int]], responsables_ids: Optional[List[int]]) -> None:
    overlap = set(membres_ids or []) & set(responsables_ids or [])
    if overlap:
        raise ValueError(
            f"Un utilisateur ne peut pas être membre et responsable de la même équipe: {sorted(overlap)}"
        )


class EquipeCreate(BaseModel):
    """Schéma pour créer une équipe (admin uniquement)."""
    nom: str = Field(..., min_length=2, max_length=150, description="Nom de l'équipe")
    adresse: Optional[str] = Field(None, max_length=255, description="Adresse du chantier")
    membres_ids: List[int] = Field(default_factory=list)
    responsables_ids: List[int] = Field(default_factory=list)

    @field_validator("nom")
    @classmethod
    def strip_nom(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Le nom de l'équipe doit contenir au moins 2 caractères")
        return v

    @model_validator(mode="after")
    def check_disjoint(self) -> "EquipeCreate":
        _check_disjoint(self.membres_ids, self.responsables_ids)
        return self


class EquipeUpdate(BaseModel):
    """
    Schéma pour remplacer une équipe (PUT).

    `nom` et `actif` sont obligatoires. Les listes absentes laissent
    les membres ou responsables inchangés.
    """
    nom: str = Field(..., min_length=2, max_length=150)
    actif: bool
    adresse: Optional[str] = Field(None, max_length=255)
    membres_ids: Optional[List[int]] = None
    responsables_ids: Optional[List[int]] = None

    @field_validator("nom")
    @classmethod
    def strip_nom(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Le nom de l'équipe doit contenir au moins 2 caractères")
        return v

    @model_validator(mode="after")
    def check_disjoint(self) -> "EquipeUpdate":
        _check_disjoint(self.membres_ids, self.responsables_ids)
        return self
