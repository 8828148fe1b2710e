"""
Schémas Pydantic pour le module Utilisateur.

Les vues de lecture (publique / complète) sont définies dans
app.core.security.views ; ce module contient les schémas d'entrée
et les enveloppes de réponse.
"""
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from app.core.security.access import Role
from app.core.security.views import FormationView, UtilisateurVue
from app.services.formation.status import FormationStatus


# =============================================================================
# CHAMPS PAR GROUPE D'AUTORISATION
# =============================================================================

PROFILE_FIELDS = frozenset({"nom", "prenom", "email", "telephone", "adresse", "num_securite_sociale"})
ROLE_FIELDS = frozenset({"role"})
MEMBER_FIELDS = frozenset({"equipes_membre_ids"})
LEAD_FIELDS = frozenset({"equipes_responsable_ids"})


# =============================================================================
# UTILISATEUR SCHEMAS
# =============================================================================

class UtilisateurCreate(BaseModel):
    """
    Schéma pour créer un utilisateur (admin uniquement).

    L'utilisateur est créé dans l'entreprise de l'appelant.
    """
    nom: str = Field(..., min_length=2, max_length=100, description="Nom de famille")
    prenom: str = Field(..., min_length=2, max_length=100, description="Prénom")
    email: EmailStr = Field(..., description="Email (unique)")
    role: str = Field(Role.OUVRIER.value, description="Rôle : admin, representant ou ouvrier")
    telephone: Optional[str] = Field(None, max_length=20)
    adresse: Optional[str] = Field(None, max_length=255)
    num_securite_sociale: Optional[str] = Field(None, min_length=13, max_length=15)
    equipes_membre_ids: List[int] = Field(default_factory=list)
    equipes_responsable_ids: List[int] = Field(default_factory=list)

    @field_validator("nom", "prenom")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Doit contenir au moins 2 caractères")
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        valid = [r.value for r in Role]
        if v not in valid:
            raise ValueError(f"Rôle invalide. Valeurs acceptées: {valid}")
        return v

    @field_validator("num_securite_sociale")
    @classmethod
    def validate_nss(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.isdigit():
            raise ValueError("Le numéro de sécurité sociale doit contenir uniquement des chiffres")
        return v

    @model_validator(mode="after")
    def check_teams_disjoint(self) -> "UtilisateurCreate":
        overlap = set(self.equipes_membre_ids) & set(self.equipes_responsable_ids)
        if overlap:
            raise ValueError(
                f"Un utilisateur ne peut pas être membre et responsable de la même équipe: {sorted(overlap)}"
            )
        return self


class UtilisateurUpdate(BaseModel):
    """
    Schéma pour mettre à jour un utilisateur.

    Seuls les champs fournis sont modifiés. Chaque groupe de champs
    (profil, rôle, équipes) est autorisé séparément.
    """
    nom: Optional[str] = Field(None, min_length=2, max_length=100)
    prenom: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[str] = None
    telephone: Optional[str] = Field(None, max_length=20)
    adresse: Optional[str] = Field(None, max_length=255)
    num_securite_sociale: Optional[str] = Field(None, min_length=13, max_length=15)
    equipes_membre_ids: Optional[List[int]] = Field(None, description="Équipes dont l'utilisateur est membre")
    equipes_responsable_ids: Optional[List[int]] = Field(None, description="Équipes dont l'utilisateur est responsable")

    @field_validator("nom", "prenom", "email", "role", "equipes_membre_ids", "equipes_responsable_ids")
    @classmethod
    def reject_null(cls, v):
        # Appelé uniquement pour les valeurs fournies (pas pour le défaut)
        if v is None:
            raise ValueError("Ce champ ne peut pas être vide")
        return v

    @field_validator("nom", "prenom")
    @classmethod
    def strip_names(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip()
            if len(v) < 2:
                raise ValueError("Doit contenir au moins 2 caractères")
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            valid = [r.value for r in Role]
            if v not in valid:
                raise ValueError(f"Rôle invalide. Valeurs acceptées: {valid}")
        return v

    @field_validator("num_securite_sociale")
    @classmethod
    def validate_nss(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.isdigit():
            raise ValueError("Le numéro de sécurité sociale doit contenir uniquement des chiffres")
        return v

    @model_validator(mode="after")
    def check_teams_disjoint(self) -> "UtilisateurUpdate":
        if self.equipes_membre_ids and self.equipes_responsable_ids:
            overlap = set(self.equipes_membre_ids) & set(self.equipes_responsable_ids)
            if overlap:
                raise ValueError(
                    f"Un utilisateur ne peut pas être membre et responsable de la même équipe: {sorted(overlap)}"
                )
        return self

    def changed_groups(self) -> dict:
        """Regroupe les champs fournis par groupe d'autorisation."""
        provided = self.model_fields_set
        return {
            "profile": provided & PROFILE_FIELDS,
            "role": provided & ROLE_FIELDS,
            "membres": provided & MEMBER_FIELDS,
            "responsables": provided & LEAD_FIELDS,
        }


class UtilisateurList(BaseModel):
    """Liste paginée d'utilisateurs (vues filtrées)."""
    items: List[UtilisateurVue]
    total: int
    page: int
    size: int
    pages: int


class UtilisateurFormations(BaseModel):
    """Formations d'un utilisateur avec leurs statuts."""
    utilisateur_id: int
    statut: FormationStatus
    taux_conformite: int = Field(..., ge=0, le=100)
    formations: List[FormationView]
