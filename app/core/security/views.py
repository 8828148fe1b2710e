"""
Vues d'un utilisateur selon le niveau de visibilité de l'appelant.

- UtilisateurVueComplete : admin, l'utilisateur lui-même ou un responsable
  d'une de ses équipes. Contient les données personnelles et toutes les
  formations.
- UtilisateurVuePublique : autres utilisateurs de la même entreprise.
  Champs de base et formations obligatoires uniquement.

Le champ `vue` discrimine les deux variantes dans les réponses JSON.
"""
from datetime import date
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from app.services.formation.status import FormationStatus


class EquipeRefView(BaseModel):
    """Référence d'équipe exposée dans les vues."""
    id: int
    nom: str


class FormationView(BaseModel):
    """Formation avec son statut calculé."""
    id: Optional[int] = None
    nom: str
    type_formation: Optional[str] = None
    date_delivrance: Optional[date] = None
    date_expiration: Optional[date] = None
    obligatoire: bool
    statut: FormationStatus


class _UtilisateurVueBase(BaseModel):
    id: int
    entreprise_id: int
    nom: str
    prenom: str
    email: str
    role: str
    equipes_membre: List[EquipeRefView] = Field(default_factory=list)
    equipes_responsable: List[EquipeRefView] = Field(default_factory=list)
    formations: List[FormationView] = Field(default_factory=list)


class UtilisateurVuePublique(_UtilisateurVueBase):
    """Vue restreinte : pas de données personnelles, formations obligatoires seules."""
    vue: Literal["publique"] = "publique"


class UtilisateurVueComplete(_UtilisateurVueBase):
    """Vue complète : données personnelles, toutes les formations et statut global."""
    vue: Literal["complete"] = "complete"
    telephone: Optional[str] = None
    adresse: Optional[str] = None
    num_securite_sociale: Optional[str] = None
    statut: FormationStatus
    taux_conformite: int = Field(..., ge=0, le=100)


UtilisateurVue = Annotated[
    Union[UtilisateurVueComplete, UtilisateurVuePublique],
    Field(discriminator="vue"),
]
