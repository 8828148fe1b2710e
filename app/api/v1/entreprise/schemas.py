"""
Schémas Pydantic pour le module Entreprise.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.services.formation.alerts import AlertKind


class EntrepriseResponse(BaseModel):
    """Identité d'une entreprise."""
    id: int
    nom: str
    adresse: Optional[str] = None
    telephone: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TableauDeBord(BaseModel):
    """Compteurs du tableau de bord."""
    entreprise: EntrepriseResponse
    date_reference: date
    total_utilisateurs: int
    total_equipes: int
    total_formations: int
    formations_expirees: int
    formations_a_renouveler: int
    utilisateurs_non_conformes: int
    equipes_non_conformes: int


class AlerteResponse(BaseModel):
    """Alerte de renouvellement à envoyer."""
    destinataire_id: int
    formation_id: Optional[int] = None
    kind: AlertKind
    message: str
    date_expiration: date
    employee_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class AlerteList(BaseModel):
    date_reference: date
    total: int
    alertes: List[AlerteResponse]
