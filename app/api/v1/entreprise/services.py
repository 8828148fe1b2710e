"""
Services métier pour le module Entreprise.
"""
from sqlalchemy.orm import Session

from app.models.entreprise import Entreprise


class EntrepriseNotFoundError(Exception):
    """Entreprise non trouvée."""
    pass


class EntrepriseService:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, entreprise_id: int) -> Entreprise:
        entreprise = self.db.get(Entreprise, entreprise_id)
        if not entreprise:
            raise EntrepriseNotFoundError(f"Entreprise {entreprise_id} non trouvée")
        return entreprise
