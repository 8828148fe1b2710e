"""
Services métier pour le module Equipe.
"""
import logging
import secrets
import string
from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.api.v1.equipe.schemas import EquipeCreate, EquipeUpdate
from app.core.security.access import can_lead_team
from app.models.equipe import Equipe
from app.models.utilisateur import Utilisateur

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


# =============================================================================
# EXCEPTIONS
# =============================================================================

class EquipeNotFoundError(Exception):
    """Équipe non trouvée."""
    pass


class InvalidTeamMemberError(Exception):
    """Membre ou responsable invalide (inconnu, autre entreprise, double rôle, rôle insuffisant)."""
    pass


# =============================================================================
# EQUIPE SERVICE
# =============================================================================

def _with_members(query):
    return query.options(
        selectinload(Equipe.membres).selectinload(Utilisateur.formations),
        selectinload(Equipe.membres).selectinload(Utilisateur.equipes_membre),
        selectinload(Equipe.membres).selectinload(Utilisateur.equipes_responsable),
        selectinload(Equipe.responsables),
    )


def generate_team_code() -> str:
    """Code court aléatoire (ex: 'K3ZQ7A')."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


class EquipeService:
    """Chargement et modification des équipes avec membres, formations et responsables."""

    def __init__(self, db: Session):
        self.db = db

    def list_by_entreprise(self, entreprise_id: int, actives_only: bool = True) -> List[Equipe]:
        query = _with_members(select(Equipe)).where(Equipe.entreprise_id == entreprise_id)
        if actives_only:
            query = query.where(Equipe.actif.is_(True))
        query = query.order_by(Equipe.nom, Equipe.id)
        return list(self.db.execute(query).scalars().unique().all())

    def get_by_id(self, equipe_id: int) -> Equipe:
        query = _with_members(select(Equipe)).where(Equipe.id == equipe_id)
        equipe = self.db.execute(query).scalar_one_or_none()
        if not equipe:
            raise EquipeNotFoundError(f"Équipe {equipe_id} non trouvée")
        return equipe

    def get_utilisateurs(self, utilisateur_ids: Sequence[int]) -> List[Utilisateur]:
        """Charge des utilisateurs avec leurs rattachements d'équipes."""
        if not utilisateur_ids:
            return []
        query = (
            select(Utilisateur)
            .options(selectinload(Utilisateur.equipes_membre), selectinload(Utilisateur.equipes_responsable))
            .where(Utilisateur.id.in_(set(utilisateur_ids)))
        )
        return list(self.db.execute(query).scalars().all())

    def _resolve_utilisateurs(self, entreprise_id: int, utilisateur_ids: Sequence[int]) -> List[Utilisateur]:
        utilisateurs = self.get_utilisateurs(utilisateur_ids)
        found = {u.id for u in utilisateurs}
        invalid = (set(utilisateur_ids) - found) | {u.id for u in utilisateurs if u.entreprise_id != entreprise_id}
        if invalid:
            raise InvalidTeamMemberError(
                f"Utilisateurs inconnus ou d'une autre entreprise : {sorted(invalid)}"
            )
        return sorted(utilisateurs, key=lambda u: u.id)

    @staticmethod
    def _check_members(membres: Sequence[Utilisateur], responsables: Sequence[Utilisateur]) -> None:
        overlap = {u.id for u in membres} & {u.id for u in responsables}
        if overlap:
            raise InvalidTeamMemberError(
                f"Un utilisateur ne peut pas être membre et responsable de la même équipe: {sorted(overlap)}"
            )
        if any(not can_lead_team(r.role) for r in responsables):
            raise InvalidTeamMemberError("Les responsables doivent être des administrateurs ou représentants")

    def create(self, entreprise_id: int, data: EquipeCreate) -> Equipe:
        """
        Crée une équipe active avec un code généré.

        Raises:
            InvalidTeamMemberError: Utilisateur inconnu, étranger, double rôle
                ou responsable sans le rôle requis
        """
        membres = self._resolve_utilisateurs(entreprise_id, data.membres_ids)
        responsables = self._resolve_utilisateurs(entreprise_id, data.responsables_ids)
        self._check_members(membres, responsables)

        equipe = Equipe(
            entreprise_id=entreprise_id,
            nom=data.nom,
            adresse=data.adresse,
            code=generate_team_code(),
            actif=True,
        )
        equipe.membres = membres
        equipe.responsables = responsables
        self.db.add(equipe)
        self.db.commit()
        logger.info(f"✅ Équipe {equipe.id} '{equipe.nom}' créée ({len(membres)} membres)")
        return self.get_by_id(equipe.id)

    def update(self, equipe: Equipe, data: EquipeUpdate) -> Equipe:
        """
        Remplace nom, statut et adresse ; membres et responsables si fournis.

        Raises:
            InvalidTeamMemberError: Utilisateur inconnu, étranger, double rôle
                ou responsable sans le rôle requis
        """
        membres = equipe.membres
        responsables = equipe.responsables
        if data.membres_ids is not None:
            membres = self._resolve_utilisateurs(equipe.entreprise_id, data.membres_ids)
        if data.responsables_ids is not None:
            responsables = self._resolve_utilisateurs(equipe.entreprise_id, data.responsables_ids)
        self._check_members(membres, responsables)

        equipe.nom = data.nom
        equipe.actif = data.actif
        if "adresse" in data.model_fields_set:
            equipe.adresse = data.adresse
        if data.membres_ids is not None:
            equipe.membres = membres
        if data.responsables_ids is not None:
            equipe.responsables = responsables

        self.db.commit()
        logger.info(f"✏️ Équipe {equipe.id} mise à jour")
        return self.get_by_id(equipe.id)
