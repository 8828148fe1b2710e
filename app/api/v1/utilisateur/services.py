"""
Services métier pour le module Utilisateur.

Les services chargent et modifient les enregistrements ; le contrôle
d'accès (app.core.security.access) est appliqué par les routes sur des
instantanés, avant toute modification.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.models.equipe import Equipe
from app.models.utilisateur import Utilisateur
from app.api.v1.utilisateur.schemas import UtilisateurCreate, UtilisateurUpdate
from app.core.security.access import can_lead_team

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class UtilisateurNotFoundError(Exception):
    """Utilisateur non trouvé."""
    pass


class DuplicateEmailError(Exception):
    """Email déjà utilisé."""
    pass


class InvalidTeamAssignmentError(Exception):
    """Affectation d'équipe invalide (équipe inconnue, autre entreprise, double rôle, rôle insuffisant)."""
    pass


# =============================================================================
# UTILISATEUR SERVICE
# =============================================================================

def _with_relations(query):
    return query.options(
        selectinload(Utilisateur.formations),
        selectinload(Utilisateur.equipes_membre),
        selectinload(Utilisateur.equipes_responsable),
    )


class UtilisateurService:
    """
    Service pour la gestion des utilisateurs.

    Les lectures par ID ne filtrent pas par entreprise : le contrôle
    d'accès doit pouvoir distinguer « inexistant » (404) de « autre
    entreprise » (403).
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, utilisateur_id: int) -> Utilisateur:
        """Récupère un utilisateur avec formations et équipes."""
        query = _with_relations(select(Utilisateur)).where(Utilisateur.id == utilisateur_id)
        utilisateur = self.db.execute(query).scalar_one_or_none()
        if not utilisateur:
            raise UtilisateurNotFoundError(f"Utilisateur {utilisateur_id} non trouvé")
        return utilisateur

    def get_by_email(self, email: str) -> Optional[Utilisateur]:
        query = select(Utilisateur).where(func.lower(Utilisateur.email) == email.lower())
        return self.db.execute(query).scalar_one_or_none()

    def list_by_entreprise(
            self,
            entreprise_id: int,
            page: Optional[int] = None,
            size: Optional[int] = None,
    ) -> Tuple[List[Utilisateur], int]:
        """
        Liste les utilisateurs d'une entreprise, triés par nom puis prénom.

        Sans pagination, renvoie tous les utilisateurs.
        """
        base = select(Utilisateur).where(Utilisateur.entreprise_id == entreprise_id)
        total = self.db.execute(select(func.count()).select_from(base.subquery())).scalar() or 0

        query = _with_relations(base).order_by(Utilisateur.nom, Utilisateur.prenom, Utilisateur.id)
        if page is not None and size is not None:
            query = query.offset((page - 1) * size).limit(size)

        items = self.db.execute(query).scalars().unique().all()
        return list(items), total

    def get_equipes(self, equipe_ids: Sequence[int]) -> List[Equipe]:
        """Charge des équipes (membres et responsables inclus)."""
        if not equipe_ids:
            return []
        query = (
            select(Equipe)
            .options(selectinload(Equipe.membres), selectinload(Equipe.responsables))
            .where(Equipe.id.in_(set(equipe_ids)))
        )
        return list(self.db.execute(query).scalars().all())

    def _resolve_equipes(self, entreprise_id: int, equipe_ids: Sequence[int]) -> List[Equipe]:
        equipes = self.get_equipes(equipe_ids)
        found = {e.id for e in equipes}
        missing = set(equipe_ids) - found
        if missing:
            raise InvalidTeamAssignmentError(f"Équipes inconnues : {sorted(missing)}")
        foreign = [e.id for e in equipes if e.entreprise_id != entreprise_id]
        if foreign:
            raise InvalidTeamAssignmentError(f"Équipes d'une autre entreprise : {sorted(foreign)}")
        return sorted(equipes, key=lambda e: e.id)

    @staticmethod
    def _check_team_links(role: str, membres: Sequence[Equipe], responsables: Sequence[Equipe]) -> None:
        overlap = {e.id for e in membres} & {e.id for e in responsables}
        if overlap:
            raise InvalidTeamAssignmentError(
                f"Un utilisateur ne peut pas être membre et responsable de la même équipe: {sorted(overlap)}"
            )
        if responsables and not can_lead_team(role):
            raise InvalidTeamAssignmentError(
                "Les responsables doivent être des administrateurs ou représentants"
            )

    def create(self, entreprise_id: int, data: UtilisateurCreate) -> Utilisateur:
        """
        Crée un utilisateur et ses rattachements d'équipes.

        Raises:
            DuplicateEmailError: Email déjà utilisé
            InvalidTeamAssignmentError: Équipe inconnue, étrangère, double rôle
                ou responsable sans le rôle requis
        """
        if self.get_by_email(data.email):
            raise DuplicateEmailError(f"Email '{data.email}' déjà utilisé")

        membres = self._resolve_equipes(entreprise_id, data.equipes_membre_ids)
        responsables = self._resolve_equipes(entreprise_id, data.equipes_responsable_ids)
        self._check_team_links(data.role, membres, responsables)

        utilisateur = Utilisateur(
            entreprise_id=entreprise_id,
            **data.model_dump(exclude={"equipes_membre_ids", "equipes_responsable_ids"}),
        )
        utilisateur.equipes_membre = membres
        utilisateur.equipes_responsable = responsables
        self.db.add(utilisateur)
        self.db.commit()
        logger.info(f"✅ Utilisateur {utilisateur.id} créé ({utilisateur.role}) dans l'entreprise {entreprise_id}")
        return self.get_by_id(utilisateur.id)

    def update(self, utilisateur: Utilisateur, data: UtilisateurUpdate) -> Utilisateur:
        """
        Applique les champs fournis.

        Le rôle retenu pour vérifier les responsabilités est celui après
        modification : rétrograder un responsable en ouvrier est refusé
        tant qu'il reste responsable d'une équipe.

        Raises:
            DuplicateEmailError: Email déjà utilisé par un autre utilisateur
            InvalidTeamAssignmentError: Équipe inconnue, étrangère, double rôle
                ou responsable sans le rôle requis
        """
        update_data = data.model_dump(exclude_unset=True, exclude={"equipes_membre_ids", "equipes_responsable_ids"})

        if "email" in update_data and update_data["email"].lower() != utilisateur.email.lower():
            existing = self.get_by_email(update_data["email"])
            if existing and existing.id != utilisateur.id:
                raise DuplicateEmailError(f"Email '{update_data['email']}' déjà utilisé")

        membres = utilisateur.equipes_membre
        responsables = utilisateur.equipes_responsable
        if data.equipes_membre_ids is not None:
            membres = self._resolve_equipes(utilisateur.entreprise_id, data.equipes_membre_ids)
        if data.equipes_responsable_ids is not None:
            responsables = self._resolve_equipes(utilisateur.entreprise_id, data.equipes_responsable_ids)
        self._check_team_links(update_data.get("role", utilisateur.role), membres, responsables)

        for field, value in update_data.items():
            setattr(utilisateur, field, value)
        if data.equipes_membre_ids is not None:
            utilisateur.equipes_membre = membres
        if data.equipes_responsable_ids is not None:
            utilisateur.equipes_responsable = responsables

        self.db.commit()
        logger.info(f"✏️ Utilisateur {utilisateur.id} mis à jour : {sorted(data.model_fields_set)}")
        return self.get_by_id(utilisateur.id)

    def delete(self, utilisateur: Utilisateur) -> None:
        """Supprime un utilisateur (ses formations sont supprimées en cascade)."""
        utilisateur_id = utilisateur.id
        self.db.delete(utilisateur)
        self.db.commit()
        logger.info(f"🗑️ Utilisateur {utilisateur_id} supprimé")
