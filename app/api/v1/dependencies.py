# app/api/v1/dependencies.py
"""
Dépendances générales de l'API v1.

Ce module contient les utilitaires partagés par tous les modules :
- PaginationParams : Paramètres de pagination standardisés
- get_current_utilisateur / get_caller : Identité de l'appelant
- get_reference_date : Date de référence du moteur de conformité

L'authentification elle-même est assurée en amont : le middleware
d'authentification renseigne `request.state.user_id`. Sans identifiant,
l'appelant est considéré comme non authentifié (le contrôle d'accès
renvoie alors 401).
"""

from datetime import date
from typing import Annotated, Optional

from fastapi import Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.database.session import get_db
from app.models.utilisateur import Utilisateur
from app.services.formation.status import today
from app.services.snapshots import CallerIdentity, caller_identity


class PaginationParams:
    """
    Paramètres de pagination standardisés pour toutes les routes de liste.

    Usage:
        @router.get("/utilisateurs")
        def list_utilisateurs(pagination: PaginationParams = Depends()):
            # pagination.page, pagination.size, pagination.offset
            ...
    """

    def __init__(
            self,
            page: Annotated[int, Query(ge=1, description="Numéro de page (commence à 1)")] = 1,
            size: Annotated[int, Query(ge=1, le=100, description="Nombre d'éléments par page")] = 20,
    ):
        self.page = page
        self.size = size

    @property
    def offset(self) -> int:
        """Calcule l'offset pour la requête SQL."""
        return (self.page - 1) * self.size

    @property
    def limit(self) -> int:
        """Alias pour size (compatibilité SQL)."""
        return self.size


# =============================================================================
# IDENTITÉ DE L'APPELANT
# =============================================================================

def get_current_utilisateur(
        request: Request,
        db: Session = Depends(get_db),
) -> Optional[Utilisateur]:
    """
    Charge l'utilisateur authentifié (équipes incluses).

    Returns:
        L'utilisateur, ou None si la requête n'est pas authentifiée
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        return None

    query = (
        select(Utilisateur)
        .options(
            selectinload(Utilisateur.equipes_membre),
            selectinload(Utilisateur.equipes_responsable),
        )
        .where(Utilisateur.id == user_id)
    )
    return db.execute(query).scalar_one_or_none()


def get_caller(
        utilisateur: Optional[Utilisateur] = Depends(get_current_utilisateur),
) -> Optional[CallerIdentity]:
    """Identité de l'appelant telle que consommée par le contrôle d'accès."""
    return caller_identity(utilisateur)


def get_reference_date() -> date:
    """Date du jour dans le fuseau configuré (surchargée dans les tests)."""
    return today()


# =============================================================================
# TYPE ALIASES
# =============================================================================

Pagination = Annotated[PaginationParams, Depends()]
Caller = Annotated[Optional[CallerIdentity], Depends(get_caller)]
ReferenceDate = Annotated[date, Depends(get_reference_date)]
DbSession = Annotated[Session, Depends(get_db)]
