"""
Routes FastAPI pour le module Entreprise.

Endpoints pour :
- GET /entreprises/{id}/tableau-de-bord : Compteurs de conformité
- GET /entreprises/{id}/alertes : Alertes de renouvellement à envoyer

Réservés aux admins de l'entreprise.
"""
from fastapi import APIRouter, HTTPException, status

from app.api.v1.dependencies import Caller, DbSession, ReferenceDate
from app.api.v1.entreprise.schemas import AlerteList, AlerteResponse, EntrepriseResponse, TableauDeBord
from app.api.v1.entreprise.services import EntrepriseNotFoundError, EntrepriseService
from app.api.v1.equipe.services import EquipeService
from app.api.v1.utilisateur.services import UtilisateurService
from app.core.security.access import Role, check_access
from app.services.formation.aggregation import dashboard_statistics
from app.services.formation.alerts import plan_renewal_alerts
from app.services.snapshots import equipe_snapshot, utilisateur_snapshot

router = APIRouter(prefix="/entreprises", tags=["Entreprises"])


def _load(db, entreprise_id: int):
    try:
        entreprise = EntrepriseService(db).get_by_id(entreprise_id)
    except EntrepriseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    utilisateurs, _ = UtilisateurService(db).list_by_entreprise(entreprise_id)
    equipes = EquipeService(db).list_by_entreprise(entreprise_id)
    return (
        entreprise,
        [utilisateur_snapshot(u) for u in utilisateurs],
        [equipe_snapshot(e) for e in equipes],
    )


@router.get("/{entreprise_id}/tableau-de-bord", response_model=TableauDeBord)
def get_tableau_de_bord(
        entreprise_id: int,
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """Compteurs de conformité de l'entreprise (équipes actives uniquement)."""
    check_access(caller, entreprise_id, Role.ADMIN)
    entreprise, utilisateurs, equipes = _load(db, entreprise_id)
    stats = dashboard_statistics(utilisateurs, equipes, reference)
    return TableauDeBord(
        entreprise=EntrepriseResponse.model_validate(entreprise),
        date_reference=reference,
        **stats.to_dict(),
    )


@router.get("/{entreprise_id}/alertes", response_model=AlerteList)
def get_alertes(
        entreprise_id: int,
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """Alertes de renouvellement (titulaires et responsables d'équipe)."""
    check_access(caller, entreprise_id, Role.ADMIN)
    _, utilisateurs, equipes = _load(db, entreprise_id)
    alertes = plan_renewal_alerts(utilisateurs, equipes, reference)
    return AlerteList(
        date_reference=reference,
        total=len(alertes),
        alertes=[AlerteResponse.model_validate(a) for a in alertes],
    )
