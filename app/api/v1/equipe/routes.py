"""
Routes FastAPI pour le module Equipe.

Endpoints pour :
- GET  /equipes : Équipes visibles avec indicateurs (+ indicateurs globaux)
- POST /equipes : Création d'une équipe (admin)
- GET  /equipes/{id} : Détail d'une équipe
- PUT  /equipes/{id} : Modification d'une équipe (admin ou responsable)

Visibilité :
- Admin : toutes les équipes actives de l'entreprise
- Autres : équipes dont l'appelant est membre ou responsable

Modification :
- Nom, adresse, statut et responsables : admin uniquement
- Membres : admin, ou responsable de l'équipe pour des salariés
  de ses propres équipes
"""
from datetime import date

from fastapi import APIRouter, HTTPException, status

from app.api.v1.dependencies import Caller, DbSession, ReferenceDate
from app.api.v1.equipe.schemas import (
    EquipeCreate,
    EquipeDetail,
    EquipeList,
    EquipeStatistiques,
    EquipeUpdate,
    PortfolioStatistiques,
    ResponsableRef,
)
from app.api.v1.equipe.services import EquipeNotFoundError, EquipeService, InvalidTeamMemberError
from app.core.security.access import (
    Action,
    authorize_mutation,
    authorize_team_view,
    ensure_authenticated,
    filter_fields,
    visible_teams,
)
from app.services.formation.aggregation import (
    StatusCounts,
    portfolio_statistics,
    status_breakdown,
    team_statistics,
)
from app.services.snapshots import (
    CallerIdentity,
    EntrepriseRef,
    EquipeSnapshot,
    equipe_snapshot,
    utilisateur_snapshot,
)

router = APIRouter(prefix="/equipes", tags=["Equipes"])


def _statistiques(equipe: EquipeSnapshot, reference) -> EquipeStatistiques:
    stats = team_statistics(equipe, reference)
    counts = StatusCounts(stats.valid_count, stats.warning_count, stats.expired_count)
    return EquipeStatistiques(
        **stats.to_dict(),
        code=equipe.code,
        repartition=status_breakdown(counts),
    )


def _detail(caller: CallerIdentity, equipe: EquipeSnapshot, reference: date) -> EquipeDetail:
    return EquipeDetail(
        id=equipe.id,
        nom=equipe.nom,
        code=equipe.code,
        actif=equipe.actif,
        statistiques=_statistiques(equipe, reference),
        responsables=[ResponsableRef(id=r.id, nom=r.nom, prenom=r.prenom) for r in equipe.responsables],
        membres=[filter_fields(caller, m, reference) for m in equipe.membres],
    )


def _get_or_404(service: EquipeService, equipe_id: int):
    try:
        return service.get_by_id(equipe_id)
    except EquipeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =============================================================================
# LECTURE
# =============================================================================

@router.get("", response_model=EquipeList)
def list_equipes(
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """Liste les équipes visibles par l'appelant avec leurs indicateurs de conformité."""
    caller = ensure_authenticated(caller)
    equipes = [equipe_snapshot(e) for e in EquipeService(db).list_by_entreprise(caller.entreprise_id)]
    visibles = visible_teams(caller, equipes)

    stats = [team_statistics(e, reference) for e in visibles]
    portfolio = portfolio_statistics(stats)
    return EquipeList(
        equipes=[_statistiques(e, reference) for e in visibles],
        statistiques=PortfolioStatistiques(**portfolio.to_dict()),
    )


@router.get("/{equipe_id}", response_model=EquipeDetail)
def get_equipe(
        equipe_id: int,
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """Détail d'une équipe ; chaque membre est filtré selon la relation avec l'appelant."""
    ensure_authenticated(caller)
    equipe = equipe_snapshot(_get_or_404(EquipeService(db), equipe_id))
    caller = authorize_team_view(caller, equipe)
    return _detail(caller, equipe, reference)


# =============================================================================
# CRÉATION / MODIFICATION
# =============================================================================

@router.post("", response_model=EquipeDetail, status_code=status.HTTP_201_CREATED)
def create_equipe(
        data: EquipeCreate,
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """Crée une équipe dans l'entreprise de l'appelant (admin uniquement)."""
    caller = ensure_authenticated(caller)
    authorize_mutation(caller, EntrepriseRef(entreprise_id=caller.entreprise_id), Action.CREATE)

    try:
        equipe = EquipeService(db).create(caller.entreprise_id, data)
    except InvalidTeamMemberError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return _detail(caller, equipe_snapshot(equipe), reference)


@router.put("/{equipe_id}", response_model=EquipeDetail)
def update_equipe(
        equipe_id: int,
        data: EquipeUpdate,
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """
    Modifie une équipe.

    Seuls les éléments réellement modifiés sont autorisés : un responsable
    peut renvoyer nom et statut inchangés en ne modifiant que les membres.
    """
    ensure_authenticated(caller)
    service = EquipeService(db)
    equipe = _get_or_404(service, equipe_id)
    snapshot = equipe_snapshot(equipe)

    # Admin ou responsable de cette équipe
    authorize_mutation(caller, snapshot, Action.ASSIGN_TEAM)

    adresse_changed = "adresse" in data.model_fields_set and data.adresse != equipe.adresse
    if data.nom != snapshot.nom or data.actif != snapshot.actif or adresse_changed:
        authorize_mutation(caller, snapshot, Action.UPDATE)
    if data.responsables_ids is not None and set(data.responsables_ids) != snapshot.responsable_ids:
        authorize_mutation(caller, snapshot, Action.ASSIGN_LEAD)
    if data.membres_ids is not None:
        changed = snapshot.membre_ids ^ set(data.membres_ids)
        for utilisateur in service.get_utilisateurs(sorted(changed)):
            # Les utilisateurs étrangers sont rejetés par le service (400)
            if utilisateur.entreprise_id == snapshot.entreprise_id:
                authorize_mutation(
                    caller, utilisateur_snapshot(utilisateur, with_formations=False), Action.ASSIGN_TEAM
                )

    try:
        updated = service.update(equipe, data)
    except InvalidTeamMemberError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return _detail(caller, equipe_snapshot(updated), reference)
