"""
Routes FastAPI pour le module Utilisateur.

Endpoints pour :
- GET    /utilisateurs : Liste des salariés de l'entreprise (vues filtrées)
- POST   /utilisateurs : Création d'un salarié et de ses rattachements (admin)
- GET    /utilisateurs/export : Export CSV (admin)
- GET    /utilisateurs/{id} : Détail filtré selon la relation avec l'appelant
- GET    /utilisateurs/{id}/formations : Formations avec statuts
- PATCH  /utilisateurs/{id} : Modification (profil, rôle, équipes)
- DELETE /utilisateurs/{id} : Suppression (admin)

MULTI-TENANT: chaque accès est vérifié par app.core.security.access ;
les refus sont traduits en 401/403 par les gestionnaires d'exceptions.
"""
from fastapi import APIRouter, HTTPException, Response, status

from app.api.v1.dependencies import Caller, DbSession, Pagination, ReferenceDate
from app.api.v1.utilisateur.schemas import (
    UtilisateurCreate,
    UtilisateurFormations,
    UtilisateurList,
    UtilisateurUpdate,
)
from app.api.v1.utilisateur.services import (
    UtilisateurService,
    # Exceptions
    UtilisateurNotFoundError, DuplicateEmailError, InvalidTeamAssignmentError,
)
from app.core.security.access import (
    Action,
    InsufficientRole,
    Role,
    authorize_mutation,
    can_view,
    ensure_authenticated,
    ensure_same_tenant,
    filter_fields,
    require_role,
)
from app.core.security.views import UtilisateurVue
from app.services.formation.export import export_utilisateurs_csv
from app.services.snapshots import EntrepriseRef, equipe_snapshot, utilisateur_snapshot

# =============================================================================
# ROUTER
# =============================================================================

router = APIRouter(prefix="/utilisateurs", tags=["Utilisateurs"])


def _get_or_404(service: UtilisateurService, utilisateur_id: int):
    try:
        return service.get_by_id(utilisateur_id)
    except UtilisateurNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =============================================================================
# LECTURE
# =============================================================================

@router.get("", response_model=UtilisateurList)
def list_utilisateurs(
        caller: Caller,
        db: DbSession,
        pagination: Pagination,
        reference: ReferenceDate,
):
    """Liste les salariés de l'entreprise de l'appelant, chacun filtré selon la relation."""
    caller = ensure_authenticated(caller)
    items, total = UtilisateurService(db).list_by_entreprise(
        caller.entreprise_id, page=pagination.page, size=pagination.size
    )
    pages = (total + pagination.size - 1) // pagination.size
    return UtilisateurList(
        items=[filter_fields(caller, utilisateur_snapshot(u), reference) for u in items],
        total=total,
        page=pagination.page,
        size=pagination.size,
        pages=pages,
    )


@router.get("/export")
def export_utilisateurs(
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """Export CSV des salariés et de leurs compteurs de formations (admin uniquement)."""
    caller = require_role(caller, Role.ADMIN)
    items, _ = UtilisateurService(db).list_by_entreprise(caller.entreprise_id)
    content = export_utilisateurs_csv([utilisateur_snapshot(u) for u in items], reference)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="employes.csv"'},
    )


@router.get("/{utilisateur_id}", response_model=UtilisateurVue)
def get_utilisateur(
        utilisateur_id: int,
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """
    Détail d'un salarié.

    Vue complète pour un admin, l'utilisateur lui-même ou un responsable
    d'une de ses équipes ; vue publique pour les autres salariés.
    """
    ensure_authenticated(caller)
    utilisateur = _get_or_404(UtilisateurService(db), utilisateur_id)
    return filter_fields(caller, utilisateur_snapshot(utilisateur), reference)


@router.get("/{utilisateur_id}/formations", response_model=UtilisateurFormations)
def get_utilisateur_formations(
        utilisateur_id: int,
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """Toutes les formations d'un salarié avec leur statut (vue complète requise)."""
    ensure_authenticated(caller)
    snapshot = utilisateur_snapshot(_get_or_404(UtilisateurService(db), utilisateur_id))
    ensure_same_tenant(caller, snapshot.entreprise_id)
    if not can_view(caller, snapshot, "formations"):
        raise InsufficientRole("Accès aux formations de cet utilisateur non autorisé")

    vue = filter_fields(caller, snapshot, reference)
    return UtilisateurFormations(
        utilisateur_id=snapshot.id,
        statut=vue.statut,
        taux_conformite=vue.taux_conformite,
        formations=vue.formations,
    )


# =============================================================================
# CRÉATION / MODIFICATION
# =============================================================================

@router.post("", response_model=UtilisateurVue, status_code=status.HTTP_201_CREATED)
def create_utilisateur(
        data: UtilisateurCreate,
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """
    Crée un salarié dans l'entreprise de l'appelant (admin uniquement).

    Les équipes doivent appartenir à la même entreprise ; seuls les
    représentants et admins peuvent être responsables d'équipe.
    """
    caller = ensure_authenticated(caller)
    authorize_mutation(caller, EntrepriseRef(entreprise_id=caller.entreprise_id), Action.CREATE)

    try:
        utilisateur = UtilisateurService(db).create(caller.entreprise_id, data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except InvalidTeamAssignmentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return filter_fields(caller, utilisateur_snapshot(utilisateur), reference)


@router.patch("/{utilisateur_id}", response_model=UtilisateurVue)
def update_utilisateur(
        utilisateur_id: int,
        data: UtilisateurUpdate,
        caller: Caller,
        db: DbSession,
        reference: ReferenceDate,
):
    """
    Met à jour un salarié.

    - Profil : admin ou l'utilisateur lui-même
    - Rôle : admin uniquement
    - Équipes (membre) : admin, ou responsable de l'utilisateur et des équipes concernées
    - Équipes (responsable) : admin uniquement
    """
    ensure_authenticated(caller)
    service = UtilisateurService(db)
    utilisateur = _get_or_404(service, utilisateur_id)
    snapshot = utilisateur_snapshot(utilisateur)

    groups = data.changed_groups()
    if groups["profile"] or not any(groups.values()):
        authorize_mutation(caller, snapshot, Action.UPDATE)
    if groups["role"]:
        authorize_mutation(caller, snapshot, Action.CHANGE_ROLE)
    if groups["responsables"]:
        authorize_mutation(caller, snapshot, Action.ASSIGN_LEAD)
    if groups["membres"]:
        authorize_mutation(caller, snapshot, Action.ASSIGN_TEAM)
        changed = snapshot.equipes_membre_ids ^ set(data.equipes_membre_ids)
        for equipe in service.get_equipes(sorted(changed)):
            # Les équipes étrangères sont rejetées par le service (400)
            if equipe.entreprise_id == snapshot.entreprise_id:
                authorize_mutation(caller, equipe_snapshot(equipe), Action.ASSIGN_TEAM)

    try:
        updated = service.update(utilisateur, data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except InvalidTeamAssignmentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return filter_fields(caller, utilisateur_snapshot(updated), reference)


@router.delete("/{utilisateur_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_utilisateur(
        utilisateur_id: int,
        caller: Caller,
        db: DbSession,
):
    """Supprime un salarié et ses formations (admin uniquement)."""
    ensure_authenticated(caller)
    service = UtilisateurService(db)
    utilisateur = _get_or_404(service, utilisateur_id)
    authorize_mutation(caller, utilisateur_snapshot(utilisateur), Action.DELETE)
    service.delete(utilisateur)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
