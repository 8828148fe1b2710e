"""
Contrôle d'accès multi-entreprise (RBAC).

Ce module gère :
- La hiérarchie des rôles (ouvrier < representant < admin)
- L'isolation stricte entre entreprises (tenants)
- La visibilité des champs d'un utilisateur selon la relation avec l'appelant
- Les droits de modification (utilisateurs, équipes, formations)

Table de décision :

    Relation appelant → cible       | Champs visibles             | Modifications
    --------------------------------|-----------------------------|------------------------
    Admin, même entreprise          | Tous                        | Toutes
    Soi-même                        | Tous                        | Profil (pas le rôle)
    Responsable d'équipe du membre  | Tous                        | Affectation comme membre
    Autre utilisateur, même ent.    | Base + formations oblig.    | Aucune
    Autre entreprise                | Refus (WrongTenant)         | Refus

Seuls les admins créent des utilisateurs ou des équipes et désignent les
responsables ; un responsable doit être représentant ou admin.

Toute identité incomplète est refusée. Les refus sont typés pour que
l'appelant puisse distinguer 401 (non authentifié) et 403 (entreprise
différente ou rôle insuffisant).
"""

from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Union

from app.services.formation.aggregation import compliance_rate, user_status
from app.services.formation.status import classify, today
from app.core.security.views import (
    EquipeRefView,
    FormationView,
    UtilisateurVueComplete,
    UtilisateurVuePublique,
)
from app.services.snapshots import (
    CallerIdentity,
    EntrepriseRef,
    EquipeSnapshot,
    FormationSnapshot,
    UtilisateurSnapshot,
)


# =============================================================================
# RÔLES
# =============================================================================

class Role(str, Enum):
    """Rôles applicatifs."""
    ADMIN = "admin"                  # Admin, RH - accès complet
    REPRESENTANT = "representant"    # Chef de chantier - accès limité
    OUVRIER = "ouvrier"              # Aucun privilège


ROLE_RANK = {
    Role.OUVRIER: 0,
    Role.REPRESENTANT: 1,
    Role.ADMIN: 2,
}


def parse_role(value: Optional[str]) -> Optional[Role]:
    """Convertit une valeur en Role (None si inconnue)."""
    if value is None:
        return None
    try:
        return Role(value)
    except ValueError:
        return None


def has_required_role(role: Optional[str], required: Union[Role, str]) -> bool:
    """
    Vérifie que le rôle est au moins égal au rôle requis.

    Un rôle inconnu ne satisfait aucune exigence.
    """
    current = parse_role(role)
    if current is None:
        return False
    return ROLE_RANK[current] >= ROLE_RANK[Role(required)]


def can_lead_team(role: Optional[str]) -> bool:
    """Un responsable d'équipe doit être représentant ou admin."""
    return has_required_role(role, Role.REPRESENTANT)


# =============================================================================
# REFUS D'ACCÈS
# =============================================================================

class DenialKind(str, Enum):
    """Nature d'un refus, pour choisir le code HTTP."""
    UNAUTHENTICATED = "unauthenticated"
    WRONG_TENANT = "wrong_tenant"
    INSUFFICIENT_ROLE = "insufficient_role"


class AccessDenied(Exception):
    """Accès refusé."""
    kind: DenialKind
    default_message = "Accès refusé"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AccessDenied):
    """Aucune identité (ou identité incomplète)."""
    kind = DenialKind.UNAUTHENTICATED
    default_message = "Non authentifié"


class WrongTenant(AccessDenied):
    """L'appelant n'appartient pas à l'entreprise de la ressource."""
    kind = DenialKind.WRONG_TENANT
    default_message = "Accès non autorisé à cette entreprise"


class InsufficientRole(AccessDenied):
    """Même entreprise, mais droits insuffisants."""
    kind = DenialKind.INSUFFICIENT_ROLE
    default_message = "Rôle insuffisant pour cette action"


# =============================================================================
# VÉRIFICATIONS GROSSIÈRES (ENDPOINTS)
# =============================================================================

def is_authenticated(caller: Optional[CallerIdentity]) -> bool:
    return (
        caller is not None
        and caller.user_id is not None
        and caller.entreprise_id is not None
        and bool(caller.role)
    )


def ensure_authenticated(caller: Optional[CallerIdentity]) -> CallerIdentity:
    """
    Raises:
        Unauthenticated: Identité absente ou incomplète
    """
    if not is_authenticated(caller):
        raise Unauthenticated()
    return caller


def ensure_same_tenant(caller: Optional[CallerIdentity], entreprise_id: Optional[int]) -> CallerIdentity:
    """
    Raises:
        Unauthenticated: Identité absente ou incomplète
        WrongTenant: Entreprise différente (ou inconnue)
    """
    caller = ensure_authenticated(caller)
    if entreprise_id is None or caller.entreprise_id != entreprise_id:
        raise WrongTenant()
    return caller


def require_role(caller: Optional[CallerIdentity], required: Union[Role, str]) -> CallerIdentity:
    """
    Raises:
        Unauthenticated: Identité absente ou incomplète
        InsufficientRole: Rôle inférieur au rôle requis
    """
    caller = ensure_authenticated(caller)
    if not has_required_role(caller.role, required):
        raise InsufficientRole(f"Rôle '{Role(required).value}' requis pour cette action")
    return caller


def check_access(
    caller: Optional[CallerIdentity],
    entreprise_id: Optional[int],
    required: Union[Role, str] = Role.REPRESENTANT,
) -> CallerIdentity:
    """
    Vérifie authentification, entreprise puis rôle (dans cet ordre).

    Usage:
        caller = check_access(caller, entreprise_id, Role.ADMIN)
    """
    ensure_same_tenant(caller, entreprise_id)
    return require_role(caller, required)


# =============================================================================
# RELATION APPELANT → UTILISATEUR CIBLE
# =============================================================================

class Relation(str, Enum):
    """Relation de l'appelant avec l'utilisateur consulté."""
    ADMIN = "admin"
    SELF = "self"
    TEAM_LEAD = "team_lead"
    SAME_TENANT = "same_tenant"
    OTHER_TENANT = "other_tenant"


FULL_VIEW_RELATIONS = frozenset({Relation.ADMIN, Relation.SELF, Relation.TEAM_LEAD})

BASIC_FIELDS = frozenset({
    "id", "entreprise_id", "nom", "prenom", "email", "role",
    "equipes_membre", "equipes_responsable", "formations_obligatoires",
})

RESTRICTED_FIELDS = frozenset({
    "telephone", "adresse", "num_securite_sociale", "formations",
})


def is_team_lead_of(caller: CallerIdentity, target: UtilisateurSnapshot) -> bool:
    """True si l'appelant est responsable d'une équipe dont la cible est membre."""
    return bool(caller.equipes_responsable_ids & target.equipes_membre_ids)


def relation(caller: Optional[CallerIdentity], target: UtilisateurSnapshot) -> Relation:
    """
    Détermine la relation de l'appelant avec la cible.

    Raises:
        Unauthenticated: Identité absente ou incomplète
    """
    caller = ensure_authenticated(caller)
    if caller.entreprise_id != target.entreprise_id:
        return Relation.OTHER_TENANT
    if caller.role == Role.ADMIN.value:
        return Relation.ADMIN
    if caller.user_id == target.id:
        return Relation.SELF
    if is_team_lead_of(caller, target):
        return Relation.TEAM_LEAD
    return Relation.SAME_TENANT


def can_view(caller: Optional[CallerIdentity], target: UtilisateurSnapshot, field: str) -> bool:
    """Un champ inconnu n'est jamais visible."""
    if not is_authenticated(caller):
        return False
    rel = relation(caller, target)
    if rel == Relation.OTHER_TENANT:
        return False
    if field in BASIC_FIELDS:
        return True
    if field in RESTRICTED_FIELDS:
        return rel in FULL_VIEW_RELATIONS
    return False


# =============================================================================
# MODIFICATIONS
# =============================================================================

class Action(str, Enum):
    """Actions de modification contrôlées."""
    CREATE = "create"
    UPDATE = "update"
    CHANGE_ROLE = "change_role"
    ASSIGN_TEAM = "assign_team"      # Affectation comme membre
    ASSIGN_LEAD = "assign_lead"      # Désignation des responsables
    DELETE = "delete"


MutationTarget = Union[UtilisateurSnapshot, EquipeSnapshot, FormationSnapshot, EntrepriseRef]


def _tenant_of(target: MutationTarget) -> Optional[int]:
    return getattr(target, "entreprise_id", None)


def can_mutate(caller: Optional[CallerIdentity], target: MutationTarget, action: Action) -> bool:
    if not is_authenticated(caller):
        return False
    tenant = _tenant_of(target)
    if tenant is None or tenant != caller.entreprise_id:
        return False
    if caller.role == Role.ADMIN.value:
        return True

    if isinstance(target, UtilisateurSnapshot):
        if target.id == caller.user_id:
            return action == Action.UPDATE
        return action == Action.ASSIGN_TEAM and is_team_lead_of(caller, target)

    if isinstance(target, EquipeSnapshot):
        leads_team = target.id in caller.equipes_responsable_ids or caller.user_id in target.responsable_ids
        return action == Action.ASSIGN_TEAM and leads_team

    # Formations et créations : réservées aux admins
    return False


def authorize_mutation(caller: Optional[CallerIdentity], target: MutationTarget, action: Action) -> CallerIdentity:
    """
    Raises:
        Unauthenticated: Identité absente ou incomplète
        WrongTenant: Cible d'une autre entreprise
        InsufficientRole: Action non autorisée pour cet appelant
    """
    caller = ensure_same_tenant(caller, _tenant_of(target))
    if not can_mutate(caller, target, action):
        raise InsufficientRole(f"Action '{action.value}' non autorisée")
    return caller


# =============================================================================
# FILTRAGE DES CHAMPS
# =============================================================================

def _formation_views(formations: Iterable[FormationSnapshot], reference: date) -> List[FormationView]:
    return [
        FormationView(
            id=f.id,
            nom=f.nom,
            type_formation=f.type_formation,
            date_delivrance=f.date_delivrance,
            date_expiration=f.date_expiration,
            obligatoire=f.obligatoire,
            statut=classify(f.date_expiration, reference),
        )
        for f in formations
    ]


def filter_fields(
    caller: Optional[CallerIdentity],
    utilisateur: UtilisateurSnapshot,
    now: Optional[date] = None,
) -> Union[UtilisateurVueComplete, UtilisateurVuePublique]:
    """
    Construit la vue de l'utilisateur adaptée à l'appelant.

    Raises:
        Unauthenticated: Identité absente ou incomplète
        WrongTenant: Utilisateur d'une autre entreprise
    """
    caller = ensure_same_tenant(caller, utilisateur.entreprise_id)
    reference = now if now is not None else today()

    base = dict(
        id=utilisateur.id,
        entreprise_id=utilisateur.entreprise_id,
        nom=utilisateur.nom,
        prenom=utilisateur.prenom,
        email=utilisateur.email,
        role=utilisateur.role,
        equipes_membre=[EquipeRefView(id=e.id, nom=e.nom) for e in utilisateur.equipes_membre],
        equipes_responsable=[EquipeRefView(id=e.id, nom=e.nom) for e in utilisateur.equipes_responsable],
    )

    if relation(caller, utilisateur) in FULL_VIEW_RELATIONS:
        return UtilisateurVueComplete(
            **base,
            telephone=utilisateur.telephone,
            adresse=utilisateur.adresse,
            num_securite_sociale=utilisateur.num_securite_sociale,
            formations=_formation_views(utilisateur.formations, reference),
            statut=user_status(utilisateur.formations, reference),
            taux_conformite=compliance_rate(utilisateur.formations, reference),
        )

    return UtilisateurVuePublique(
        **base,
        formations=_formation_views((f for f in utilisateur.formations if f.obligatoire), reference),
    )


# =============================================================================
# ÉQUIPES
# =============================================================================

def can_view_team(caller: Optional[CallerIdentity], equipe: EquipeSnapshot) -> bool:
    """Admin, représentant, membre ou responsable de l'équipe (même entreprise)."""
    if not is_authenticated(caller) or caller.entreprise_id != equipe.entreprise_id:
        return False
    if has_required_role(caller.role, Role.REPRESENTANT):
        return True
    return caller.user_id in equipe.membre_ids or caller.user_id in equipe.responsable_ids


def authorize_team_view(caller: Optional[CallerIdentity], equipe: EquipeSnapshot) -> CallerIdentity:
    """
    Raises:
        Unauthenticated, WrongTenant, InsufficientRole
    """
    caller = ensure_same_tenant(caller, equipe.entreprise_id)
    if not can_view_team(caller, equipe):
        raise InsufficientRole("Vous n'avez pas les permissions nécessaires pour accéder à cette équipe")
    return caller


def visible_teams(caller: Optional[CallerIdentity], equipes: Iterable[EquipeSnapshot]) -> List[EquipeSnapshot]:
    """
    Équipes actives listées pour l'appelant.

    Les admins voient toutes les équipes actives de leur entreprise,
    les autres uniquement celles dont ils sont membres ou responsables.

    Raises:
        Unauthenticated: Identité absente ou incomplète
    """
    caller = ensure_authenticated(caller)
    visible = []
    for equipe in equipes:
        if equipe.entreprise_id != caller.entreprise_id or not equipe.actif:
            continue
        if caller.role == Role.ADMIN.value:
            visible.append(equipe)
        elif caller.user_id in equipe.membre_ids or caller.user_id in equipe.responsable_ids:
            visible.append(equipe)
        elif equipe.id in caller.equipes_membre_ids or equipe.id in caller.equipes_responsable_ids:
            visible.append(equipe)
    return visible
