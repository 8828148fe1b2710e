from app.core.security.access import (
    AccessDenied,
    Action,
    DenialKind,
    InsufficientRole,
    Relation,
    Role,
    Unauthenticated,
    WrongTenant,
    authorize_mutation,
    authorize_team_view,
    can_lead_team,
    can_mutate,
    can_view,
    can_view_team,
    check_access,
    ensure_authenticated,
    ensure_same_tenant,
    filter_fields,
    has_required_role,
    relation,
    require_role,
    visible_teams,
)

__all__ = [
    "AccessDenied",
    "Action",
    "DenialKind",
    "InsufficientRole",
    "Relation",
    "Role",
    "Unauthenticated",
    "WrongTenant",
    "authorize_mutation",
    "authorize_team_view",
    "can_lead_team",
    "can_mutate",
    "can_view",
    "can_view_team",
    "check_access",
    "ensure_authenticated",
    "ensure_same_tenant",
    "filter_fields",
    "has_required_role",
    "relation",
    "require_role",
    "visible_teams",
]
