"""
Moteur de conformité des formations.

- status : classification d'une formation (Valide / À renouveler / Expirée)
- aggregation : statuts utilisateur/équipe, taux de conformité, indicateurs
- alerts : alertes de renouvellement à envoyer
- export : export CSV des employés
"""

from app.services.formation.status import FormationStatus, classify, renewal_threshold, today
from app.services.formation.aggregation import (
    DashboardStatistics,
    PortfolioStatistics,
    StatusCounts,
    TeamStatistics,
    compliance_rate,
    count_statuses,
    dashboard_statistics,
    equipe_status,
    portfolio_statistics,
    status_breakdown,
    team_compliance_rate,
    team_statistics,
    team_status,
    user_status,
    worst_status,
)
from app.services.formation.alerts import AlertKind, RenewalAlert, plan_renewal_alerts
from app.services.formation.export import export_utilisateurs_csv

__all__ = [
    "FormationStatus",
    "classify",
    "renewal_threshold",
    "today",
    "DashboardStatistics",
    "PortfolioStatistics",
    "StatusCounts",
    "TeamStatistics",
    "compliance_rate",
    "count_statuses",
    "dashboard_statistics",
    "equipe_status",
    "portfolio_statistics",
    "status_breakdown",
    "team_compliance_rate",
    "team_statistics",
    "team_status",
    "user_status",
    "worst_status",
    "AlertKind",
    "RenewalAlert",
    "plan_renewal_alerts",
    "export_utilisateurs_csv",
]
