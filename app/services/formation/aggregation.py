"""
Agrégation des statuts de formation.

Règles :
- statut d'un utilisateur = statut le plus grave de ses formations
  (aucune formation => Valide) ;
- statut d'une équipe = statut le plus grave de ses membres ;
- taux de conformité = formations obligatoires valides / formations
  obligatoires, arrondi à l'entier (demi vers le haut). Sans formation
  obligatoire, le taux vaut 100.

Le taux d'une équipe est calculé sur l'ensemble des formations de ses
membres mises en commun, et non comme une moyenne des taux individuels.
"""

import math
from dataclasses import dataclass, asdict
from datetime import date
from fractions import Fraction
from typing import Dict, Iterable, Optional, Sequence

from app.core.config import settings
from app.services.formation.status import FormationStatus, classify, today
from app.services.snapshots import EquipeSnapshot, FormationSnapshot, UtilisateurSnapshot


# =============================================================================
# RÉSULTATS
# =============================================================================

@dataclass(frozen=True)
class StatusCounts:
    """Répartition des formations par statut."""
    valid_count: int = 0
    warning_count: int = 0
    expired_count: int = 0

    @property
    def total(self) -> int:
        return self.valid_count + self.warning_count + self.expired_count


@dataclass(frozen=True)
class TeamStatistics:
    """Indicateurs d'une équipe (tableau des équipes)."""
    equipe_id: int
    nom: str
    member_count: int
    valid_count: int
    warning_count: int
    expired_count: int
    mandatory_count: int
    compliance_rate: int
    status: FormationStatus

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PortfolioStatistics:
    """Indicateurs globaux sur un ensemble d'équipes."""
    total_teams: int
    total_members: int
    average_compliance: int
    compliant_teams: int
    at_risk_teams: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DashboardStatistics:
    """Compteurs du tableau de bord d'une entreprise."""
    total_utilisateurs: int
    total_equipes: int
    total_formations: int
    formations_expirees: int
    formations_a_renouveler: int
    utilisateurs_non_conformes: int
    equipes_non_conformes: int

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# RÈGLES DE BASE
# =============================================================================

def round_half_up(numerator: int, denominator: int) -> int:
    """Arrondi à l'entier le plus proche, 0.5 arrondi vers le haut."""
    return math.floor(Fraction(numerator, denominator) + Fraction(1, 2))


def worst_status(statuses: Iterable[FormationStatus]) -> FormationStatus:
    """Statut le plus grave d'une collection (vide => Valide)."""
    return max(statuses, key=lambda s: s.severity, default=FormationStatus.VALIDE)


def _reference(now: Optional[date]) -> date:
    # Figer la date une seule fois pour toute une agrégation
    return now if now is not None else today()


def user_status(formations: Iterable[FormationSnapshot], now: Optional[date] = None) -> FormationStatus:
    """Statut global d'un utilisateur à partir de ses formations."""
    reference = _reference(now)
    return worst_status(classify(f.date_expiration, reference) for f in formations)


def team_status(user_statuses: Iterable[FormationStatus]) -> FormationStatus:
    """Statut global d'une équipe à partir des statuts déjà calculés de ses membres."""
    return worst_status(user_statuses)


def equipe_status(equipe: EquipeSnapshot, now: Optional[date] = None) -> FormationStatus:
    reference = _reference(now)
    return team_status(user_status(m.formations, reference) for m in equipe.membres)


def compliance_rate(formations: Iterable[FormationSnapshot], now: Optional[date] = None) -> int:
    """
    Pourcentage de formations obligatoires valides.

    Returns:
        Entier entre 0 et 100 ; 100 s'il n'y a aucune formation obligatoire.
    """
    reference = _reference(now)
    mandatory = [f for f in formations if f.obligatoire]
    if not mandatory:
        return 100
    valid = sum(1 for f in mandatory if classify(f.date_expiration, reference) == FormationStatus.VALIDE)
    return round_half_up(100 * valid, len(mandatory))


def team_compliance_rate(members: Iterable[UtilisateurSnapshot], now: Optional[date] = None) -> int:
    """Taux de conformité d'une équipe : formations de tous les membres mises en commun."""
    pooled = [f for member in members for f in member.formations]
    return compliance_rate(pooled, now)


def count_statuses(formations: Iterable[FormationSnapshot], now: Optional[date] = None) -> StatusCounts:
    """Compte les formations (obligatoires ou non) par statut."""
    reference = _reference(now)
    counts = {status: 0 for status in FormationStatus}
    for formation in formations:
        counts[classify(formation.date_expiration, reference)] += 1
    return StatusCounts(
        valid_count=counts[FormationStatus.VALIDE],
        warning_count=counts[FormationStatus.A_RENOUVELER],
        expired_count=counts[FormationStatus.EXPIREE],
    )


def status_breakdown(counts: StatusCounts) -> Dict[str, int]:
    """
    Répartition en pourcentage par statut (graphique des équipes).

    Sans formation, l'équipe est affichée 100 % valide. Le dernier statut
    représenté absorbe l'écart d'arrondi : la somme vaut toujours 100.
    """
    total = counts.total
    if total == 0:
        return {
            FormationStatus.VALIDE.value: 100,
            FormationStatus.A_RENOUVELER.value: 0,
            FormationStatus.EXPIREE.value: 0,
        }
    buckets = [
        (FormationStatus.VALIDE.value, counts.valid_count),
        (FormationStatus.A_RENOUVELER.value, counts.warning_count),
        (FormationStatus.EXPIREE.value, counts.expired_count),
    ]
    breakdown = {key: round_half_up(100 * count, total) for key, count in buckets}
    last = [key for key, count in buckets if count][-1]
    breakdown[last] = 100 - sum(value for key, value in breakdown.items() if key != last)
    return breakdown


# =============================================================================
# INDICATEURS D'ÉQUIPES ET D'ENTREPRISE
# =============================================================================

def team_statistics(equipe: EquipeSnapshot, now: Optional[date] = None) -> TeamStatistics:
    reference = _reference(now)
    pooled = [f for member in equipe.membres for f in member.formations]
    counts = count_statuses(pooled, reference)
    return TeamStatistics(
        equipe_id=equipe.id,
        nom=equipe.nom,
        member_count=len(equipe.membres),
        valid_count=counts.valid_count,
        warning_count=counts.warning_count,
        expired_count=counts.expired_count,
        mandatory_count=sum(1 for f in pooled if f.obligatoire),
        compliance_rate=compliance_rate(pooled, reference),
        status=equipe_status(equipe, reference),
    )


def portfolio_statistics(
    stats: Sequence[TeamStatistics],
    compliant_threshold: Optional[int] = None,
    at_risk_threshold: Optional[int] = None,
) -> PortfolioStatistics:
    """
    Indicateurs globaux : moyenne des taux, équipes conformes et à risque.

    La moyenne vaut 0 quand il n'y a aucune équipe.
    """
    compliant = compliant_threshold if compliant_threshold is not None else settings.COMPLIANT_THRESHOLD
    at_risk = at_risk_threshold if at_risk_threshold is not None else settings.AT_RISK_THRESHOLD

    total_teams = len(stats)
    average = round_half_up(sum(s.compliance_rate for s in stats), total_teams) if total_teams else 0
    return PortfolioStatistics(
        total_teams=total_teams,
        total_members=sum(s.member_count for s in stats),
        average_compliance=average,
        compliant_teams=sum(1 for s in stats if s.compliance_rate >= compliant),
        at_risk_teams=sum(1 for s in stats if s.compliance_rate < at_risk),
    )


def dashboard_statistics(
    utilisateurs: Sequence[UtilisateurSnapshot],
    equipes: Sequence[EquipeSnapshot],
    now: Optional[date] = None,
) -> DashboardStatistics:
    """Compteurs du tableau de bord, tous dérivés du classificateur."""
    reference = _reference(now)
    formations = [f for u in utilisateurs for f in u.formations]
    counts = count_statuses(formations, reference)
    return DashboardStatistics(
        total_utilisateurs=len(utilisateurs),
        total_equipes=len(equipes),
        total_formations=len(formations),
        formations_expirees=counts.expired_count,
        formations_a_renouveler=counts.warning_count,
        utilisateurs_non_conformes=sum(
            1 for u in utilisateurs if user_status(u.formations, reference) != FormationStatus.VALIDE
        ),
        equipes_non_conformes=sum(
            1 for e in equipes if equipe_status(e, reference) != FormationStatus.VALIDE
        ),
    )
