"""
Classification du statut d'une formation.

Une formation est :
- "Expirée" si aujourd'hui est strictement après sa date d'expiration,
- "À renouveler" si aujourd'hui est strictement après (expiration - 1 mois),
- "Valide" sinon, ou si elle n'a pas de date d'expiration.

Le mois est un mois calendaire (31 mars - 1 mois = 28/29 février), pas
une durée fixe de 30 jours. Le jour même de l'expiration, la formation
n'est pas encore expirée.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional, Union
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from app.core.config import settings


DateLike = Union[date, datetime, str]


class FormationStatus(str, Enum):
    """Statuts d'une formation (valeurs exposées telles quelles dans l'API)."""
    VALIDE = "Valide"
    A_RENOUVELER = "À renouveler"
    EXPIREE = "Expirée"

    @property
    def severity(self) -> int:
        """Gravité du statut : plus la valeur est grande, plus c'est grave."""
        return _SEVERITY[self]


_SEVERITY = {
    FormationStatus.VALIDE: 0,
    FormationStatus.A_RENOUVELER: 1,
    FormationStatus.EXPIREE: 2,
}


def today(tz: Optional[str] = None) -> date:
    """Date du jour dans le fuseau configuré (Europe/Paris par défaut)."""
    return datetime.now(ZoneInfo(tz or settings.TIMEZONE)).date()


def as_date(value: DateLike, tz: Optional[str] = None) -> date:
    """
    Ramène une date, un datetime ou une chaîne ISO à un jour calendaire.

    Les datetime avec fuseau sont convertis dans le fuseau configuré
    avant d'en extraire le jour.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(tz or settings.TIMEZONE))
        return value.date()
    return value


def renewal_threshold(date_expiration: DateLike, warning_months: Optional[int] = None) -> date:
    """Date à partir de laquelle (strictement après) la formation est à renouveler."""
    months = warning_months if warning_months is not None else settings.RENEWAL_WARNING_MONTHS
    return as_date(date_expiration) - relativedelta(months=months)


def classify(
    date_expiration: Optional[DateLike],
    now: Optional[DateLike] = None,
    warning_months: Optional[int] = None,
) -> FormationStatus:
    """
    Calcule le statut d'une formation à partir de sa date d'expiration.

    Args:
        date_expiration: Date d'expiration (None = n'expire jamais)
        now: Date de référence (défaut : aujourd'hui, heure de Paris)
        warning_months: Fenêtre de renouvellement en mois (défaut : settings)

    Returns:
        FormationStatus

    Example:
        >>> classify(date(2024, 7, 15), now=date(2024, 6, 20))
        <FormationStatus.A_RENOUVELER: 'À renouveler'>
    """
    if date_expiration is None:
        return FormationStatus.VALIDE

    reference = as_date(now) if now is not None else today()
    expiration = as_date(date_expiration)

    if reference > expiration:
        return FormationStatus.EXPIREE
    if reference > renewal_threshold(expiration, warning_months):
        return FormationStatus.A_RENOUVELER
    return FormationStatus.VALIDE
