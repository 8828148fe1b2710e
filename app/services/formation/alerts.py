"""
Planification des alertes de renouvellement.

Pour chaque formation expirée ou à renouveler, une alerte est destinée au
titulaire et une à chaque responsable des équipes dont il est membre.
Le module calcule les alertes ; leur envoi relève d'un autre service.

Le jour même de l'expiration produit une alerte `expiring_soon`, alors que
l'ancien traitement planifié n'envoyait rien ce jour-là.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence

from app.services.formation.status import FormationStatus, classify, today
from app.services.snapshots import EquipeSnapshot, FormationSnapshot, UtilisateurSnapshot


MOIS = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]


class AlertKind(str, Enum):
    """Type d'alerte."""
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"


@dataclass(frozen=True)
class RenewalAlert:
    """
    Alerte à envoyer à un utilisateur.

    Attributes:
        destinataire_id: Utilisateur à prévenir
        employee_id: Titulaire de la formation quand l'alerte est adressée
            à un responsable d'équipe, None sinon
    """
    destinataire_id: int
    formation_id: Optional[int]
    kind: AlertKind
    message: str
    date_expiration: date
    employee_id: Optional[int] = None


def format_date_fr(value: date) -> str:
    """Formate une date en "05 mars 2024"."""
    return f"{value.day:02d} {MOIS[value.month - 1]} {value.year}"


def _owner_message(formation: FormationSnapshot, kind: AlertKind) -> str:
    when = format_date_fr(formation.date_expiration)
    if kind == AlertKind.EXPIRED:
        return f'Votre formation "{formation.nom}" est expirée depuis le {when}'
    return f'Votre formation "{formation.nom}" expire le {when}'


def _lead_message(formation: FormationSnapshot, owner: UtilisateurSnapshot, kind: AlertKind) -> str:
    when = format_date_fr(formation.date_expiration)
    if kind == AlertKind.EXPIRED:
        return f'La formation "{formation.nom}" de {owner.nom_complet} est expirée depuis le {when}'
    return f'La formation "{formation.nom}" de {owner.nom_complet} expire le {when}'


def plan_renewal_alerts(
    utilisateurs: Sequence[UtilisateurSnapshot],
    equipes: Sequence[EquipeSnapshot],
    now: Optional[date] = None,
) -> List[RenewalAlert]:
    """
    Calcule les alertes de renouvellement d'une entreprise.

    Args:
        utilisateurs: Utilisateurs avec leurs formations
        equipes: Équipes (pour retrouver les responsables)
        now: Date de référence (défaut : aujourd'hui)

    Returns:
        Liste d'alertes, dans l'ordre des utilisateurs puis des formations
    """
    reference = now if now is not None else today()
    leads_by_team = {e.id: e.responsable_ids for e in equipes}
    alerts: List[RenewalAlert] = []

    for utilisateur in utilisateurs:
        leads = set().union(*(leads_by_team.get(t, frozenset()) for t in utilisateur.equipes_membre_ids))
        leads.discard(utilisateur.id)

        for formation in utilisateur.formations:
            status = classify(formation.date_expiration, reference)
            if status == FormationStatus.VALIDE:
                continue
            kind = AlertKind.EXPIRED if status == FormationStatus.EXPIREE else AlertKind.EXPIRING_SOON

            alerts.append(RenewalAlert(
                destinataire_id=utilisateur.id,
                formation_id=formation.id,
                kind=kind,
                message=_owner_message(formation, kind),
                date_expiration=formation.date_expiration,
            ))
            for lead_id in sorted(leads):
                alerts.append(RenewalAlert(
                    destinataire_id=lead_id,
                    formation_id=formation.id,
                    kind=kind,
                    message=_lead_message(formation, utilisateur, kind),
                    date_expiration=formation.date_expiration,
                    employee_id=utilisateur.id,
                ))

    return alerts
