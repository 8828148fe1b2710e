"""Export CSV des employés avec la répartition de leurs formations par statut."""

import csv
import io
from datetime import date
from typing import Optional, Sequence

from app.services.formation.aggregation import count_statuses
from app.services.formation.status import today
from app.services.snapshots import UtilisateurSnapshot


CSV_HEADER = [
    "Nom",
    "Prénom",
    "Email",
    "Rôle",
    "Équipe",
    "Formations valides",
    "Formations à renouveler",
    "Formations expirées",
]

SANS_EQUIPE = "Sans équipe"


def export_utilisateurs_csv(utilisateurs: Sequence[UtilisateurSnapshot], now: Optional[date] = None) -> str:
    """
    Génère le CSV des employés, trié par nom.

    Toutes les valeurs sont entre guillemets ; les équipes d'un employé
    sont séparées par " / ".
    """
    reference = now if now is not None else today()
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for utilisateur in sorted(utilisateurs, key=lambda u: (u.nom, u.prenom)):
        counts = count_statuses(utilisateur.formations, reference)
        equipes = " / ".join(e.nom for e in utilisateur.equipes_membre) or SANS_EQUIPE
        writer.writerow([
            utilisateur.nom,
            utilisateur.prenom,
            utilisateur.email,
            utilisateur.role,
            equipes,
            counts.valid_count,
            counts.warning_count,
            counts.expired_count,
        ])

    return buffer.getvalue()
