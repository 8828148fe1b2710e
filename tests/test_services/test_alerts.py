"""
Tests de la planification des alertes de renouvellement.
"""

from datetime import date

from app.services.formation.alerts import AlertKind, format_date_fr, plan_renewal_alerts
from app.services.snapshots import EquipeRef, EquipeSnapshot, FormationSnapshot, UtilisateurSnapshot


NOW = date(2024, 6, 15)


def _user(uid, *formations, equipes=()):
    return UtilisateurSnapshot(
        id=uid, entreprise_id=1, nom=f"Nom{uid}", prenom=f"Prenom{uid}",
        email=f"u{uid}@test.fr", role="ouvrier",
        formations=tuple(formations),
        equipes_membre=tuple(EquipeRef(id=e, nom=f"Équipe {e}") for e in equipes),
    )


def _lead(uid):
    return UtilisateurSnapshot(id=uid, entreprise_id=1, nom=f"Chef{uid}", prenom="X",
                               email=f"c{uid}@test.fr", role="representant")


class TestFormatDate:

    def test_french_format(self):
        assert format_date_fr(date(2024, 3, 5)) == "05 mars 2024"
        assert format_date_fr(date(2024, 12, 31)) == "31 décembre 2024"


class TestPlanRenewalAlerts:

    def test_valid_formations_produce_no_alert(self):
        user = _user(1, FormationSnapshot(id=10, nom="Montage", date_expiration=date(2026, 1, 1)),
                     FormationSnapshot(id=11, nom="SST", date_expiration=None))
        assert plan_renewal_alerts([user], [], NOW) == []

    def test_owner_alerts(self):
        user = _user(
            1,
            FormationSnapshot(id=10, nom="Hauteur", date_expiration=date(2024, 7, 1)),
            FormationSnapshot(id=11, nom="Gestes", date_expiration=date(2024, 3, 31)),
        )
        alerts = plan_renewal_alerts([user], [], NOW)

        assert [(a.destinataire_id, a.formation_id, a.kind) for a in alerts] == [
            (1, 10, AlertKind.EXPIRING_SOON),
            (1, 11, AlertKind.EXPIRED),
        ]
        assert alerts[0].message == 'Votre formation "Hauteur" expire le 01 juillet 2024'
        assert alerts[1].message == 'Votre formation "Gestes" est expirée depuis le 31 mars 2024'
        assert all(a.employee_id is None for a in alerts)

    def test_team_leads_are_notified(self):
        user = _user(1, FormationSnapshot(id=10, nom="Gestes", date_expiration=date(2024, 3, 31)), equipes=[5])
        team = EquipeSnapshot(id=5, entreprise_id=1, nom="Équipe 5", responsables=(_lead(9), _lead(8)))

        alerts = plan_renewal_alerts([user], [team], NOW)

        assert [a.destinataire_id for a in alerts] == [1, 8, 9]
        lead_alert = alerts[1]
        assert lead_alert.employee_id == 1
        assert lead_alert.kind == AlertKind.EXPIRED
        assert lead_alert.message == 'La formation "Gestes" de Prenom1 Nom1 est expirée depuis le 31 mars 2024'

    def test_lead_not_notified_twice_for_own_formation(self):
        lead = UtilisateurSnapshot(
            id=9, entreprise_id=1, nom="Chef", prenom="Luc", email="c@test.fr", role="representant",
            formations=(FormationSnapshot(id=10, nom="Hauteur", date_expiration=date(2024, 7, 1)),),
            equipes_membre=(EquipeRef(id=5, nom="Équipe 5"),),
        )
        team = EquipeSnapshot(id=5, entreprise_id=1, nom="Équipe 5", responsables=(lead,))

        alerts = plan_renewal_alerts([lead], [team], NOW)
        assert [a.destinataire_id for a in alerts] == [9]

    def test_lead_of_several_teams_notified_once(self):
        user = _user(1, FormationSnapshot(id=10, nom="Hauteur", date_expiration=date(2024, 7, 1)), equipes=[5, 6])
        teams = [
            EquipeSnapshot(id=5, entreprise_id=1, nom="Équipe 5", responsables=(_lead(9),)),
            EquipeSnapshot(id=6, entreprise_id=1, nom="Équipe 6", responsables=(_lead(9),)),
        ]
        alerts = plan_renewal_alerts([user], teams, NOW)
        assert [a.destinataire_id for a in alerts] == [1, 9]

    def test_expiration_day_is_expiring_soon(self):
        user = _user(1, FormationSnapshot(id=10, nom="Hauteur", date_expiration=NOW))
        alerts = plan_renewal_alerts([user], [], NOW)
        assert alerts[0].kind == AlertKind.EXPIRING_SOON
