"""
Tests API pour le module Utilisateur.

Ce module teste les endpoints :
- /api/v1/utilisateurs : Liste filtrée, création
- /api/v1/utilisateurs/{id} : Détail, modification, suppression
- /api/v1/utilisateurs/{id}/formations : Formations avec statuts
- /api/v1/utilisateurs/export : Export CSV

Authentification mockée via la factory make_client (voir conftest).
"""

import csv
import io

import pytest
from fastapi import status


BASE = "/api/v1/utilisateurs"


@pytest.fixture(autouse=True)
def _jeu(jeu_complet):
    return jeu_complet


# =============================================================================
# LECTURE
# =============================================================================

class TestGetUtilisateur:
    """Tests de GET /utilisateurs/{id}."""

    def test_admin_gets_full_view(self, make_client, admin, ouvrier):
        response = make_client(admin).get(f"{BASE}/{ouvrier.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["vue"] == "complete"
        assert data["telephone"] == ouvrier.telephone
        assert data["num_securite_sociale"] == ouvrier.num_securite_sociale
        assert len(data["formations"]) == 3
        assert data["statut"] == "À renouveler"
        assert data["taux_conformite"] == 50

    def test_representant_gets_public_view(self, make_client, representant, ouvrier):
        response = make_client(representant).get(f"{BASE}/{ouvrier.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["vue"] == "publique"
        assert "telephone" not in data
        assert "adresse" not in data
        assert "num_securite_sociale" not in data
        assert [f["nom"] for f in data["formations"]] == ["Montage échafaudage", "Sécurité en hauteur"]
        assert [f["statut"] for f in data["formations"]] == ["Valide", "À renouveler"]

    def test_team_lead_gets_full_view(self, make_client, responsable, ouvrier):
        data = make_client(responsable).get(f"{BASE}/{ouvrier.id}").json()
        assert data["vue"] == "complete"

    def test_self_gets_full_view(self, make_client, ouvrier):
        data = make_client(ouvrier).get(f"{BASE}/{ouvrier.id}").json()
        assert data["vue"] == "complete"
        assert data["adresse"] == ouvrier.adresse

    def test_other_tenant_forbidden(self, make_client, admin_b, ouvrier):
        response = make_client(admin_b).get(f"{BASE}/{ouvrier.id}")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {"detail": "Accès non autorisé à cette entreprise", "code": "wrong_tenant"}

    def test_unauthenticated(self, make_client, ouvrier):
        response = make_client(None).get(f"{BASE}/{ouvrier.id}")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "unauthenticated"

    def test_not_found(self, make_client, admin):
        response = make_client(admin).get(f"{BASE}/99999")
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestListUtilisateurs:
    """Tests de GET /utilisateurs."""

    def test_list_own_tenant_sorted(self, make_client, admin):
        response = make_client(admin).get(BASE)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 6
        assert [u["nom"] for u in data["items"]] == ["Bernard", "Dupont", "Garnier", "Martin", "Petit", "Roux"]
        assert all(u["vue"] == "complete" for u in data["items"])

    def test_list_pagination(self, make_client, admin):
        data = make_client(admin).get(f"{BASE}?page=2&size=4").json()

        assert data["page"] == 2
        assert data["pages"] == 2
        assert [u["nom"] for u in data["items"]] == ["Petit", "Roux"]

    def test_list_views_depend_on_relation(self, make_client, responsable):
        items = make_client(responsable).get(BASE).json()["items"]
        vues = {u["nom"]: u["vue"] for u in items}

        assert vues["Bernard"] == "complete"    # membre de son équipe
        assert vues["Martin"] == "complete"     # lui-même
        assert vues["Roux"] == "publique"
        assert vues["Dupont"] == "publique"

    def test_list_unauthenticated(self, make_client):
        assert make_client(None).get(BASE).status_code == status.HTTP_401_UNAUTHORIZED


class TestUtilisateurFormations:
    """Tests de GET /utilisateurs/{id}/formations."""

    def test_self(self, make_client, ouvrier):
        response = make_client(ouvrier).get(f"{BASE}/{ouvrier.id}/formations")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["statut"] == "À renouveler"
        assert data["taux_conformite"] == 50
        assert {f["nom"]: f["statut"] for f in data["formations"]} == {
            "Montage échafaudage": "Valide",
            "Sécurité en hauteur": "À renouveler",
            "Sauveteur secouriste": "Valide",
        }

    def test_colleague_forbidden(self, make_client, ouvrier_expire, ouvrier):
        response = make_client(ouvrier_expire).get(f"{BASE}/{ouvrier.id}/formations")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "insufficient_role"

    def test_lead_allowed(self, make_client, responsable, ouvrier_expire):
        data = make_client(responsable).get(f"{BASE}/{ouvrier_expire.id}/formations").json()
        assert data["statut"] == "Expirée"
        assert data["taux_conformite"] == 0

    def test_other_tenant_forbidden(self, make_client, admin_b, ouvrier):
        response = make_client(admin_b).get(f"{BASE}/{ouvrier.id}/formations")
        assert response.json()["code"] == "wrong_tenant"


class TestExport:
    """Tests de GET /utilisateurs/export."""

    def test_admin_export(self, make_client, admin):
        response = make_client(admin).get(f"{BASE}/export")

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/csv")
        assert "employes.csv" in response.headers["content-disposition"]

        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][0] == "Nom"
        assert len(rows) == 7
        assert rows[1] == ["Bernard", "Pierre", "p.bernard@btpconstruct.fr", "ouvrier", "Équipe Nord", "2", "1", "0"]
        assert rows[6][4] == "Équipe Est"

    def test_export_excludes_other_tenant(self, make_client, admin):
        content = make_client(admin).get(f"{BASE}/export").text
        assert "Moreau" not in content

    def test_representant_forbidden(self, make_client, responsable):
        response = make_client(responsable).get(f"{BASE}/export")
        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# MODIFICATION
# =============================================================================

class TestUpdateUtilisateur:
    """Tests de PATCH /utilisateurs/{id}."""

    def test_self_updates_profile(self, make_client, ouvrier):
        response = make_client(ouvrier).patch(f"{BASE}/{ouvrier.id}", json={"telephone": "0600000000"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["telephone"] == "0600000000"

    def test_self_cannot_change_role(self, make_client, ouvrier):
        response = make_client(ouvrier).patch(f"{BASE}/{ouvrier.id}", json={"role": "admin"})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "insufficient_role"

    def test_admin_changes_role(self, make_client, admin, ouvrier):
        response = make_client(admin).patch(f"{BASE}/{ouvrier.id}", json={"role": "representant"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["role"] == "representant"

    def test_colleague_cannot_update(self, make_client, ouvrier_expire, ouvrier):
        response = make_client(ouvrier_expire).patch(f"{BASE}/{ouvrier.id}", json={"nom": "Autre"})
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_other_tenant_cannot_update(self, make_client, admin_b, ouvrier):
        response = make_client(admin_b).patch(f"{BASE}/{ouvrier.id}", json={"nom": "Autre"})
        assert response.json()["code"] == "wrong_tenant"

    @pytest.mark.parametrize("payload", [
        {"role": "chef"},
        {"nom": "A"},
        {"email": "pas-un-email"},
        {"nom": None},
        {"num_securite_sociale": "12345ABCDE123"},
    ])
    def test_invalid_payload(self, make_client, admin, ouvrier, payload):
        response = make_client(admin).patch(f"{BASE}/{ouvrier.id}", json=payload)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_member_and_lead_of_same_team_rejected(self, make_client, admin, ouvrier, equipe_nord):
        response = make_client(admin).patch(
            f"{BASE}/{ouvrier.id}",
            json={"equipes_membre_ids": [equipe_nord.id], "equipes_responsable_ids": [equipe_nord.id]},
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_lead_of_existing_membership_rejected(self, make_client, admin, ouvrier, equipe_nord):
        """Déjà membre de l'équipe Nord : ne peut pas en devenir responsable."""
        response = make_client(admin).patch(
            f"{BASE}/{ouvrier.id}", json={"equipes_responsable_ids": [equipe_nord.id]}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_duplicate_email(self, make_client, admin, ouvrier, ouvrier_expire):
        response = make_client(admin).patch(f"{BASE}/{ouvrier.id}", json={"email": ouvrier_expire.email})
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_admin_assigns_teams(self, make_client, admin, ouvrier, equipe_nord, equipe_est):
        response = make_client(admin).patch(
            f"{BASE}/{ouvrier.id}", json={"equipes_membre_ids": [equipe_nord.id, equipe_est.id]}
        )

        assert response.status_code == status.HTTP_200_OK
        assert {e["nom"] for e in response.json()["equipes_membre"]} == {"Équipe Nord", "Équipe Est"}

    def test_foreign_team_rejected(self, make_client, admin, ouvrier, equipe_b):
        response = make_client(admin).patch(f"{BASE}/{ouvrier.id}", json={"equipes_membre_ids": [equipe_b.id]})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_team_rejected(self, make_client, admin, ouvrier):
        response = make_client(admin).patch(f"{BASE}/{ouvrier.id}", json={"equipes_membre_ids": [99999]})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_lead_removes_member_from_own_team(self, make_client, responsable, ouvrier):
        response = make_client(responsable).patch(f"{BASE}/{ouvrier.id}", json={"equipes_membre_ids": []})

        assert response.status_code == status.HTTP_200_OK
        # Plus membre de l'équipe du responsable : vue publique
        assert response.json()["vue"] == "publique"
        assert response.json()["equipes_membre"] == []

    def test_lead_cannot_assign_to_team_not_led(self, make_client, responsable, ouvrier, equipe_nord, equipe_est):
        response = make_client(responsable).patch(
            f"{BASE}/{ouvrier.id}", json={"equipes_membre_ids": [equipe_nord.id, equipe_est.id]}
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_lead_cannot_assign_non_member(self, make_client, responsable, ouvrier_est, equipe_nord):
        response = make_client(responsable).patch(
            f"{BASE}/{ouvrier_est.id}", json={"equipes_membre_ids": [equipe_nord.id]}
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_lead_cannot_edit_profile(self, make_client, responsable, ouvrier):
        response = make_client(responsable).patch(f"{BASE}/{ouvrier.id}", json={"telephone": "0600000000"})
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestLeadDesignation:
    """Désignation des responsables d'équipe via PATCH /utilisateurs/{id}."""

    def test_lead_cannot_promote_member_to_lead(self, make_client, responsable, ouvrier, equipe_nord):
        response = make_client(responsable).patch(
            f"{BASE}/{ouvrier.id}",
            json={"equipes_membre_ids": [], "equipes_responsable_ids": [equipe_nord.id]},
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "insufficient_role"

    def test_member_still_sees_colleague_public_view(self, make_client, responsable, ouvrier, ouvrier_expire,
                                                     equipe_nord):
        make_client(responsable).patch(
            f"{BASE}/{ouvrier.id}",
            json={"equipes_membre_ids": [], "equipes_responsable_ids": [equipe_nord.id]},
        )

        data = make_client(ouvrier).get(f"{BASE}/{ouvrier_expire.id}").json()
        assert data["vue"] == "publique"
        assert "num_securite_sociale" not in data

    def test_ouvrier_cannot_become_lead(self, make_client, admin, ouvrier_est, equipe_nord):
        response = make_client(admin).patch(
            f"{BASE}/{ouvrier_est.id}", json={"equipes_responsable_ids": [equipe_nord.id]}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "représentants" in response.json()["detail"]

    def test_promotion_with_role_change_accepted(self, make_client, admin, ouvrier_est, equipe_nord):
        response = make_client(admin).patch(
            f"{BASE}/{ouvrier_est.id}",
            json={"role": "representant", "equipes_responsable_ids": [equipe_nord.id]},
        )

        assert response.status_code == status.HTTP_200_OK
        assert [e["nom"] for e in response.json()["equipes_responsable"]] == ["Équipe Nord"]

    def test_demoting_lead_rejected(self, make_client, admin, responsable):
        response = make_client(admin).patch(f"{BASE}/{responsable.id}", json={"role": "ouvrier"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_admin_designates_representant(self, make_client, admin, representant, equipe_est):
        response = make_client(admin).patch(
            f"{BASE}/{representant.id}", json={"equipes_responsable_ids": [equipe_est.id]}
        )

        assert response.status_code == status.HTTP_200_OK
        assert [e["nom"] for e in response.json()["equipes_responsable"]] == ["Équipe Est"]

    def test_null_team_list_rejected(self, make_client, admin, ouvrier):
        response = make_client(admin).patch(f"{BASE}/{ouvrier.id}", json={"equipes_membre_ids": None})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# =============================================================================
# CRÉATION
# =============================================================================

class TestCreateUtilisateur:
    """Tests de POST /utilisateurs."""

    @staticmethod
    def _payload(**overrides) -> dict:
        payload = {
            "nom": "Lefebvre",
            "prenom": "Marc",
            "email": "m.lefebvre@btpconstruct.fr",
            "telephone": "0678912399",
        }
        payload.update(overrides)
        return payload

    def test_admin_creates_ouvrier(self, make_client, admin, entreprise, equipe_est):
        response = make_client(admin).post(BASE, json=self._payload(equipes_membre_ids=[equipe_est.id]))

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["vue"] == "complete"
        assert data["entreprise_id"] == entreprise.id
        assert data["role"] == "ouvrier"
        assert data["telephone"] == "0678912399"
        assert [e["nom"] for e in data["equipes_membre"]] == ["Équipe Est"]
        assert data["formations"] == []
        assert data["statut"] == "Valide"

    def test_created_user_is_listed(self, make_client, admin):
        client = make_client(admin)
        client.post(BASE, json=self._payload())

        assert client.get(BASE).json()["total"] == 7

    def test_admin_creates_lead(self, make_client, admin, equipe_est):
        response = make_client(admin).post(
            BASE, json=self._payload(role="representant", equipes_responsable_ids=[equipe_est.id])
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert [e["nom"] for e in response.json()["equipes_responsable"]] == ["Équipe Est"]

    def test_ouvrier_lead_rejected(self, make_client, admin, equipe_est):
        response = make_client(admin).post(BASE, json=self._payload(equipes_responsable_ids=[equipe_est.id]))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_foreign_team_rejected(self, make_client, admin, equipe_b):
        response = make_client(admin).post(BASE, json=self._payload(equipes_membre_ids=[equipe_b.id]))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_duplicate_email(self, make_client, admin, ouvrier):
        response = make_client(admin).post(BASE, json=self._payload(email=ouvrier.email))
        assert response.status_code == status.HTTP_409_CONFLICT

    @pytest.mark.parametrize("overrides", [
        {"email": None},
        {"nom": " A "},
        {"role": "chef"},
        {"equipes_membre_ids": [1], "equipes_responsable_ids": [1]},
    ])
    def test_invalid_payload(self, make_client, admin, overrides):
        response = make_client(admin).post(BASE, json=self._payload(**overrides))
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_representant_cannot_create(self, make_client, responsable):
        response = make_client(responsable).post(BASE, json=self._payload())

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "insufficient_role"

    def test_unauthenticated(self, make_client):
        assert make_client(None).post(BASE, json=self._payload()).status_code == status.HTTP_401_UNAUTHORIZED


class TestDeleteUtilisateur:
    """Tests de DELETE /utilisateurs/{id}."""

    def test_admin_deletes(self, make_client, admin, ouvrier_est):
        client = make_client(admin)
        response = client.delete(f"{BASE}/{ouvrier_est.id}")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"{BASE}/{ouvrier_est.id}").status_code == status.HTTP_404_NOT_FOUND

    def test_representant_cannot_delete(self, make_client, responsable, ouvrier):
        response = make_client(responsable).delete(f"{BASE}/{ouvrier.id}")
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_other_tenant_cannot_delete(self, make_client, admin_b, ouvrier):
        response = make_client(admin_b).delete(f"{BASE}/{ouvrier.id}")
        assert response.json()["code"] == "wrong_tenant"
