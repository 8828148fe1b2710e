"""
Fixtures pytest partagées pour les tests du suivi de conformité.

Ce module fournit :
- Une base de données SQLite en mémoire pour les tests (rapide, isolé)
- Un jeu de données de référence : deux entreprises, leurs équipes,
  salariés et formations
- Une factory de clients de test authentifiés en tant qu'un utilisateur donné

Date de référence figée : 15 juin 2024 (REFERENCE_DATE). À cette date :
- ouvrier Bernard : une formation valide, une à renouveler (1er juillet),
  une facultative sans expiration
- ouvrier Petit : une formation expirée (31 mars)
- ouvrier Roux : aucune formation
"""

from datetime import date
from typing import Callable, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.api.v1.dependencies import get_current_utilisateur, get_reference_date
from app.core.config import Settings
from app.database.base_class import Base
from app.database.session import get_db
from app.main import create_app
from app.models import Entreprise, Equipe, Formation, Utilisateur


REFERENCE_DATE = date(2024, 6, 15)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    """
    Crée un engine SQLite en mémoire pour les tests.

    Avantages :
    - Rapide (pas d'I/O disque)
    - Isolé (chaque test a sa propre base)
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,  # Mettre True pour debug SQL
    )

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """Fournit une session de base de données pour chaque test."""
    session = Session(bind=engine)
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# MODEL FIXTURES - Entreprises
# =============================================================================

@pytest.fixture
def entreprise(db_session: Session) -> Entreprise:
    """Entreprise principale (tenant A)."""
    entreprise = Entreprise(
        nom="BTP Construct",
        adresse="12 Rue des Entrepreneurs, 75000 Paris",
        telephone="0123456789",
        email="contact@btpconstruct.fr",
    )
    db_session.add(entreprise)
    db_session.flush()
    return entreprise


@pytest.fixture
def autre_entreprise(db_session: Session) -> Entreprise:
    """Seconde entreprise (tenant B), pour les tests d'isolation."""
    entreprise = Entreprise(
        nom="Echafaudage Pro",
        adresse="34 Avenue du Travail, 69000 Lyon",
        email="contact@echafaudagepro.com",
    )
    db_session.add(entreprise)
    db_session.flush()
    return entreprise


def _utilisateur(db_session: Session, entreprise: Entreprise, nom: str, prenom: str, role: str, suffixe: str) -> Utilisateur:
    utilisateur = Utilisateur(
        entreprise_id=entreprise.id,
        nom=nom,
        prenom=prenom,
        email=f"{prenom[0].lower()}.{nom.lower()}@{entreprise.nom.lower().replace(' ', '')}.fr",
        role=role,
        telephone=f"06789123{suffixe}",
        adresse=f"{suffixe} Rue de la Paix, 75000 Paris",
        num_securite_sociale=f"12345678901{suffixe}",
    )
    db_session.add(utilisateur)
    db_session.flush()
    return utilisateur


# =============================================================================
# MODEL FIXTURES - Utilisateurs (tenant A)
# =============================================================================

@pytest.fixture
def admin(db_session: Session, entreprise: Entreprise) -> Utilisateur:
    return _utilisateur(db_session, entreprise, "Dupont", "Jean", "admin", "45")


@pytest.fixture
def responsable(db_session: Session, entreprise: Entreprise) -> Utilisateur:
    """Représentant, responsable de l'équipe Nord."""
    return _utilisateur(db_session, entreprise, "Martin", "Luc", "representant", "46")


@pytest.fixture
def ouvrier(db_session: Session, entreprise: Entreprise) -> Utilisateur:
    """Ouvrier de l'équipe Nord (formation à renouveler)."""
    return _utilisateur(db_session, entreprise, "Bernard", "Pierre", "ouvrier", "47")


@pytest.fixture
def ouvrier_expire(db_session: Session, entreprise: Entreprise) -> Utilisateur:
    """Ouvrier de l'équipe Nord (formation expirée)."""
    return _utilisateur(db_session, entreprise, "Petit", "Jacques", "ouvrier", "48")


@pytest.fixture
def ouvrier_est(db_session: Session, entreprise: Entreprise) -> Utilisateur:
    """Ouvrier de l'équipe Est, sans formation."""
    return _utilisateur(db_session, entreprise, "Roux", "Julien", "ouvrier", "49")


@pytest.fixture
def representant(db_session: Session, entreprise: Entreprise) -> Utilisateur:
    """Représentant sans équipe."""
    return _utilisateur(db_session, entreprise, "Garnier", "Paul", "representant", "50")


# =============================================================================
# MODEL FIXTURES - Tenant B
# =============================================================================

@pytest.fixture
def admin_b(db_session: Session, autre_entreprise: Entreprise) -> Utilisateur:
    return _utilisateur(db_session, autre_entreprise, "Leroy", "Sophie", "admin", "55")


@pytest.fixture
def ouvrier_b(db_session: Session, autre_entreprise: Entreprise) -> Utilisateur:
    return _utilisateur(db_session, autre_entreprise, "Moreau", "Thomas", "ouvrier", "56")


# =============================================================================
# MODEL FIXTURES - Équipes et formations
# =============================================================================

@pytest.fixture
def equipe_nord(db_session: Session, entreprise, responsable, ouvrier, ouvrier_expire) -> Equipe:
    equipe = Equipe(
        entreprise_id=entreprise.id,
        nom="Équipe Nord",
        code="EQN",
        membres=[ouvrier, ouvrier_expire],
        responsables=[responsable],
    )
    db_session.add(equipe)
    db_session.flush()
    return equipe


@pytest.fixture
def equipe_est(db_session: Session, entreprise, ouvrier_est) -> Equipe:
    equipe = Equipe(
        entreprise_id=entreprise.id,
        nom="Équipe Est",
        code="EQE",
        membres=[ouvrier_est],
    )
    db_session.add(equipe)
    db_session.flush()
    return equipe


@pytest.fixture
def equipe_inactive(db_session: Session, entreprise) -> Equipe:
    equipe = Equipe(entreprise_id=entreprise.id, nom="Équipe Dissoute", actif=False)
    db_session.add(equipe)
    db_session.flush()
    return equipe


@pytest.fixture
def equipe_b(db_session: Session, autre_entreprise, admin_b, ouvrier_b) -> Equipe:
    equipe = Equipe(
        entreprise_id=autre_entreprise.id,
        nom="Équipe Sud",
        membres=[ouvrier_b],
        responsables=[admin_b],
    )
    db_session.add(equipe)
    db_session.flush()
    return equipe


def _formation(db_session: Session, utilisateur: Utilisateur, nom: str,
               expiration: Optional[date], obligatoire: bool = True) -> Formation:
    formation = Formation(
        utilisateur=utilisateur,
        entreprise_id=utilisateur.entreprise_id,
        nom=nom,
        type_formation=nom,
        date_delivrance=date(2023, 1, 15),
        date_expiration=expiration,
        obligatoire=obligatoire,
    )
    db_session.add(formation)
    db_session.flush()
    return formation


@pytest.fixture
def formations(db_session: Session, ouvrier, ouvrier_expire, ouvrier_b) -> dict:
    """Formations du jeu de référence, indexées par libellé."""
    return {
        "montage": _formation(db_session, ouvrier, "Montage échafaudage", date(2025, 12, 31)),
        "hauteur": _formation(db_session, ouvrier, "Sécurité en hauteur", date(2024, 7, 1)),
        "sst": _formation(db_session, ouvrier, "Sauveteur secouriste", None, obligatoire=False),
        "gestes": _formation(db_session, ouvrier_expire, "Gestes et postures", date(2024, 3, 31)),
        "caces": _formation(db_session, ouvrier_b, "CACES R408", date(2024, 6, 14)),
    }


@pytest.fixture
def jeu_complet(
    admin, responsable, ouvrier, ouvrier_expire, ouvrier_est, representant,
    equipe_nord, equipe_est, equipe_inactive, equipe_b, formations,
):
    """Active l'ensemble du jeu de référence (deux entreprises)."""
    return None


# =============================================================================
# CLIENT FIXTURES
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    return Settings(ENVIRONMENT="test", DATABASE_URL="sqlite://", LOG_LEVEL="WARNING")


@pytest.fixture
def make_client(
    engine, db_session: Session, test_settings: Settings
) -> Generator[Callable[[Optional[Utilisateur]], TestClient], None, None]:
    """
    Factory de clients de test.

    Chaque appel construit une application dont les dépendances sont
    surchargées : session de test, utilisateur courant (None = non
    authentifié) et date de référence figée.

    Usage:
        client = make_client(admin)
        response = client.get("/api/v1/equipes")
    """
    clients = []

    def override_get_db():
        yield db_session

    def factory(utilisateur: Optional[Utilisateur]) -> TestClient:
        db_session.flush()
        app = create_app(config=test_settings, engine=engine)
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_current_utilisateur] = lambda: utilisateur
        app.dependency_overrides[get_reference_date] = lambda: REFERENCE_DATE
        client = TestClient(app)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()
