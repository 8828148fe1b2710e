"""
Initialisation de la base de données.
Crée les tables puis insère un jeu de démonstration (deux entreprises,
équipes, salariés et formations).

Usage:
    python -m app.database.init_db
    python -m app.database.init_db --drop
"""

import argparse
import logging
import sys
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.core.config import settings
from app.database.session import check_database_connection, create_db_engine, create_session_factory
from app.models import Base, Entreprise, Equipe, Formation, Utilisateur

logger = logging.getLogger(__name__)


# =============================================================================
# 1. CRÉATION DES TABLES
# =============================================================================

def create_all_tables(engine: Engine) -> None:
    """Crée toutes les tables enregistrées dans Base.metadata."""
    logger.info("📦 Création des tables...")
    Base.metadata.create_all(bind=engine)
    table_names = sorted(Base.metadata.tables.keys())
    logger.info(f"✅ {len(table_names)} tables créées : {', '.join(table_names)}")


def drop_all_tables(engine: Engine) -> None:
    """
    Supprime toutes les tables.

    ⚠️ ATTENTION : Cette action est irréversible !
    """
    logger.warning("❗️ Suppression de toutes les tables...")
    Base.metadata.drop_all(bind=engine)
    logger.info("✅ Toutes les tables ont été supprimées")


# =============================================================================
# 2. DONNÉES DE DÉMONSTRATION
# =============================================================================

def _utilisateur(entreprise: Entreprise, nom: str, prenom: str, email: str, role: str, suffixe: str) -> Utilisateur:
    return Utilisateur(
        entreprise=entreprise,
        nom=nom,
        prenom=prenom,
        email=email,
        role=role,
        telephone=f"06789123{suffixe}",
        num_securite_sociale=f"12345678901{suffixe}",
    )


def seed_demo_data(db: Session) -> Optional[Entreprise]:
    """
    Insère le jeu de démonstration.

    Ne fait rien si des entreprises existent déjà.

    Returns:
        La première entreprise créée, ou None si la base était déjà initialisée
    """
    if db.scalar(select(Entreprise.id).limit(1)) is not None:
        logger.info("⏭️ Données déjà présentes, initialisation ignorée")
        return None

    btp = Entreprise(
        nom="BTP Construct",
        adresse="12 Rue des Entrepreneurs, 75000 Paris",
        telephone="0123456789",
        email="contact@btpconstruct.fr",
    )
    echafaudage = Entreprise(
        nom="Echafaudage Pro",
        adresse="34 Avenue du Travail, 69000 Lyon",
        telephone="0456789123",
        email="contact@echafaudagepro.com",
    )
    db.add_all([btp, echafaudage])

    admin1 = _utilisateur(btp, "Dupont", "Jean", "j.dupont@btpconstruct.fr", "admin", "45")
    representant1 = _utilisateur(btp, "Martin", "Luc", "l.martin@btpconstruct.fr", "representant", "46")
    ouvrier1 = _utilisateur(btp, "Bernard", "Pierre", "p.bernard@btpconstruct.fr", "ouvrier", "47")
    ouvrier2 = _utilisateur(btp, "Petit", "Jacques", "j.petit@btpconstruct.fr", "ouvrier", "48")
    admin2 = _utilisateur(echafaudage, "Leroy", "Sophie", "s.leroy@echafaudagepro.com", "admin", "55")
    ouvrier3 = _utilisateur(echafaudage, "Moreau", "Thomas", "t.moreau@echafaudagepro.com", "ouvrier", "56")
    db.add_all([admin1, representant1, ouvrier1, ouvrier2, admin2, ouvrier3])

    db.add_all([
        Equipe(
            entreprise=btp,
            nom="Équipe Montage Nord",
            code="EQMN2023",
            adresse="Chantier Tour Eiffel, 75000 Paris",
            membres=[ouvrier1, ouvrier2],
            responsables=[representant1, admin1],
        ),
        Equipe(
            entreprise=echafaudage,
            nom="Équipe Sud",
            code="EQS2023",
            adresse="Chantier Part-Dieu, 69000 Lyon",
            membres=[ouvrier3],
            responsables=[admin2],
        ),
    ])

    db.add_all([
        Formation(
            utilisateur=ouvrier1,
            entreprise=btp,
            type_formation="Montage échafaudage",
            nom="Formation initiale montage échafaudage",
            description="Formation obligatoire pour tous les nouveaux monteurs",
            date_delivrance=date(2023, 1, 15),
            date_expiration=date(2025, 12, 31),
            validite=24,
            obligatoire=True,
        ),
        Formation(
            utilisateur=representant1,
            entreprise=btp,
            type_formation="Sécurité en hauteur",
            nom="Formation sécurité travaux en hauteur",
            description="Rappel annuel des procédures de sécurité",
            date_delivrance=date(2023, 6, 15),
            date_expiration=date(2024, 6, 30),
            validite=12,
            obligatoire=True,
        ),
        Formation(
            utilisateur=ouvrier2,
            entreprise=btp,
            type_formation="Gestes et postures",
            nom="Formation gestes et postures",
            description="Prévention des TMS",
            date_delivrance=date(2023, 3, 10),
            date_expiration=date(2024, 3, 31),
            validite=12,
            obligatoire=True,
        ),
        Formation(
            utilisateur=ouvrier3,
            entreprise=echafaudage,
            type_formation="SST",
            nom="Sauveteur secouriste du travail",
            date_delivrance=date(2024, 2, 1),
            obligatoire=False,
        ),
    ])

    db.commit()
    logger.info("✅ Jeu de démonstration créé (2 entreprises, 6 utilisateurs, 2 équipes, 4 formations)")
    return btp


# =============================================================================
# 3. ORCHESTRATION
# =============================================================================

def init_database(database_url: Optional[str] = None, drop_existing: bool = False) -> bool:
    """
    Initialise complètement la base.

    Returns:
        True si succès, False sinon
    """
    config = settings.model_copy(update={"DATABASE_URL": database_url}) if database_url else settings
    engine = create_db_engine(config)

    if not check_database_connection(engine):
        return False

    if drop_existing:
        drop_all_tables(engine)
    create_all_tables(engine)

    session_factory = create_session_factory(engine)
    with session_factory() as db:
        seed_demo_data(db)

    engine.dispose()
    logger.info("🚀 Prochaine étape : uvicorn app.main:app --reload")
    return True


# =============================================================================
# 4. POINT D'ENTRÉE CLI
# =============================================================================

def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Initialise la base de données (tables + données de démonstration)"
    )
    parser.add_argument(
        '--drop',
        action='store_true',
        help="Supprime les tables existantes avant création (ATTENTION !)"
    )
    parser.add_argument(
        '--database-url',
        default=None,
        help="URL de la base (défaut: DATABASE_URL de la configuration)"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    success = init_database(database_url=args.database_url, drop_existing=args.drop)
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
