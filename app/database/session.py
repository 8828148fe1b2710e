"""
Configuration de la session SQLAlchemy.
Fournit la création de l'engine, la factory de sessions, et la dependency FastAPI.

L'engine n'est pas un singleton de module : il est créé par l'application
(create_app) et rangé dans app.state, ce qui permet aux tests d'injecter
leur propre base.
"""
import logging
from typing import Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


# === 1. ENGINE ===

def create_db_engine(config: Optional[Settings] = None) -> Engine:
    """
    Crée l'engine à partir de la configuration.

    SQLite : autorise l'usage multi-thread (serveur ASGI / TestClient).
    Autres bases : pool avec vérification des connexions.
    """
    config = config or default_settings

    if config.is_sqlite:
        return create_engine(
            config.DATABASE_URL,
            connect_args={"check_same_thread": False},
            echo=False,
        )

    return create_engine(
        config.DATABASE_URL,
        pool_size=5,              # Nombre de connexions permanentes
        max_overflow=10,          # Connexions supplémentaires si besoin
        pool_recycle=1800,        # Recycler les connexions après 30 min
        pool_pre_ping=True,       # Vérifier que la connexion est vivante
        echo=False,
    )


# === 2. FACTORY DE SESSIONS ===

def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autocommit=False,         # On contrôle explicitement les commits
        autoflush=False,
        expire_on_commit=False,   # Garder les objets accessibles après commit
    )


# === 3. DEPENDENCY FASTAPI ===

def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Fournit une session par requête, fermée en fin de requête.

    Usage:
        @router.get("/")
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


# === 4. VÉRIFICATION DE CONNEXION ===

def check_database_connection(engine: Engine) -> bool:
    """
    Vérifie que la connexion à la base de données fonctionne.

    Returns:
        True si la connexion est OK, False sinon
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"❌ Erreur de connexion à la base de données : {e}")
        return False
