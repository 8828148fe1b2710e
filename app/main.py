"""
Conformité Formations - Application principale FastAPI
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import api_router
from app.api.v1.errors import register_exception_handlers
from app.core.config import Settings, settings as default_settings
from app.database.session import create_db_engine, create_session_factory
from app.models import Base

logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None, engine=None) -> FastAPI:
    """
    Construit l'application.

    Args:
        config: Configuration (défaut : settings global)
        engine: Engine SQLAlchemy déjà créé (tests) ; sinon créé depuis config
    """
    config = config or default_settings

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    db_engine = engine if engine is not None else create_db_engine(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"🚀 Démarrage {config.APP_NAME} ({config.ENVIRONMENT})")
        if engine is None:
            # Tables absentes créées au démarrage (pas de migrations)
            Base.metadata.create_all(bind=db_engine)
        yield
        if engine is None:
            db_engine.dispose()
        logger.info("👋 Arrêt de l'application")

    app = FastAPI(
        title=config.APP_NAME,
        description="Suivi de la conformité des formations obligatoires des salariés du BTP",
        version=config.APP_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.engine = db_engine
    app.state.session_factory = create_session_factory(db_engine)

    # Configuration CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/")
    async def root():
        """Page d'accueil - Health check"""
        return {
            "app": config.APP_NAME,
            "status": "running",
            "environment": config.ENVIRONMENT,
        }

    @app.get("/health")
    async def health_check():
        """Endpoint de vérification de santé"""
        return {"status": "healthy"}

    return app


app = create_app()
