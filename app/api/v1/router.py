"""
Router principal API v1.

Agrège tous les routers des différents modules métier.

Usage dans main.py:
    from app.api.v1.router import api_router

    app = FastAPI(title="Conformité Formations")
    app.include_router(api_router)
"""
from fastapi import APIRouter

from .utilisateur import router as utilisateur_router
from .equipe import router as equipe_router
from .entreprise import router as entreprise_router


# =============================================================================
# ROUTER PRINCIPAL
# =============================================================================

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(utilisateur_router)
api_router.include_router(equipe_router)
api_router.include_router(entreprise_router)


# =============================================================================
# HEALTH CHECK
# =============================================================================

@api_router.get(
    "/health",
    tags=["System"],
    summary="Health check",
    description="Vérifie que l'API est opérationnelle.",
)
async def health_check():
    """Endpoint de santé pour les load balancers et le monitoring."""
    return {
        "status": "healthy",
        "service": "conformite-api",
        "api_version": "v1",
    }
