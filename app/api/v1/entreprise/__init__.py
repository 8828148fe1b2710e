"""
Module Entreprise API.

Expose le tableau de bord de conformité et les alertes de renouvellement
d'une entreprise (admin uniquement).
"""
from app.api.v1.entreprise.routes import router

__all__ = ["router"]
