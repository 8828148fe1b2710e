"""
Module Equipe API.

Expose la liste des équipes visibles avec leurs indicateurs de conformité
et le détail d'une équipe.
"""
from app.api.v1.equipe.routes import router

__all__ = ["router"]
