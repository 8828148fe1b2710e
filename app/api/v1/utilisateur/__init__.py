"""
Module Utilisateur API.

Expose la consultation filtrée des salariés, leurs formations,
la modification de profil et d'affectation, et l'export CSV.
"""
from app.api.v1.utilisateur.routes import router

__all__ = ["router"]
