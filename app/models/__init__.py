"""
Export centralisé de tous les modèles SQLAlchemy.

Ce fichier permet d'importer tous les modèles depuis un seul endroit :
    from app.models import Base, Entreprise, Utilisateur, Equipe, Formation

L'import de ce module enregistre toutes les tables dans Base.metadata
(nécessaire avant Base.metadata.create_all).
"""

# Import de la classe Base depuis le module database
from app.database.base_class import Base

# L'ordre est important : les tables référencées doivent être importées en premier
from app.models.entreprise import Entreprise
from app.models.equipe import Equipe, equipe_membres, equipe_responsables
from app.models.utilisateur import Utilisateur
from app.models.formation import Formation


__all__ = [
    "Base",
    "Entreprise",
    "Equipe",
    "equipe_membres",
    "equipe_responsables",
    "Utilisateur",
    "Formation",
]
