"""
Configuration centralisée du suivi de conformité.
Charge les variables depuis le fichier .env

Les seuils métier (fenêtre de renouvellement, seuils de conformité des
équipes) sont configurables mais ont des valeurs par défaut alignées
sur les règles historiques de l'application.
"""
import json
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration de l'application.

    Les valeurs sont chargées depuis les variables d'environnement
    ou le fichier .env à la racine du projet.

    Usage:
        from app.core.config import settings
        print(settings.DATABASE_URL)
    """

    # === Environnement ===
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    APP_NAME: str = "Conformité Formations"
    APP_VERSION: str = "0.1.0"

    # === Base de données ===
    DATABASE_URL: str = "sqlite:///./conformite.db"

    # === Règles de conformité ===
    # Fuseau utilisé pour déterminer "aujourd'hui"
    TIMEZONE: str = "Europe/Paris"
    # Nombre de mois avant expiration à partir duquel une formation est "À renouveler"
    RENEWAL_WARNING_MONTHS: int = 1
    # Taux à partir duquel une équipe est considérée conforme
    COMPLIANT_THRESHOLD: int = 90
    # Taux en dessous duquel une équipe est considérée à risque
    AT_RISK_THRESHOLD: int = 70

    # === CORS ===
    CORS_ORIGINS: List[str] = ["http://localhost:8000", "http://localhost:3000"]

    # === Logging ===
    LOG_LEVEL: str = "INFO"

    # === Configuration Pydantic ===
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignorer les variables non définies
    )

    # === Validators ===

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS depuis une string JSON ou une liste"""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # Si c'est une simple string, la mettre dans une liste
                return [v]
        return v

    @field_validator('ENVIRONMENT')
    @classmethod
    def validate_environment(cls, v):
        """Valide que l'environnement est valide"""
        allowed = ['development', 'staging', 'production', 'test']
        if v.lower() not in allowed:
            raise ValueError(f"ENVIRONMENT doit être parmi : {allowed}")
        return v.lower()

    @field_validator('RENEWAL_WARNING_MONTHS')
    @classmethod
    def validate_warning_months(cls, v):
        """La fenêtre de renouvellement doit être d'au moins un mois"""
        if v < 1:
            raise ValueError("RENEWAL_WARNING_MONTHS doit être >= 1")
        return v

    @field_validator('COMPLIANT_THRESHOLD', 'AT_RISK_THRESHOLD')
    @classmethod
    def validate_threshold(cls, v):
        """Les seuils sont des pourcentages"""
        if not 0 <= v <= 100:
            raise ValueError("Les seuils de conformité doivent être entre 0 et 100")
        return v

    # === Properties générales ===

    @property
    def is_development(self) -> bool:
        """Retourne True si en mode développement"""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Retourne True si en mode production"""
        return self.ENVIRONMENT == "production"

    @property
    def is_test(self) -> bool:
        """Retourne True si en mode test"""
        return self.ENVIRONMENT == "test"

    @property
    def is_sqlite(self) -> bool:
        """Retourne True si la base configurée est SQLite"""
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    """
    Retourne l'instance des settings (mise en cache).

    Utilise lru_cache pour ne charger les settings qu'une seule fois.

    Usage:
        settings = get_settings()
    """
    return Settings()


# Instance globale pour import facile
settings = get_settings()
