# typesense_service/config/settings.py
import logging
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Valeurs de repli utilisées uniquement quand l'environnement ne fournit rien.
# Pratique en développement local (typesense-server lancé avec --api-key=xyz),
# à ne jamais considérer comme sûres pour un autre déploiement.
DEV_FALLBACK_HOST = "localhost:8108"
DEV_FALLBACK_SEARCH_KEY = "xyz"


class Settings(BaseSettings):
    """Configuration du client de recherche Typesense de la boutique"""

    # ==========================================
    # CONNEXION TYPESENSE
    # ==========================================
    TYPESENSE_HOST: str = DEV_FALLBACK_HOST
    TYPESENSE_SEARCH_KEY: str = DEV_FALLBACK_SEARCH_KEY
    TYPESENSE_PROTOCOL: str = "https"

    # ==========================================
    # COLLECTIONS
    # ==========================================
    PRODUCTS_COLLECTION: str = "products"
    SHOP_PRODUCTS_COLLECTION: str = "shop_products"
    ORDERS_COLLECTION: str = "orders"
    SHOPS_COLLECTION: str = "shops"
    RESTAURANTS_COLLECTION: str = "restaurants"
    FOODS_COLLECTION: str = "foods"

    # ==========================================
    # TIMEOUTS / RETRY / DEBOUNCE
    # ==========================================
    DEFAULT_TIMEOUT_SECONDS: float = 5.0
    CATEGORY_TIMEOUT_SECONDS: float = 3.0
    ORDERS_TIMEOUT_SECONDS: float = 10.0
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY_MS: float = 500.0
    DEBOUNCE_MS: float = 300.0

    # Plafond de sécurité pour nbPages
    MAX_PAGES: int = 9999

    # ==========================================
    # API / LOGGING
    # ==========================================
    API_TITLE: str = "Typesense Search Service"
    API_VERSION: str = "1.0.0"
    API_PREFIX: str = "/api/typesense"
    LOG_LEVEL: str = "INFO"

    @field_validator("TYPESENSE_HOST", mode="before")
    @classmethod
    def strip_host(cls, v: str) -> str:
        """Accepte un host saisi avec son schéma (https://host) ou un slash final"""
        if not isinstance(v, str):
            return v
        host = v.strip()
        for scheme in ("https://", "http://"):
            if host.startswith(scheme):
                host = host[len(scheme):]
        return host.rstrip("/")

    @property
    def debounce_seconds(self) -> float:
        return self.DEBOUNCE_MS / 1000.0

    @property
    def base_url(self) -> str:
        return f"{self.TYPESENSE_PROTOCOL}://{self.TYPESENSE_HOST}"

    def uses_fallback_credentials(self) -> bool:
        """Vrai si le host ou la clé proviennent des valeurs de repli de développement"""
        return (
            self.TYPESENSE_HOST == DEV_FALLBACK_HOST
            or self.TYPESENSE_SEARCH_KEY == DEV_FALLBACK_SEARCH_KEY
        )

    def validate_configuration(self) -> List[str]:
        """Retourne la liste des erreurs de configuration (vide si tout est cohérent)"""
        errors = []

        if not self.TYPESENSE_HOST:
            errors.append("TYPESENSE_HOST est requis")
        if not self.TYPESENSE_SEARCH_KEY:
            errors.append("TYPESENSE_SEARCH_KEY est requis")
        if self.TYPESENSE_PROTOCOL not in ("http", "https"):
            errors.append("TYPESENSE_PROTOCOL doit valoir http ou https")

        for name in ("DEFAULT_TIMEOUT_SECONDS", "CATEGORY_TIMEOUT_SECONDS", "ORDERS_TIMEOUT_SECONDS"):
            if getattr(self, name) <= 0:
                errors.append(f"{name} doit être strictement positif")

        if self.RETRY_MAX_ATTEMPTS < 1:
            errors.append("RETRY_MAX_ATTEMPTS doit être >= 1")
        if self.RETRY_BASE_DELAY_MS < 0:
            errors.append("RETRY_BASE_DELAY_MS ne peut pas être négatif")
        if self.DEBOUNCE_MS < 0:
            errors.append("DEBOUNCE_MS ne peut pas être négatif")
        if self.MAX_PAGES < 1:
            errors.append("MAX_PAGES doit être >= 1")

        return errors

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        extra="ignore",
    )


# Instance globale des settings
settings = Settings()
