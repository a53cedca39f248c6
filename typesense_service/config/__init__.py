"""
Module de configuration du client de recherche Typesense
Expose les settings et les helpers de validation
"""

import logging

from .settings import (
    DEV_FALLBACK_HOST,
    DEV_FALLBACK_SEARCH_KEY,
    Settings,
    settings,
)

logger = logging.getLogger(__name__)

__all__ = [
    "settings",
    "Settings",
    "DEV_FALLBACK_HOST",
    "DEV_FALLBACK_SEARCH_KEY",
    "validate_config",
    "warn_if_fallback_credentials",
]


def validate_config(current: Settings = None) -> bool:
    """Valide la configuration au démarrage du service"""
    current = current or settings
    errors = current.validate_configuration()
    if errors:
        raise ValueError(f"Configuration invalide: {'; '.join(errors)}")
    return True


def warn_if_fallback_credentials(current: Settings = None) -> bool:
    """Journalise un avertissement si les valeurs de repli de développement sont actives"""
    current = current or settings
    if current.uses_fallback_credentials():
        logger.warning(
            "⚠️ TYPESENSE_HOST / TYPESENSE_SEARCH_KEY non définis, "
            f"utilisation des valeurs de repli de développement ({current.TYPESENSE_HOST})"
        )
        return True
    return False
