"""
Module Clients - Clients HTTP du moteur Typesense

Point d'entrée des clients de recherche et de la logique de retry partagée.
"""

from .base_client import (
    BaseClient,
    RetryConfig,
    compute_retry_delay,
    is_retryable_error,
    with_retry,
)
from .restaurant_client import RestaurantSearchClient
from .typesense_client import TypesenseSearchClient

__all__ = [
    # === CLIENT DE BASE ===
    "BaseClient",
    "RetryConfig",
    "compute_retry_delay",
    "is_retryable_error",
    "with_retry",

    # === CLIENTS TYPESENSE ===
    "TypesenseSearchClient",
    "RestaurantSearchClient",
]
