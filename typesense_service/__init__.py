"""
Client de recherche Typesense de la boutique

Point d'entrée : le gestionnaire de clients et les modèles publics.
"""

from .clients import RestaurantSearchClient, RetryConfig, TypesenseSearchClient, with_retry
from .exceptions import TypesenseClientError, TypesenseError, TypesenseServerError
from .manager import TypesenseServiceManager, get_service_manager, reset_service_manager
from .models import (
    CategorySuggestion,
    FacetCount,
    SearchClientConfig,
    SearchDocument,
    SearchPage,
)

__version__ = "1.0.0"

__all__ = [
    "TypesenseServiceManager",
    "get_service_manager",
    "reset_service_manager",
    "TypesenseSearchClient",
    "RestaurantSearchClient",
    "RetryConfig",
    "with_retry",
    "SearchClientConfig",
    "SearchDocument",
    "SearchPage",
    "CategorySuggestion",
    "FacetCount",
    "TypesenseError",
    "TypesenseServerError",
    "TypesenseClientError",
]
