"""
Modèles du client de recherche Typesense
"""

from .client_config import SearchClientConfig
from .documents import CategorySuggestion, FacetCount, SearchDocument, SearchPage
from .restaurants import (
    FacetMap,
    Food,
    FoodSearchPage,
    Restaurant,
    RestaurantSearchPage,
)

__all__ = [
    "SearchClientConfig",
    "SearchDocument",
    "SearchPage",
    "CategorySuggestion",
    "FacetCount",
    "FacetMap",
    "Restaurant",
    "RestaurantSearchPage",
    "Food",
    "FoodSearchPage",
]
