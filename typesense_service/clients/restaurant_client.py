"""
Client Typesense des restaurants et plats

Même transport, même retry et même debounce que TypesenseSearchClient, avec
les champs, tris et facettes propres aux collections `restaurants` et `foods`.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

import httpx
from pydantic import ValidationError

from typesense_service.core.debounce import DEFAULT_DEBOUNCE_SECONDS, Debouncer
from typesense_service.core.query_builder import QueryBuilder
from typesense_service.core.result_processor import MAX_PAGES, ResultProcessor
from typesense_service.models import (
    FacetMap,
    Food,
    FoodSearchPage,
    Restaurant,
    RestaurantSearchPage,
    SearchClientConfig,
)

from .base_client import BaseClient, RetryConfig

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT", Restaurant, Food)

RESTAURANTS_COLLECTION = "restaurants"
FOODS_COLLECTION = "foods"

RESTAURANT_QUERY_BY = "name,address"
FOOD_QUERY_BY = "name,description,foodCategory,foodType"

RESTAURANT_INCLUDE_FIELDS = (
    "id,name,address,contactNo,profileImageUrl,ownerId,isActive,isBoosted,"
    "latitude,longitude,averageRating,reviewCount,clickCount,followerCount,"
    "foodType,cuisineTypes,workingDays,createdAt"
)
FOOD_INCLUDE_FIELDS = (
    "id,name,description,price,foodCategory,foodType,imageUrl,"
    "isAvailable,preparationTime,restaurantId,extras,createdAt"
)

RESTAURANT_FACET_FIELDS = "cuisineTypes,foodType,workingDays"
FOOD_FACET_FIELDS = "foodCategory,foodType"

RESTAURANT_SORT_EXPRESSIONS = {
    "rating_desc": "averageRating:desc",
    "rating_asc": "averageRating:asc",
    "name_asc": "name:asc",
    "name_desc": "name:desc",
    "newest": "createdAt:desc",
}
DEFAULT_RESTAURANT_SORT = "averageRating:desc,createdAt:desc"

FOOD_SORT_EXPRESSIONS = {
    "price_asc": "price:asc",
    "price_desc": "price:desc",
    "name_asc": "name:asc",
    "newest": "createdAt:desc",
}
DEFAULT_FOOD_SORT = "createdAt:desc"

MAX_FACET_VALUES = 50


def _bool_literal(value: bool) -> str:
    return "true" if value else "false"


def _number_literal(value: float) -> str:
    """10.0 → "10", 10.5 → "10.5" (pas de notation exponentielle)"""
    number = float(value)
    return str(int(number)) if number.is_integer() else repr(number)


class RestaurantSearchClient(BaseClient):
    """Recherche de restaurants et de plats"""

    def __init__(
        self,
        config: SearchClientConfig,
        *,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 5.0,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        max_pages: int = MAX_PAGES,
        restaurants_collection: str = RESTAURANTS_COLLECTION,
        foods_collection: str = FOODS_COLLECTION,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url=config.base_url,
            service_name="typesense[restaurants]",
            headers=config.headers,
            timeout=timeout,
            retry_config=retry_config,
            transport=transport,
        )
        self.config = config
        self.restaurants_collection = restaurants_collection
        self.foods_collection = foods_collection
        self.query_builder = QueryBuilder()
        self.result_processor = ResultProcessor(max_pages=max_pages)
        self.debouncer = Debouncer(debounce_seconds, name=self.service_name)

    # === HELPERS ===

    @staticmethod
    def restaurant_sort_by(sort: Optional[str]) -> str:
        return RESTAURANT_SORT_EXPRESSIONS.get(sort or "", DEFAULT_RESTAURANT_SORT)

    @staticmethod
    def food_sort_by(sort: Optional[str]) -> str:
        return FOOD_SORT_EXPRESSIONS.get(sort or "", DEFAULT_FOOD_SORT)

    async def _fetch(self, collection: str, params: Mapping[str, Any], operation_name: str) -> Dict[str, Any]:
        """Recherche avec retry ; une réponse 4xx devient une réponse vide"""
        path = f"/collections/{collection}/documents/search"
        data = await self.execute_with_retry(
            lambda: self._get_json(path, params, collection=collection),
            operation_name=operation_name,
        )
        return data if data is not None else {"hits": [], "found": 0}

    def _build_items(
        self,
        data: Mapping[str, Any],
        collection: str,
        model: Type[ItemT],
    ) -> Tuple[List[str], List[ItemT]]:
        ids: List[str] = []
        items: List[ItemT] = []

        for hit in data.get("hits") or []:
            document = dict((hit or {}).get("document") or {})
            origin_id = self.result_processor.extract_origin_id(
                str(document.get("id") or ""), collection
            )
            document["id"] = origin_id
            try:
                item = model.model_validate(document)
            except ValidationError as e:
                logger.debug(f"Skipping malformed {collection} document {origin_id}: {e}")
                continue
            ids.append(origin_id)
            items.append(item)

        return ids, items

    # === RESTAURANTS ===

    async def search_restaurants(
        self,
        query: str = "",
        sort: str = "default",
        page: int = 0,
        hits_per_page: int = 20,
        cuisine_types: Optional[Sequence[str]] = None,
        food_type: Optional[Sequence[str]] = None,
        is_active: Optional[bool] = None,
    ) -> RestaurantSearchPage:
        """Recherche de restaurants, filtrable par cuisine, type de cuisine et activité"""
        filter_parts = []
        if is_active is not None:
            filter_parts.append(f"isActive:={_bool_literal(is_active)}")
        for clause in (
            self.query_builder.field_in("cuisineTypes", cuisine_types),
            self.query_builder.field_in("foodType", food_type),
        ):
            if clause:
                filter_parts.append(clause)

        params = self.query_builder.build_search_params(
            query,
            query_by=RESTAURANT_QUERY_BY,
            sort_by=self.restaurant_sort_by(sort),
            page=page,
            hits_per_page=hits_per_page,
            filter_by=" && ".join(filter_parts) or None,
            include_fields=RESTAURANT_INCLUDE_FIELDS,
        )

        try:
            data = await self._fetch(self.restaurants_collection, params, "searchRestaurants")
            ids, items = self._build_items(data, self.restaurants_collection, Restaurant)
            found = int(self.result_processor.to_number(data.get("found")))
            return RestaurantSearchPage(
                items=items,
                ids=ids,
                page=page,
                nb_pages=self.result_processor.compute_nb_pages(found, hits_per_page),
                total=found,
            )
        except Exception as e:
            logger.warning(f"Typesense searchRestaurants error: {e}")
            return RestaurantSearchPage(page=page)

    async def debounced_search_restaurants(self, **kwargs) -> RestaurantSearchPage:
        """search_restaurants coalescé (recherche en saisie continue)"""
        page = kwargs.get("page", 0)
        return await self.debouncer.run(
            lambda: self.search_restaurants(**kwargs),
            key="restaurants",
            fallback=lambda: RestaurantSearchPage(page=page),
        )

    async def fetch_restaurant_facets(
        self,
        query: Optional[str] = None,
        cuisine_types: Optional[Sequence[str]] = None,
        food_type: Optional[Sequence[str]] = None,
    ) -> FacetMap:
        """Compteurs cuisineTypes / foodType / workingDays des restaurants actifs"""
        filter_parts = ["isActive:=true"]
        for clause in (
            self.query_builder.field_in("cuisineTypes", cuisine_types),
            self.query_builder.field_in("foodType", food_type),
        ):
            if clause:
                filter_parts.append(clause)

        params = self.query_builder.build_search_params(
            query,
            query_by=RESTAURANT_QUERY_BY,
            hits_per_page=0,
            filter_by=" && ".join(filter_parts),
            facet_by=RESTAURANT_FACET_FIELDS,
            max_facet_values=MAX_FACET_VALUES,
        )

        try:
            data = await self._fetch(self.restaurants_collection, params, "fetchRestaurantFacets")
            return self.result_processor.parse_facet_counts(data)
        except Exception as e:
            logger.warning(f"Typesense fetchRestaurantFacets error: {e}")
            return {}

    # === PLATS ===

    async def search_foods(
        self,
        query: str = "",
        sort: str = "default",
        page: int = 0,
        hits_per_page: int = 20,
        restaurant_id: Optional[str] = None,
        food_category: Optional[Sequence[str]] = None,
        food_type: Optional[Sequence[str]] = None,
        is_available: Optional[bool] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> FoodSearchPage:
        """Recherche de plats, filtrable par restaurant, catégorie, type, disponibilité et prix"""
        filter_parts = []
        if restaurant_id:
            filter_parts.append(f"restaurantId:={restaurant_id}")
        if is_available is not None:
            filter_parts.append(f"isAvailable:={_bool_literal(is_available)}")
        for clause in (
            self.query_builder.field_in("foodCategory", food_category),
            self.query_builder.field_in("foodType", food_type),
        ):
            if clause:
                filter_parts.append(clause)
        if min_price is not None:
            filter_parts.append(f"price:>={_number_literal(min_price)}")
        if max_price is not None:
            filter_parts.append(f"price:<={_number_literal(max_price)}")

        params = self.query_builder.build_search_params(
            query,
            query_by=FOOD_QUERY_BY,
            sort_by=self.food_sort_by(sort),
            page=page,
            hits_per_page=hits_per_page,
            filter_by=" && ".join(filter_parts) or None,
            include_fields=FOOD_INCLUDE_FIELDS,
        )

        try:
            data = await self._fetch(self.foods_collection, params, "searchFoods")
            ids, items = self._build_items(data, self.foods_collection, Food)
            found = int(self.result_processor.to_number(data.get("found")))
            return FoodSearchPage(
                items=items,
                ids=ids,
                page=page,
                nb_pages=self.result_processor.compute_nb_pages(found, hits_per_page),
                total=found,
            )
        except Exception as e:
            logger.warning(f"Typesense searchFoods error: {e}")
            return FoodSearchPage(page=page)

    async def debounced_search_foods(self, **kwargs) -> FoodSearchPage:
        page = kwargs.get("page", 0)
        return await self.debouncer.run(
            lambda: self.search_foods(**kwargs),
            key="foods",
            fallback=lambda: FoodSearchPage(page=page),
        )

    async def fetch_food_facets(
        self,
        query: Optional[str] = None,
        restaurant_id: Optional[str] = None,
        food_category: Optional[Sequence[str]] = None,
        food_type: Optional[Sequence[str]] = None,
    ) -> FacetMap:
        """Compteurs foodCategory / foodType des plats disponibles"""
        filter_parts = ["isAvailable:=true"]
        if restaurant_id:
            filter_parts.append(f"restaurantId:={restaurant_id}")
        for clause in (
            self.query_builder.field_in("foodCategory", food_category),
            self.query_builder.field_in("foodType", food_type),
        ):
            if clause:
                filter_parts.append(clause)

        params = self.query_builder.build_search_params(
            query,
            query_by=FOOD_QUERY_BY,
            hits_per_page=0,
            filter_by=" && ".join(filter_parts),
            facet_by=FOOD_FACET_FIELDS,
            max_facet_values=MAX_FACET_VALUES,
        )

        try:
            data = await self._fetch(self.foods_collection, params, "fetchFoodFacets")
            return self.result_processor.parse_facet_counts(data)
        except Exception as e:
            logger.warning(f"Typesense fetchFoodFacets error: {e}")
            return {}

    # === SANTÉ ===

    async def is_service_reachable(self) -> bool:
        try:
            params = {"q": "*", "query_by": "name", "per_page": "1"}
            response = await self._get(
                f"/collections/{self.restaurants_collection}/documents/search", params
            )
            return response.status_code < 500
        except Exception as e:
            logger.warning(f"Typesense unreachable ({self.restaurants_collection}): {e}")
            return False

    async def close(self):
        self.debouncer.cancel()
        await super().close()


__all__ = ["RestaurantSearchClient"]
