"""
Client Typesense de la boutique
===============================

Client HTTP direct (sans SDK) lié à un couple host/clé et à une collection par
défaut. Expose les recherches de produits, produits d'une boutique, annuaire
des boutiques, commandes, suggestions de catégories, agrégation des facettes
de spécification et une sonde de disponibilité.

Politique d'erreur:
- chaque appel réseau est borné par un timeout (5s, 3s pour les catégories,
  10s pour les commandes) et rejoué selon RetryConfig (transport / 5xx)
- toute méthode publique dégrade vers un résultat vide ([], {}, page vide)
  au lieu de lever : la recherche n'est jamais un chemin critique pour l'UI
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from typesense_service.core.debounce import DEFAULT_DEBOUNCE_SECONDS, Debouncer
from typesense_service.core.query_builder import (
    CATALOG_LANGUAGES,
    DEFAULT_INCLUDE_FIELDS,
    SPEC_FACET_FIELDS,
    QueryBuilder,
)
from typesense_service.core.result_processor import MAX_PAGES, ResultProcessor
from typesense_service.models import (
    CategorySuggestion,
    FacetCount,
    SearchClientConfig,
    SearchDocument,
    SearchPage,
)

from .base_client import BaseClient, RetryConfig

logger = logging.getLogger(__name__)

# === CONSTANTES ===

DEFAULT_TIMEOUT_SECONDS = 5.0
CATEGORY_TIMEOUT_SECONDS = 3.0
ORDERS_TIMEOUT_SECONDS = 10.0

SHOP_PRODUCTS_COLLECTION = "shop_products"
SHOPS_COLLECTION = "shops"
ORDERS_COLLECTION = "orders"

SHOPS_QUERY_BY = "name,searchableText"
ORDERS_QUERY_BY = "searchableText,productName,buyerName,sellerName"

CATEGORY_SUGGESTION_POOL = 50
MAX_FACET_VALUES = 50


def _unique(fields: Sequence[str]) -> str:
    """Liste de champs sans doublons, ordre conservé"""
    return ",".join(dict.fromkeys(fields))


class TypesenseSearchClient(BaseClient):
    """
    Client de recherche lié à une collection Typesense

    Chaque instance possède son propre Debouncer (un seul minuteur) et son
    propre pool de connexions httpx.
    """

    def __init__(
        self,
        config: SearchClientConfig,
        *,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        category_timeout: float = CATEGORY_TIMEOUT_SECONDS,
        orders_timeout: float = ORDERS_TIMEOUT_SECONDS,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        max_pages: int = MAX_PAGES,
        shop_products_collection: str = SHOP_PRODUCTS_COLLECTION,
        shops_collection: str = SHOPS_COLLECTION,
        orders_collection: str = ORDERS_COLLECTION,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url=config.base_url,
            service_name=f"typesense[{config.collection}]",
            headers=config.headers,
            timeout=timeout,
            retry_config=retry_config,
            transport=transport,
        )
        self.config = config
        self.main_index_name = config.collection
        self.category_timeout = category_timeout
        self.orders_timeout = orders_timeout
        self.shop_products_collection = shop_products_collection
        self.shops_collection = shops_collection
        self.orders_collection = orders_collection

        self.query_builder = QueryBuilder()
        self.result_processor = ResultProcessor(max_pages=max_pages)
        self.debouncer = Debouncer(debounce_seconds, name=self.service_name)

    # === HELPERS HTTP ===

    @staticmethod
    def search_path(collection: str) -> str:
        return f"/collections/{collection}/documents/search"

    async def _search(
        self,
        collection: str,
        params: Mapping[str, Any],
        *,
        timeout: Optional[float] = None,
        operation_name: str = "search",
    ) -> Optional[Dict[str, Any]]:
        """Recherche avec retry ; None si le moteur répond par un statut non-succès < 500"""
        path = self.search_path(collection)
        return await self.execute_with_retry(
            lambda: self._get_json(path, params, timeout=timeout, collection=collection),
            operation_name=operation_name,
        )

    async def _search_documents(
        self,
        collection: str,
        params: Mapping[str, Any],
        *,
        timeout: Optional[float] = None,
        operation_name: str = "search",
    ) -> List[SearchDocument]:
        data = await self._search(
            collection, params, timeout=timeout, operation_name=operation_name
        )
        return self.result_processor.parse_hits(data)

    # === PRODUITS ===

    async def search_products(
        self,
        query: str,
        sort_option: str,
        page: int = 0,
        hits_per_page: int = 50,
        filters: Optional[Sequence[str]] = None,
    ) -> List[SearchDocument]:
        """Recherche générale dans la collection du client"""
        try:
            params = self.query_builder.build_search_params(
                query,
                sort_by=self.query_builder.sort_by(sort_option),
                page=page,
                hits_per_page=hits_per_page,
                filter_by=self.query_builder.build_filter_by(filters),
            )
            return await self._search_documents(
                self.main_index_name, params, operation_name="searchProducts"
            )
        except Exception as e:
            logger.warning(f"Typesense searchProducts error: {e}")
            return []

    async def debounced_search_products(
        self,
        query: str,
        sort_option: str,
        page: int = 0,
        hits_per_page: int = 50,
        filters: Optional[Sequence[str]] = None,
    ) -> List[SearchDocument]:
        """search_products coalescé : seul le dernier appel de la rafale s'exécute"""
        return await self.debouncer.run(
            lambda: self.search_products(query, sort_option, page, hits_per_page, filters),
            key="products",
            fallback=list,
        )

    async def search_shop_products(
        self,
        shop_id: str,
        query: str,
        sort_option: str,
        page: int = 0,
        hits_per_page: int = 100,
        additional_filters: Optional[Sequence[str]] = None,
    ) -> List[SearchDocument]:
        """Recherche limitée au catalogue d'une boutique (collection shop_products)"""
        try:
            filters = [f'shopId:"{shop_id}"', *(additional_filters or [])]
            params = self.query_builder.build_search_params(
                query,
                sort_by=self.query_builder.sort_by(sort_option),
                page=page,
                hits_per_page=hits_per_page,
                filter_by=self.query_builder.build_filter_by(filters),
            )
            return await self._search_documents(
                self.shop_products_collection, params, operation_name="searchShopProducts"
            )
        except Exception as e:
            logger.warning(f"Typesense searchShopProducts error: {e}")
            return []

    async def debounced_search_shop_products(
        self,
        shop_id: str,
        query: str,
        sort_option: str,
        page: int = 0,
        hits_per_page: int = 100,
        additional_filters: Optional[Sequence[str]] = None,
    ) -> List[SearchDocument]:
        return await self.debouncer.run(
            lambda: self.search_shop_products(
                shop_id, query, sort_option, page, hits_per_page, additional_filters
            ),
            key="shop_products",
            fallback=list,
        )

    # === BOUTIQUES ===

    async def search_shops(
        self,
        query: str,
        page: int = 0,
        hits_per_page: int = 10,
    ) -> List[SearchDocument]:
        """Annuaire des boutiques (nom, texte indexé)"""
        try:
            params = self.query_builder.build_search_params(
                query,
                query_by=SHOPS_QUERY_BY,
                page=page,
                hits_per_page=hits_per_page,
            )
            return await self._search_documents(
                self.shops_collection, params, operation_name="searchShops"
            )
        except Exception as e:
            logger.warning(f"Typesense searchShops error: {e}")
            return []

    # === COMMANDES ===

    async def search_orders_in_typesense(
        self,
        query: str,
        user_id: str,
        is_sold: bool,
        page: int = 0,
        hits_per_page: int = 20,
    ) -> List[SearchDocument]:
        """
        Commandes d'un utilisateur

        Args:
            is_sold: True → commandes vendues (sellerId), False → achetées (buyerId)
        """
        user_field = "sellerId" if is_sold else "buyerId"
        return await self._search_orders(
            query, f"{user_field}:={user_id}", page, hits_per_page, "searchOrders"
        )

    async def search_orders_by_shop_id(
        self,
        query: str,
        shop_id: str,
        page: int = 0,
        hits_per_page: int = 20,
    ) -> List[SearchDocument]:
        """Commandes d'une boutique"""
        return await self._search_orders(
            query, f"shopId:={shop_id}", page, hits_per_page, "searchOrdersByShopId"
        )

    async def _search_orders(
        self,
        query: str,
        filter_by: str,
        page: int,
        hits_per_page: int,
        operation_name: str,
    ) -> List[SearchDocument]:
        try:
            params = self.query_builder.build_search_params(
                query,
                query_by=ORDERS_QUERY_BY,
                page=page,
                hits_per_page=hits_per_page,
                filter_by=filter_by,
            )
            return await self._search_documents(
                self.orders_collection,
                params,
                timeout=self.orders_timeout,
                operation_name=operation_name,
            )
        except Exception as e:
            logger.warning(f"Typesense {operation_name} error: {e}")
            return []

    # === RECHERCHE PAGINÉE À FACETTES ===

    async def search_ids_with_facets(
        self,
        index_name: str,
        query: str = "",
        page: int = 0,
        hits_per_page: int = 20,
        facet_filters: Optional[Sequence[Sequence[str]]] = None,
        numeric_filters: Optional[Sequence[str]] = None,
        sort_option: str = "date",
        additional_filter_by: Optional[str] = None,
        query_by: Optional[str] = None,
        include_fields: Optional[str] = None,
    ) -> SearchPage:
        """
        Recherche paginée renvoyant ids d'origine, documents et nombre de pages

        Args:
            index_name: Collection interrogée (préfixe d'id retiré selon ce nom)
            facet_filters: Groupes OU, combinés en ET ([["color:red", "color:blue"], ...])
            numeric_filters: Filtres "champ op valeur" (ex. "price >= 10")
            additional_filter_by: Expression filter_by brute ajoutée en ET
            include_fields: Projection (DEFAULT_INCLUDE_FIELDS si absente)

        Returns:
            SearchPage ; une page vide en cas d'échec
        """
        try:
            filter_by = self.query_builder.combine_filters(
                additional_filter_by=additional_filter_by,
                facet_filters=facet_filters,
                numeric_filters=numeric_filters,
            )
            params = self.query_builder.build_search_params(
                query,
                query_by=query_by,
                sort_by=self.query_builder.sort_by(sort_option),
                page=page,
                hits_per_page=hits_per_page,
                filter_by=filter_by,
                include_fields=include_fields or DEFAULT_INCLUDE_FIELDS,
            )
            logger.debug(f"Typesense request for {index_name}: filter_by={filter_by}")

            data = await self._search(index_name, params, operation_name="searchIdsWithFacets")
            if data is None:
                return self.result_processor.empty_page(page)

            return self.result_processor.build_page(data, index_name, page, hits_per_page)
        except Exception as e:
            logger.warning(f"Typesense exception in searchIdsWithFacets: {e}")
            return self.result_processor.empty_page(page)

    # === SUGGESTIONS DE CATÉGORIES ===

    async def search_categories(
        self,
        query: str,
        hits_per_page: int = 10,
        language_code: str = "en",
    ) -> List[CategorySuggestion]:
        """
        Autocomplétion des catégories / sous-catégories / sous-sous-catégories

        Interroge les libellés dans la langue demandée avec repli sur l'anglais.
        Un texte vide ne déclenche aucune requête.
        """
        if not (query or "").strip():
            return []

        try:
            lang = language_code or "en"
            query_by = _unique([
                f"category_{lang}",
                f"subcategory_{lang}",
                f"subsubcategory_{lang}",
                "category_en",
                "subcategory_en",
                "subsubcategory_en",
                "productName",
            ])
            include_fields = _unique(
                ["category", "subcategory", "subsubcategory"]
                + [
                    f"{level}_{code}"
                    for level in ("category", "subcategory", "subsubcategory")
                    for code in (*CATALOG_LANGUAGES, lang)
                ]
            )
            params = self.query_builder.build_search_params(
                query,
                query_by=query_by,
                hits_per_page=CATEGORY_SUGGESTION_POOL,
                include_fields=include_fields,
            )
            hits = await self._search_documents(
                self.main_index_name,
                params,
                timeout=self.category_timeout,
                operation_name="searchCategories",
            )
            return self.result_processor.build_category_suggestions(hits, lang, hits_per_page)
        except Exception as e:
            logger.warning(f"Typesense searchCategories error: {e}")
            return []

    async def search_categories_enhanced(
        self,
        query: str,
        hits_per_page: int = 50,
        language_code: str = "en",
    ) -> List[CategorySuggestion]:
        """search_categories avec un plafond par défaut plus élevé"""
        return await self.search_categories(query, hits_per_page, language_code)

    async def debounced_search_categories(
        self,
        query: str,
        hits_per_page: int = 10,
        language_code: str = "en",
    ) -> List[CategorySuggestion]:
        return await self.debouncer.run(
            lambda: self.search_categories(query, hits_per_page, language_code),
            key="categories",
            fallback=list,
        )

    # === FACETTES ===

    async def fetch_spec_facets(
        self,
        index_name: str,
        query: str = "*",
        facet_filters: Optional[Sequence[Sequence[str]]] = None,
        additional_filter_by: Optional[str] = None,
    ) -> Dict[str, List[FacetCount]]:
        """
        Compteurs des facettes de spécification (aucun document renvoyé)

        Returns:
            {champ: [FacetCount]} limité aux valeurs de compteur > 0 ; {} en cas d'échec
        """
        try:
            filter_by = self.query_builder.combine_filters(
                additional_filter_by=additional_filter_by,
                facet_filters=facet_filters,
            )
            params = self.query_builder.build_search_params(
                query,
                hits_per_page=0,
                filter_by=filter_by,
                facet_by=SPEC_FACET_FIELDS,
                max_facet_values=MAX_FACET_VALUES,
            )
            data = await self._search(index_name, params, operation_name="fetchSpecFacets")
            if data is None:
                return {}
            return self.result_processor.parse_facet_counts(data)
        except Exception as e:
            logger.warning(f"Typesense fetchSpecFacets error: {e}")
            return {}

    # === SANTÉ ===

    async def is_service_reachable(self) -> bool:
        """Sonde légère : vrai si le moteur répond avec un statut < 500"""
        try:
            params = {"q": "*", "query_by": "id", "per_page": "1"}
            response = await self._get(self.search_path(self.main_index_name), params)
            return response.status_code < 500
        except Exception as e:
            logger.warning(f"Typesense unreachable ({self.main_index_name}): {e}")
            return False

    async def close(self):
        self.debouncer.cancel()
        await super().close()


__all__ = ["TypesenseSearchClient"]
