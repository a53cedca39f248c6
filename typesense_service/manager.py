"""
Gestionnaire des clients Typesense
==================================

Un client par collection logique (produits, produits des boutiques,
commandes, boutiques), construit à la demande une seule fois et partagé.

Architecture:
- TypesenseServiceManager : registre injectable (FastAPI, tests)
- get_service_manager() : instance de processus, initialisation paresseuse
  protégée par verrou
"""

import asyncio
import logging
import threading
from typing import Callable, Dict, Optional, TypeVar

import httpx

from typesense_service.clients import RestaurantSearchClient, RetryConfig, TypesenseSearchClient
from typesense_service.config import Settings, settings as default_settings
from typesense_service.models import SearchClientConfig

logger = logging.getLogger(__name__)

ClientT = TypeVar("ClientT")

# Collections prises en compte par is_initialized / is_healthy
CORE_SERVICES = ("main", "shop", "orders", "shops")


class TypesenseServiceManager:
    """
    Registre des clients de recherche, un par collection logique

    Les clients partagent host et clé mais chacun est lié à sa propre
    collection. La construction est paresseuse et a lieu une seule fois par
    collection, y compris si plusieurs threads accèdent au registre.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.settings = settings or default_settings
        self._transport = transport
        self.retry_config = retry_config or RetryConfig(
            max_attempts=self.settings.RETRY_MAX_ATTEMPTS,
            base_delay_ms=self.settings.RETRY_BASE_DELAY_MS,
        )
        self._services: Dict[str, object] = {}
        self._lock = threading.Lock()

    # === CONSTRUCTION ===

    def _config(self, collection: str) -> SearchClientConfig:
        return SearchClientConfig(
            host=self.settings.TYPESENSE_HOST,
            search_key=self.settings.TYPESENSE_SEARCH_KEY,
            collection=collection,
            protocol=self.settings.TYPESENSE_PROTOCOL,
        )

    def _build_search_client(self, collection: str) -> TypesenseSearchClient:
        return TypesenseSearchClient(
            self._config(collection),
            retry_config=self.retry_config,
            timeout=self.settings.DEFAULT_TIMEOUT_SECONDS,
            category_timeout=self.settings.CATEGORY_TIMEOUT_SECONDS,
            orders_timeout=self.settings.ORDERS_TIMEOUT_SECONDS,
            debounce_seconds=self.settings.debounce_seconds,
            max_pages=self.settings.MAX_PAGES,
            shop_products_collection=self.settings.SHOP_PRODUCTS_COLLECTION,
            shops_collection=self.settings.SHOPS_COLLECTION,
            orders_collection=self.settings.ORDERS_COLLECTION,
            transport=self._transport,
        )

    def _get_or_create(self, name: str, factory: Callable[[], ClientT]) -> ClientT:
        service = self._services.get(name)
        if service is not None:
            return service

        with self._lock:
            service = self._services.get(name)
            if service is None:
                service = factory()
                self._services[name] = service
                logger.info(f"✅ Typesense client created: {name}")
        return service

    # === ACCESSEURS ===

    @property
    def main_service(self) -> TypesenseSearchClient:
        """Catalogue principal (collection products)"""
        return self._get_or_create(
            "main", lambda: self._build_search_client(self.settings.PRODUCTS_COLLECTION)
        )

    @property
    def shop_service(self) -> TypesenseSearchClient:
        """Produits des boutiques (collection shop_products)"""
        return self._get_or_create(
            "shop", lambda: self._build_search_client(self.settings.SHOP_PRODUCTS_COLLECTION)
        )

    @property
    def orders_service(self) -> TypesenseSearchClient:
        """Commandes (collection orders)"""
        return self._get_or_create(
            "orders", lambda: self._build_search_client(self.settings.ORDERS_COLLECTION)
        )

    @property
    def shops_service(self) -> TypesenseSearchClient:
        """Annuaire des boutiques (collection shops)"""
        return self._get_or_create(
            "shops", lambda: self._build_search_client(self.settings.SHOPS_COLLECTION)
        )

    @property
    def restaurant_service(self) -> RestaurantSearchClient:
        """Restaurants et plats ; hors de is_initialized et is_healthy"""
        return self._get_or_create(
            "restaurants",
            lambda: RestaurantSearchClient(
                self._config(self.settings.RESTAURANTS_COLLECTION),
                retry_config=self.retry_config,
                timeout=self.settings.DEFAULT_TIMEOUT_SECONDS,
                debounce_seconds=self.settings.debounce_seconds,
                max_pages=self.settings.MAX_PAGES,
                restaurants_collection=self.settings.RESTAURANTS_COLLECTION,
                foods_collection=self.settings.FOODS_COLLECTION,
                transport=self._transport,
            ),
        )

    # === ÉTAT ===

    @property
    def is_initialized(self) -> bool:
        """Vrai une fois les quatre clients principaux construits"""
        return all(name in self._services for name in CORE_SERVICES)

    def reset_services(self) -> list:
        """
        Oublie tous les clients ; le prochain accès en reconstruit de nouveaux

        Les pools httpx des clients retirés restent ouverts tant que l'appelant
        ne les ferme pas : depuis du code asynchrone, préférer aclose_services().

        Returns:
            Les clients retirés, à fermer par l'appelant
        """
        with self._lock:
            dropped = list(self._services.values())
            self._services = {}

        open_pools = [service.service_name for service in dropped if service.has_open_pool]
        if open_pools:
            logger.debug(
                f"Typesense clients reset with open connection pools: {open_pools} "
                "(close them or use aclose_services)"
            )
        logger.info("Typesense clients reset")
        return dropped

    async def aclose_services(self):
        """reset_services() puis fermeture des clients retirés"""
        for service in self.reset_services():
            await service.close()

    async def aclose(self):
        """Ferme tous les clients construits"""
        await self.aclose_services()

    async def is_healthy(self) -> bool:
        """Sonde les quatre collections en parallèle ; vrai seulement si toutes répondent"""
        try:
            results = await asyncio.gather(
                self.main_service.is_service_reachable(),
                self.shop_service.is_service_reachable(),
                self.orders_service.is_service_reachable(),
                self.shops_service.is_service_reachable(),
            )
            return all(results)
        except Exception as e:
            logger.warning(f"Typesense health check failed: {e}")
            return False

    def get_metrics(self) -> Dict[str, dict]:
        """Métriques des clients déjà construits"""
        return {name: service.get_metrics() for name, service in self._services.items()}


# === INSTANCE GLOBALE ===
_default_manager: Optional[TypesenseServiceManager] = None
_manager_lock = threading.Lock()


def get_service_manager() -> TypesenseServiceManager:
    """Retourne le gestionnaire de processus, créé au premier appel"""
    global _default_manager
    if _default_manager is None:
        with _manager_lock:
            if _default_manager is None:
                _default_manager = TypesenseServiceManager()
    return _default_manager


def reset_service_manager() -> Optional[TypesenseServiceManager]:
    """Oublie le gestionnaire de processus (tests, reconfiguration) et le retourne"""
    global _default_manager
    with _manager_lock:
        previous, _default_manager = _default_manager, None
    return previous


__all__ = [
    "TypesenseServiceManager",
    "get_service_manager",
    "reset_service_manager",
]
