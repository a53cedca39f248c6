"""
Configuration pytest du service de recherche Typesense

Les variables d'environnement sont fixées avant tout import du package ; le
réseau est simulé avec httpx.MockTransport.
"""

import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
import pytest

# Ajouter le répertoire racine au PYTHONPATH pour les imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

os.environ.update({
    "TYPESENSE_HOST": "search.test",
    "TYPESENSE_SEARCH_KEY": "test-search-key",
    "LOG_LEVEL": "DEBUG",
})

from typesense_service.clients import RestaurantSearchClient, RetryConfig, TypesenseSearchClient  # noqa: E402
from typesense_service.config import Settings  # noqa: E402
from typesense_service.manager import TypesenseServiceManager  # noqa: E402
from typesense_service.models import SearchClientConfig  # noqa: E402


class RecordingTransport:
    """MockTransport qui conserve les requêtes reçues"""

    def __init__(self, handler: Callable[[httpx.Request], Any]):
        self.requests: List[httpx.Request] = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request):
        self.requests.append(request)
        return self._handler(request)

    @property
    def last_params(self) -> Dict[str, str]:
        return dict(self.requests[-1].url.params)


def typesense_response(
    documents: Iterable[Dict[str, Any]] = (),
    found: Optional[int] = None,
    facet_counts: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    hits = [{"document": document} for document in documents]
    body: Dict[str, Any] = {"hits": hits, "found": len(hits) if found is None else found}
    if facet_counts is not None:
        body["facet_counts"] = facet_counts
    return body


def json_handler(body: Dict[str, Any], status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body)
    return handler


@pytest.fixture
def fast_retry() -> RetryConfig:
    return RetryConfig(max_attempts=3, base_delay_ms=0)


@pytest.fixture
def client_config() -> SearchClientConfig:
    return SearchClientConfig(host="search.test", search_key="test-search-key", collection="products")


@pytest.fixture
def make_client(client_config, fast_retry):
    """Fabrique de TypesenseSearchClient branchés sur un RecordingTransport"""
    def factory(handler, **kwargs):
        recorder = RecordingTransport(handler)
        kwargs.setdefault("retry_config", fast_retry)
        kwargs.setdefault("debounce_seconds", 0.02)
        client = TypesenseSearchClient(client_config, transport=recorder.transport, **kwargs)
        return client, recorder

    return factory


@pytest.fixture
def make_restaurant_client(fast_retry):
    def factory(handler, **kwargs):
        recorder = RecordingTransport(handler)
        config = SearchClientConfig(
            host="search.test", search_key="test-search-key", collection="restaurants"
        )
        kwargs.setdefault("retry_config", fast_retry)
        kwargs.setdefault("debounce_seconds", 0.02)
        return RestaurantSearchClient(config, transport=recorder.transport, **kwargs), recorder

    return factory


def build_manager(handler=None) -> TypesenseServiceManager:
    """Gestionnaire dont tous les clients partagent un MockTransport"""
    settings = Settings(TYPESENSE_HOST="search.test", TYPESENSE_SEARCH_KEY="k", DEBOUNCE_MS=10)
    transport = httpx.MockTransport(
        handler or (lambda request: httpx.Response(200, json={"hits": []}))
    )
    return TypesenseServiceManager(
        settings, transport=transport, retry_config=RetryConfig(max_attempts=3, base_delay_ms=0)
    )
