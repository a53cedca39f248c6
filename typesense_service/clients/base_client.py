"""
Classe de base pour les clients HTTP du moteur Typesense
Fournit la logique de retry avec backoff exponentiel, la session HTTP partagée
et des métriques minimales par client
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TypeVar

import httpx

from typesense_service.exceptions import TypesenseClientError, TypesenseServerError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fragments de message signalant une panne de transport (exceptions non typées)
RETRYABLE_MESSAGE_MARKERS = (
    "fetch failed",
    "failed to fetch",
    "econnrefused",
    "connection refused",
    "network",
    "timeout",
    "timed out",
)

JITTER_MIN = 0.9
JITTER_MAX = 1.1


@dataclass(frozen=True)
class RetryConfig:
    """Configuration pour la logique de retry avec backoff exponentiel"""
    max_attempts: int = 3
    base_delay_ms: float = 500.0


def is_retryable_error(exc: BaseException) -> bool:
    """
    Classe une erreur en retryable (transport, timeout, 5xx) ou fatale

    Les 4xx, les erreurs d'authentification et les entrées invalides sont
    fatales : elles remontent immédiatement sans nouvelle tentative.
    """
    if isinstance(exc, TypesenseServerError):
        return True
    if isinstance(exc, TypesenseClientError):
        return False
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    if isinstance(exc, (httpx.TransportError, asyncio.TimeoutError)):
        return True

    message = str(exc).lower()
    return any(marker in message for marker in RETRYABLE_MESSAGE_MARKERS)


def compute_retry_delay(
    attempt: int,
    base_delay_ms: float,
    uniform: Callable[[float, float], float] = random.uniform,
) -> float:
    """
    Délai (en secondes) avant la tentative suivant l'échec numéro `attempt` (1-based)

    base_delay_ms * 2^(attempt-1), multiplié par un jitter uniforme dans [0.9, 1.1].
    """
    delay_ms = base_delay_ms * (2 ** (attempt - 1))
    return delay_ms * uniform(JITTER_MIN, JITTER_MAX) / 1000.0


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay_ms: float = 500.0,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    operation_name: str = "request",
) -> T:
    """
    Exécute `operation` avec un nombre borné de tentatives

    Args:
        operation: Fonction asynchrone sans argument à exécuter
        max_attempts: Nombre maximal d'invocations
        base_delay_ms: Délai de base du backoff exponentiel
        sleep: Attente coopérative (injectable pour les tests)
        operation_name: Nom pour les logs

    Returns:
        Résultat de la première invocation réussie

    Raises:
        Exception: La dernière erreur si elle est fatale ou si les tentatives sont épuisées
    """
    attempts = max(1, max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if not is_retryable_error(e):
                logger.debug(f"{operation_name} failed with fatal error: {e}")
                raise

            if attempt == attempts:
                logger.error(f"{operation_name} failed after {attempts} attempts: {e}")
                raise

            delay = compute_retry_delay(attempt, base_delay_ms)
            logger.warning(
                f"{operation_name} failed (attempt {attempt}/{attempts}): {e} "
                f"- retrying in {delay:.2f}s"
            )
            await sleep(delay)

    # Inatteignable : la boucle retourne ou lève toujours
    raise RuntimeError(f"{operation_name}: retry loop exited without result")


class BaseClient:
    """
    Classe de base des clients Typesense

    Responsabilités principales:
    - Client httpx.AsyncClient réutilisable (pool de connexions)
    - Retry avec backoff exponentiel et jitter
    - Conversion des statuts HTTP : 5xx → TypesenseServerError, autres échecs → None
    - Métriques simples (requêtes, erreurs, temps de réponse)
    """

    def __init__(
        self,
        base_url: str,
        service_name: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 5.0,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_name = service_name
        self.headers = headers or {}
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        # Métriques de performance
        self.request_count = 0
        self.error_count = 0
        self.total_response_time = 0.0
        self.last_error: Optional[str] = None

        logger.debug(f"Initializing {service_name} client: {self.base_url}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def client(self) -> httpx.AsyncClient:
        """Client HTTP créé à la demande et recréé s'il a été fermé"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    @property
    def has_open_pool(self) -> bool:
        """Vrai si un client HTTP a été créé et n'est pas encore fermé"""
        return self._client is not None and not self._client.is_closed

    async def close(self):
        """Ferme le client et libère le pool de connexions"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.debug(f"{self.service_name} client closed")
        self._client = None

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str = "request",
    ) -> T:
        """Exécute une opération avec la politique de retry du client"""
        return await with_retry(
            operation,
            max_attempts=self.retry_config.max_attempts,
            base_delay_ms=self.retry_config.base_delay_ms,
            operation_name=f"{self.service_name} {operation_name}",
        )

    async def _get(
        self,
        path: str,
        params: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """GET brut, avec enregistrement des métriques"""
        start_time = time.time()
        try:
            response = await self.client.get(
                path,
                params=dict(params),
                timeout=timeout if timeout is not None else self.timeout,
            )
        except Exception as e:
            self._record_error(str(e))
            raise

        self.request_count += 1
        self.total_response_time += time.time() - start_time
        if response.status_code >= 500:
            self.error_count += 1
            self.last_error = f"HTTP {response.status_code}"
        return response

    async def _get_json(
        self,
        path: str,
        params: Mapping[str, Any],
        timeout: Optional[float] = None,
        collection: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        GET d'une réponse JSON

        Returns:
            Le corps JSON, ou None pour un statut non-succès inférieur à 500

        Raises:
            TypesenseServerError: Sur un statut >= 500 (retryable)
        """
        response = await self._get(path, params, timeout)

        if response.status_code >= 500:
            raise TypesenseServerError(response.status_code, collection)
        if not response.is_success:
            logger.warning(
                f"{self.service_name} {response.status_code} on {collection or path}: "
                f"{response.text[:500]}"
            )
            return None

        return response.json()

    def _record_error(self, error_message: str):
        self.request_count += 1
        self.error_count += 1
        self.last_error = error_message

    def get_metrics(self) -> Dict[str, Any]:
        """Retourne les métriques du client"""
        successful = self.request_count - self.error_count
        avg_response_time = self.total_response_time / successful if successful > 0 else 0.0
        error_rate = self.error_count / self.request_count if self.request_count > 0 else 0.0

        return {
            "service_name": self.service_name,
            "request_count": self.request_count,
            "error_count": self.error_count,
            "error_rate": round(error_rate, 3),
            "average_response_time_ms": round(avg_response_time * 1000, 2),
            "last_error": self.last_error,
        }


__all__ = [
    "BaseClient",
    "RetryConfig",
    "compute_retry_delay",
    "is_retryable_error",
    "with_retry",
]
