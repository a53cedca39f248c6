"""
Debounce à emplacement unique pour les recherches en saisie continue

Chaque client possède son propre Debouncer : au plus un minuteur en attente.
Un nouvel appel annule le minuteur courant et en arme un nouveau ; quand le
minuteur expire, seule la dernière opération est exécutée et tous les appelants
de la même rafale reçoivent son résultat.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DEBOUNCE_SECONDS = 0.3


@dataclass
class _Waiter(Generic[T]):
    future: "asyncio.Future[T]"
    fallback: Callable[[], T]


class Debouncer:
    """
    Minuteur coopératif à emplacement unique

    La boucle asyncio est mono-thread : l'état (minuteur, attente) n'a qu'un
    seul écrivain et ne nécessite pas de verrou.

    Les appels partagent l'emplacement quel que soit leur type. Quand une
    rafale d'une autre clé (ex. suggestions de catégories après une recherche
    de produits) remplace la rafale en attente, les appelants remplacés
    reçoivent immédiatement leur propre résultat de repli.
    """

    def __init__(self, delay_seconds: float = DEFAULT_DEBOUNCE_SECONDS, name: str = "debounce"):
        self.delay_seconds = delay_seconds
        self.name = name
        self._handle: Optional[asyncio.TimerHandle] = None
        self._operation: Optional[Callable[[], Awaitable[Any]]] = None
        self._key: Optional[str] = None
        self._waiters: List[_Waiter] = []
        self._tasks: Set[asyncio.Task] = set()
        self.execution_count = 0

    @property
    def pending(self) -> bool:
        """Vrai si un minuteur est armé"""
        return self._handle is not None

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        key: str,
        fallback: Callable[[], T],
    ) -> T:
        """
        Planifie `operation` après la fenêtre de debounce

        Args:
            operation: Opération à exécuter si cet appel est le dernier de la rafale
            key: Type de l'opération ; les appelants d'une même clé partagent le résultat
            fallback: Résultat vide renvoyé en cas d'échec ou de remplacement

        Returns:
            Le résultat de la dernière opération de la rafale
        """
        loop = asyncio.get_running_loop()

        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

        if self._key is not None and self._key != key:
            self._release(self._waiters)
            self._waiters = []

        future = loop.create_future()
        self._waiters.append(_Waiter(future, fallback))
        self._operation = operation
        self._key = key
        self._handle = loop.call_later(self.delay_seconds, self._fire)

        return await future

    def cancel(self):
        """Annule le minuteur en attente ; les appelants reçoivent leur repli"""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        waiters, self._waiters = self._waiters, []
        self._operation = None
        self._key = None
        self._release(waiters)

    def _fire(self):
        operation, waiters = self._operation, self._waiters
        self._handle = None
        self._operation = None
        self._key = None
        self._waiters = []

        if operation is None:
            return

        task = asyncio.get_running_loop().create_task(self._execute(operation, waiters))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _execute(self, operation: Callable[[], Awaitable[Any]], waiters: List[_Waiter]):
        self.execution_count += 1
        try:
            result = await operation()
        except Exception as e:
            logger.warning(f"{self.name}: debounced operation failed: {e}")
            self._release(waiters)
            return

        for waiter in waiters:
            if not waiter.future.done():
                waiter.future.set_result(result)

    @staticmethod
    def _release(waiters: List[_Waiter]):
        for waiter in waiters:
            if not waiter.future.done():
                waiter.future.set_result(waiter.fallback())


__all__ = ["Debouncer", "DEFAULT_DEBOUNCE_SECONDS"]
