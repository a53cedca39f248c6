"""
Exceptions du client de recherche Typesense

Hiérarchie volontairement courte : la couche de recherche dégrade presque
toujours vers un résultat vide, ces exceptions ne circulent donc qu'entre le
client HTTP, la logique de retry et les méthodes publiques.
"""

from typing import Optional


class TypesenseError(RuntimeError):
    """Erreur de base de la couche de recherche"""


class TypesenseServerError(TypesenseError):
    """Réponse 5xx du moteur de recherche (erreur retryable)"""

    def __init__(self, status_code: int, collection: Optional[str] = None):
        self.status_code = status_code
        self.collection = collection
        where = f" on {collection}" if collection else ""
        super().__init__(f"Typesense server error{where}: {status_code}")


class TypesenseClientError(TypesenseError):
    """
    Réponse 4xx du moteur de recherche (erreur fatale, jamais retryée)

    Les clients du package ne la lèvent pas : ils convertissent un 4xx en
    résultat vide. Elle sert aux appelants qui enveloppent leurs propres
    opérations avec with_retry et veulent signaler un 4xx non retryable.
    """

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Typesense client error {status_code}: {detail}".rstrip(": "))


__all__ = [
    "TypesenseError",
    "TypesenseServerError",
    "TypesenseClientError",
]
