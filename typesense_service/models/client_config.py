"""Configuration immuable d'un client de recherche."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SearchClientConfig:
    """
    Configuration liée à la construction d'un client Typesense

    Attributes:
        host: Host du moteur (sans schéma), ex. "xyz.a1.typesense.net"
        search_key: Clé API en lecture seule
        collection: Collection par défaut du client
        protocol: Schéma de connexion
    """
    host: str
    search_key: str
    collection: str
    protocol: str = "https"

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}"

    @property
    def headers(self) -> dict:
        return {
            "X-TYPESENSE-API-KEY": self.search_key,
            "Content-Type": "application/json",
        }
