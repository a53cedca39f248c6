"""
Module Core - Construction des requêtes, normalisation des réponses, debounce
"""

from .debounce import Debouncer
from .query_builder import QueryBuilder
from .result_processor import ResultProcessor

__all__ = ["Debouncer", "QueryBuilder", "ResultProcessor"]
