"""
API REST du service de recherche Typesense
"""

from .dependencies import get_manager
from .routes import router

__all__ = ["router", "get_manager"]
