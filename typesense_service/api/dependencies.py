"""
Dépendances FastAPI du service de recherche
"""

from fastapi import Request

from typesense_service.manager import TypesenseServiceManager, get_service_manager


def get_manager(request: Request) -> TypesenseServiceManager:
    """Gestionnaire attaché à l'application, sinon celui du processus"""
    manager = getattr(request.app.state, "service_manager", None)
    if manager is None:
        manager = get_service_manager()
    return manager
