# typesense_service/main.py
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from typesense_service.api import router
from typesense_service.config import Settings, settings as default_settings, warn_if_fallback_credentials
from typesense_service.manager import TypesenseServiceManager

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    """Configuration du logging sur la sortie standard"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def create_app(
    settings: Optional[Settings] = None,
    manager: Optional[TypesenseServiceManager] = None,
) -> FastAPI:
    """Crée et configure l'application FastAPI"""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Démarrage du service de recherche Typesense...")
        warn_if_fallback_credentials(settings)

        errors = settings.validate_configuration()
        if errors:
            logger.error(f"❌ Configuration invalide: {'; '.join(errors)}")

        app.state.service_manager = manager or TypesenseServiceManager(settings)
        logger.info(f"✅ Gestionnaire Typesense prêt ({settings.TYPESENSE_HOST})")

        yield

        logger.info("🛑 Arrêt du service de recherche...")
        try:
            await app.state.service_manager.aclose()
        except Exception as e:
            logger.error(f"❌ Erreur lors du nettoyage: {e}")

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description="Proxy et recherche Typesense de la boutique",
        lifespan=lifespan,
    )
    if manager is not None:
        app.state.service_manager = manager

    app.include_router(router, prefix=settings.API_PREFIX)

    @app.get("/")
    async def root():
        return {
            "service": "typesense_service",
            "version": settings.API_VERSION,
            "status": "running",
        }

    return app


configure_logging(default_settings.LOG_LEVEL)
app = create_app()
