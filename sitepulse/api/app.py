# ==============================================================================
# FastAPI Application
# ==============================================================================
"""
FastAPI application factory.

The service is built once per application and shared by every request.
Static assets in the configured directory are served from the root path,
after the API routes.
"""

import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from sitepulse.api.routes import router
from sitepulse.services.analytics import AnalyticsService, create_service
from sitepulse.utils.config import Settings, get_settings
from sitepulse.utils.versions import get_sitepulse_version

logger = logging.getLogger(__name__)


def create_app(
    service: AnalyticsService | None = None, settings: Settings | None = None
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        service: Analytics service. If None, one is wired from settings.
        settings: Application settings. If None, uses the cached settings.

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="SitePulse",
        description="Web analytics ingestion and dashboard statistics",
        version=get_sitepulse_version(),
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.service = service or create_service(settings)
    app.include_router(router)

    static_dir = settings.server.static_dir_path
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir), name="static")
    else:
        logger.warning("Static directory %s not found, pages will not be served", static_dir)

    return app
