"""
POS Terminal: FastAPI application entry point.

Lifespan starts the customer and staff terminals (each connects its scanner
link and keeps reconnecting in the background), loads the catalog and starts
the catalog refresh scheduler. Shutdown tears every terminal down so no
reconnect or auto-reset timer outlives the app.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pos_terminal.middleware.request_logging import RequestLoggingMiddleware
from pos_terminal.routers import health, terminals
from pos_terminal.scheduler.cron_tasks import (
    configure_scheduler,
    shutdown_scheduler,
    start_scheduler,
)
from pos_terminal.services.catalog_service import catalog_service
from pos_terminal.services.terminal_service import TerminalService
from pos_terminal.utils.config import settings
from pos_terminal.utils.exceptions import CatalogLoadError
from pos_terminal.utils.structured_logging import configure_logging

logger = logging.getLogger(__name__)


def create_app(terminal_service: Optional[TerminalService] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        app.state.is_ready = False
        logger.info(f"Starting {settings.APP_NAME}")

        # -------------------------
        # Catalog
        # -------------------------
        if settings.CATALOG_FILE:
            try:
                count = catalog_service.load_file(settings.CATALOG_FILE)
                logger.info(f"Catalog loaded from {settings.CATALOG_FILE}: {count} products")
            except CatalogLoadError as e:
                logger.error(f"{e}; keeping built-in catalog")

        # -------------------------
        # Scheduler
        # -------------------------
        try:
            if configure_scheduler():
                start_scheduler()
        except Exception as e:
            logger.warning(f"Scheduler failed: {e}")

        # -------------------------
        # Terminals
        # -------------------------
        service = terminal_service or TerminalService.from_settings()
        app.state.terminal_service = service
        service.start_all()

        app.state.is_ready = True
        logger.info("Application is READY to accept traffic")

        yield

        # -------------------------
        # Shutdown
        # -------------------------
        logger.info("Shutting down application")
        await service.stop_all()

        try:
            shutdown_scheduler()
        except Exception as e:
            logger.warning(f"Scheduler shutdown error: {e}")

        logger.info(f"Shut down {settings.APP_NAME}")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(terminals.router, prefix="/api/terminals", tags=["Terminals"])

    @app.get("/", tags=["Root"])
    async def root():
        return {"message": f"{settings.APP_NAME} v{settings.APP_VERSION} is running", "docs": "/docs"}

    return app


app = create_app()
