"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from sqlalchemy import text

from app.core.config import Settings, get_settings
from app.core.container import AppContainer, build_container
from app.core.metrics import build_metrics_response, instrument_http_request
from app.modules.admin.router import router as admin_router
from app.modules.billing.router import router as billing_router
from app.modules.booking.router import router as booking_router
from app.modules.catalog.router import router as catalog_router
from app.modules.wizard.router import router as wizard_router
from app.shared.exceptions import register_exception_handlers
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


async def _is_database_ready(container: AppContainer) -> bool:
    """Return True if DB accepts basic queries."""
    if container.session_factory is None:
        return False
    try:
        async with container.session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("Database readiness check failed")
        return False


async def healthcheck() -> dict[str, str]:
    """Liveness probe endpoint."""
    return {"status": "ok"}


async def readiness_check(request: Request) -> dict[str, str]:
    """Readiness probe endpoint with DB and ephemeral store checks."""
    container: AppContainer = request.app.state.container
    if not await _is_database_ready(container):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not ready",
        )
    if not await container.store.ping():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ephemeral store is not ready",
        )
    return {
        "status": "ready",
        "database": "ok",
        "store": "ok",
        "timestamp": utc_now().isoformat(),
    }


async def metrics_endpoint(_: Request) -> Response:
    """Prometheus metrics endpoint."""
    return build_metrics_response()


def create_app(
    settings: Settings | None = None,
    *,
    container: AppContainer | None = None,
) -> FastAPI:
    """Build the application; a prepared container skips building one at startup."""
    settings = settings or (container.settings if container else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application startup and shutdown hooks."""
        configure_logging(settings)
        logger.info("Starting %s (store backend: %s)", settings.app_name, settings.store_backend)
        owns_container = container is None
        app.state.container = container or build_container(settings)
        try:
            yield
        finally:
            logger.info("Shutting down %s", settings.app_name)
            if owns_container:
                await app.state.container.close()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        lifespan=lifespan,
    )
    if container is not None:
        app.state.container = container

    app.middleware("http")(instrument_http_request)
    register_exception_handlers(app)

    app.include_router(catalog_router, prefix=settings.api_prefix)
    app.include_router(wizard_router, prefix=settings.api_prefix)
    app.include_router(booking_router, prefix=settings.api_prefix)
    app.include_router(billing_router, prefix=settings.api_prefix)
    app.include_router(admin_router, prefix=settings.api_prefix)

    app.get("/health")(healthcheck)
    app.get("/ready")(readiness_check)
    app.get("/metrics", include_in_schema=False)(metrics_endpoint)
    return app


app = create_app()
