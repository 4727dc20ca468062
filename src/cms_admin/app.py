"""API entry point — FastAPI app factory and process lifespan."""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import uvicorn
from azure.core.exceptions import AzureError
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from cms_admin.config import load_settings
from cms_admin.database.client import CosmosStore
from cms_admin.database.repositories.content import ContentVersionRepository
from cms_admin.errors import ContentError, StaleVersionError, StoreUnavailableError
from cms_admin.health import check_emulators
from cms_admin.logging import configure_logging
from cms_admin.routes import content, health
from cms_admin.scheduling import ScheduledPublishPoller

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from cms_admin.config import Settings

logger = logging.getLogger(__name__)


async def init_database(settings: Settings) -> CosmosStore:
    """Connect to Cosmos DB and make sure the content container exists."""
    cosmos = CosmosStore(settings.cosmos)
    try:
        await cosmos.initialize()
    except AzureError as exc:
        msg = f"Cannot reach Cosmos DB at {settings.cosmos.endpoint}"
        raise ConnectionError(msg) from exc
    return cosmos


async def _content_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, ContentError):
        raise exc
    if isinstance(exc, StoreUnavailableError):
        logger.error(
            "Store unavailable — %s %s", request.method, request.url.path, exc_info=exc
        )
    body: dict[str, object] = {"detail": exc.message, "kind": exc.kind}
    if isinstance(exc, StaleVersionError) and exc.current_version is not None:
        body["current_version"] = exc.current_version
    return JSONResponse(status_code=exc.status_code, content=body)


async def _request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(errors), "kind": "validation_error"},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings

    if settings.app.is_development and not await check_emulators(settings):
        msg = "Local dependencies are not running"
        raise RuntimeError(msg)

    cosmos = await init_database(settings)
    app.state.cosmos = cosmos

    poller: ScheduledPublishPoller | None = None
    if settings.scheduler.enabled:
        repo = ContentVersionRepository(cosmos.database, container_name=settings.cosmos.container)
        poller = ScheduledPublishPoller(repo, interval_seconds=settings.scheduler.interval_seconds)
        await poller.start()
    app.state.scheduler = poller

    logger.info("CMS admin API started — env=%s", settings.app.env)
    yield

    if poller:
        await poller.stop()
    await cosmos.close()
    logger.info("CMS admin API shutdown complete")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = load_settings()
    configure_logging(settings.app.log_level)

    app = FastAPI(title="CMS Admin", lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.app.secret_key or secrets.token_urlsafe(32),
    )
    app.add_exception_handler(ContentError, _content_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.include_router(content.router)
    app.include_router(health.router)
    return app


def main() -> None:
    """Serve the API with uvicorn."""
    settings = load_settings()
    uvicorn.run(
        "cms_admin.app:create_app",
        factory=True,
        host=settings.app.host,
        port=settings.app.port,
    )


if __name__ == "__main__":
    main()
