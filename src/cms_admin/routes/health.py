"""Health route — confirms the content store is reachable."""

from __future__ import annotations

import logging

from azure.core.exceptions import AzureError
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Check the Cosmos database and report the scheduler state."""
    cosmos = request.app.state.cosmos
    scheduler = request.app.state.scheduler
    checks = {"scheduler": "running" if scheduler and scheduler.running else "disabled"}
    try:
        await cosmos.database.read()
    except AzureError:
        logger.warning("Health check failed — Cosmos DB unreachable", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "cosmos": "unreachable", **checks},
        )
    return JSONResponse(content={"status": "ok", "cosmos": "ok", **checks})
