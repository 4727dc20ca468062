"""Scheduled publish poller — promotes scheduled drafts once their time arrives."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from cms_admin.errors import NotFoundError, StaleVersionError
from cms_admin.services.publishing import apply_publish

if TYPE_CHECKING:
    from cms_admin.database.repositories.content import ContentVersionRepository
    from cms_admin.models.content import ContentVersion

logger = logging.getLogger(__name__)

SCHEDULER_USER = "scheduler"


class ScheduledPublishPoller:
    """Polls for due scheduled drafts and publishes them in place.

    Runs as a background task within the FastAPI lifespan. Each publish is
    conditional on the etag read during the poll, so a record rescheduled,
    unpublished or edited in the meantime is skipped rather than published.
    """

    def __init__(self, repo: ContentVersionRepository, *, interval_seconds: float = 60.0) -> None:
        self._repo = repo
        self._interval = interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start polling in a background task."""
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info("Scheduled publish poller started — interval=%.0fs", self._interval)

    async def stop(self) -> None:
        """Stop the poller gracefully."""
        self._running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        logger.info("Scheduled publish poller stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Error polling scheduled content")
            await asyncio.sleep(self._interval)

    async def run_once(self, now: datetime | None = None) -> list[ContentVersion]:
        """Publish every due scheduled draft once. Returns the published records."""
        now = now or datetime.now(UTC)
        due = await self._repo.list_due_scheduled(now)
        published: list[ContentVersion] = []
        for record in due:
            try:
                saved = await self._repo.replace_current(
                    apply_publish(record, publish_at=None, now=now, user=SCHEDULER_USER)
                )
            except (StaleVersionError, NotFoundError):
                logger.warning(
                    "Skipped scheduled publish — slug=%s version=%d changed since poll",
                    record.slug,
                    record.version,
                )
                continue
            except Exception:
                logger.exception("Failed to publish scheduled content %s", record.slug)
                continue
            logger.info(
                "Published scheduled content — slug=%s version=%d", saved.slug, saved.version
            )
            published.append(saved)
        return published
