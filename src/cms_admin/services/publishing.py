"""Publish state machine — in-place transitions on the current version.

States are derived from field combinations on the record:

* draft: ``status=draft``, no timestamps
* scheduled: ``status=draft`` with ``scheduled_publish_at`` set
* published: ``status=published`` with ``published_at`` set

``published_at`` and ``scheduled_publish_at`` are never both set. No
transition allocates a version number. Promoting a scheduled draft once its
time arrives is just another ``publish_content`` call without ``publish_at``.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from cms_admin.errors import StaleVersionError
from cms_admin.models.content import ContentStatus, ContentVersion

if TYPE_CHECKING:
    from cms_admin.database.repositories.content import ContentVersionRepository

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def apply_publish(
    record: ContentVersion,
    *,
    publish_at: datetime | None,
    now: datetime,
    user: str,
) -> ContentVersion:
    """Return the record published now, or scheduled when ``publish_at`` is in the future."""
    if publish_at is not None and _as_utc(publish_at) > now:
        return record.model_copy(
            update={
                "status": ContentStatus.DRAFT,
                "published_at": None,
                "scheduled_publish_at": _as_utc(publish_at),
                "updated_by": user,
                "updated_at": now,
            }
        )
    return record.model_copy(
        update={
            "status": ContentStatus.PUBLISHED,
            "published_at": now,
            "scheduled_publish_at": None,
            "updated_by": user,
            "updated_at": now,
        }
    )


def apply_unpublish(record: ContentVersion, *, now: datetime, user: str) -> ContentVersion:
    """Return the record as a plain draft with both publish timestamps cleared."""
    return record.model_copy(
        update={
            "status": ContentStatus.DRAFT,
            "published_at": None,
            "scheduled_publish_at": None,
            "updated_by": user,
            "updated_at": now,
        }
    )


async def _read_current(
    slug: str,
    repo: ContentVersionRepository,
    expected_version: int | None,
) -> ContentVersion:
    current = await repo.get_latest(slug)
    if expected_version is not None and current.version != expected_version:
        raise StaleVersionError(
            f"Version {expected_version} of {slug} is no longer current",
            slug=slug,
            expected_version=expected_version,
            current_version=current.version,
        )
    return current


async def publish_content(
    slug: str,
    repo: ContentVersionRepository,
    *,
    publish_at: datetime | None = None,
    expected_version: int | None = None,
    user: str = "system",
    now: datetime | None = None,
) -> ContentVersion:
    """Publish the current version now, or schedule it for ``publish_at``."""
    current = await _read_current(slug, repo, expected_version)
    updated = apply_publish(
        current,
        publish_at=publish_at,
        now=now or datetime.now(UTC),
        user=user,
    )
    saved = await repo.replace_current(updated)
    if saved.status == ContentStatus.PUBLISHED:
        logger.info("Published content — slug=%s version=%d", slug, saved.version)
    else:
        logger.info(
            "Scheduled content — slug=%s version=%d publish_at=%s",
            slug,
            saved.version,
            saved.scheduled_publish_at,
        )
    return saved


async def unpublish_content(
    slug: str,
    repo: ContentVersionRepository,
    *,
    expected_version: int | None = None,
    user: str = "system",
    now: datetime | None = None,
) -> ContentVersion:
    """Return the current version to draft, cancelling any pending schedule."""
    current = await _read_current(slug, repo, expected_version)
    updated = apply_unpublish(current, now=now or datetime.now(UTC), user=user)
    saved = await repo.replace_current(updated)
    logger.info("Unpublished content — slug=%s version=%d", slug, saved.version)
    return saved
