"""Latest-version resolution over a set of version records.

"Current" is never stored: it is recomputed here as the highest version per
slug. Listing reduces to one record per slug *before* any filter runs, so a
status filter only ever sees the latest record of each slug.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from cms_admin.errors import ContentValidationError
from cms_admin.models.content import ContentVersion, PublishState

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from cms_admin.models.content import ContentStatus, ContentType, PageType

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ContentFilter:
    """Predicates applied to the latest record of each slug."""

    type: ContentType | None = None
    status: ContentStatus | None = None
    page_type: PageType | None = None
    product_id: str | None = None
    search: str | None = None

    def matches(self, record: ContentVersion) -> bool:
        if self.type is not None and record.type != self.type:
            return False
        if self.status is not None and record.status != self.status:
            return False
        if self.page_type is not None and record.page_type != self.page_type:
            return False
        if self.product_id is not None and record.product_id != self.product_id:
            return False
        if self.search:
            needle = self.search.casefold()
            return needle in record.title.casefold() or needle in record.slug.casefold()
        return True


@dataclass(frozen=True)
class Pagination:
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "pages": self.pages,
        }


@dataclass(frozen=True)
class Page:
    items: list[ContentVersion] = field(default_factory=list)
    pagination: Pagination = field(default_factory=lambda: Pagination(0, 1, 20))

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.model_dump(mode="json") for item in self.items],
            "pagination": self.pagination.to_dict(),
        }


def check_paging(page: int, page_size: int) -> None:
    """Reject page numbers below 1 and sizes outside 1..MAX_PAGE_SIZE."""
    if page < 1:
        raise ContentValidationError("page must be 1 or greater")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ContentValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")


def select_latest(records: Iterable[ContentVersion]) -> ContentVersion | None:
    """Return the record with the highest version, or None for an empty set."""
    return max(records, key=lambda record: record.version, default=None)


def latest_per_slug(records: Iterable[ContentVersion]) -> list[ContentVersion]:
    """Group by slug and keep only the maximum-version record of each group."""
    latest: dict[str, ContentVersion] = {}
    for record in records:
        held = latest.get(record.slug)
        if held is None or record.version > held.version:
            latest[record.slug] = record
    return list(latest.values())


def paginate(items: list[ContentVersion], page: int, page_size: int) -> Page:
    check_paging(page, page_size)
    start = (page - 1) * page_size
    return Page(
        items=items[start : start + page_size],
        pagination=Pagination(total=len(items), page=page, limit=page_size),
    )


def resolve_listing(
    records: Iterable[ContentVersion],
    content_filter: ContentFilter,
    page: int,
    page_size: int,
) -> Page:
    """Reduce to latest-per-slug, filter, sort by ``updated_at`` desc, paginate."""
    check_paging(page, page_size)
    candidates = [r for r in latest_per_slug(records) if content_filter.matches(r)]
    candidates.sort(key=lambda record: record.slug)
    candidates.sort(key=lambda record: record.updated_at, reverse=True)
    return paginate(candidates, page, page_size)


def due_scheduled(records: Iterable[ContentVersion], now: datetime) -> list[ContentVersion]:
    """Latest records that are scheduled drafts whose publish time has arrived."""
    return [
        record
        for record in latest_per_slug(records)
        if record.publish_state == PublishState.SCHEDULED
        and record.scheduled_publish_at is not None
        and record.scheduled_publish_at <= now
    ]


__all__ = [
    "MAX_PAGE_SIZE",
    "ContentFilter",
    "Page",
    "Pagination",
    "check_paging",
    "due_scheduled",
    "latest_per_slug",
    "paginate",
    "resolve_listing",
    "select_latest",
]
