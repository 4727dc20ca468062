"""Content business logic — create new items and append edited versions."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from cms_admin.errors import ContentValidationError
from cms_admin.models.content import ContentStatus, ContentType, ContentVersion

if TYPE_CHECKING:
    from cms_admin.database.repositories.content import ContentVersionRepository
    from cms_admin.models.requests import CreateContentRequest, UpdateContentRequest

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def _require(request: CreateContentRequest) -> None:
    missing = [name for name in ("slug", "title", "type") if not getattr(request, name)]
    if missing:
        raise ContentValidationError(f"Missing required fields: {', '.join(missing)}")
    if not SLUG_PATTERN.match(request.slug or ""):
        raise ContentValidationError(
            "slug must be lowercase letters and digits separated by single hyphens"
        )
    if request.type == ContentType.PRODUCT and not request.product_id:
        raise ContentValidationError("productId is required for product content")
    if request.type == ContentType.BLOG and not request.blog_category:
        raise ContentValidationError("blogCategory is required for blog content")


def build_initial_version(
    request: CreateContentRequest,
    *,
    user: str,
    now: datetime,
) -> ContentVersion:
    """Validate a create request and build version 1 of the item."""
    _require(request)
    status = request.status or ContentStatus.DRAFT
    seo = request.seo or {
        "title": request.title,
        "description": request.blog_excerpt or "",
        "keywords": request.blog_tags or [],
    }
    is_blog = request.type == ContentType.BLOG
    return ContentVersion(
        slug=request.slug,
        version=1,
        type=request.type,
        title=request.title,
        status=status,
        blocks=request.blocks or [],
        seo=seo,
        settings=request.settings or {},
        page_type=request.page_type if request.type == ContentType.PAGE else None,
        product_id=request.product_id,
        blog_category=request.blog_category if is_blog else None,
        blog_tags=(request.blog_tags or []) if is_blog else None,
        blog_author=request.blog_author if is_blog else None,
        blog_featured_image=request.blog_featured_image if is_blog else None,
        blog_excerpt=request.blog_excerpt if is_blog else None,
        published_at=now if status == ContentStatus.PUBLISHED else None,
        created_by=user,
        updated_by=user,
        created_at=now,
        updated_at=now,
    )


async def create_content(
    request: CreateContentRequest,
    repo: ContentVersionRepository,
    *,
    user: str = "system",
    now: datetime | None = None,
) -> ContentVersion:
    """Create version 1 of a new slug. Slugs are never reused."""
    record = build_initial_version(request, user=user, now=now or datetime.now(UTC))
    created = await repo.create_version(record)
    logger.info(
        "Created content — slug=%s type=%s status=%s", created.slug, created.type, created.status
    )
    return created


async def edit_content(
    slug: str,
    request: UpdateContentRequest,
    repo: ContentVersionRepository,
    *,
    user: str = "system",
    now: datetime | None = None,
) -> ContentVersion:
    """Append a new version carrying the edited fields. Prior versions stay untouched."""
    changes = request.changes()
    if not changes:
        raise ContentValidationError("No content changes supplied")
    if "title" in changes and not changes["title"]:
        raise ContentValidationError("title cannot be empty")
    record = await repo.append_version(
        slug, request.version, changes, user=user, now=now or datetime.now(UTC)
    )
    logger.info("Appended content version — slug=%s version=%d", slug, record.version)
    return record
