"""Content routes — create, list latest, edit, history, publish, unpublish."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request

from cms_admin.auth.middleware import current_user_id
from cms_admin.database.repositories.content import ContentVersionRepository
from cms_admin.errors import ContentValidationError
from cms_admin.models.content import ContentStatus, ContentType, ContentVersion, PageType
from cms_admin.models.requests import (
    CreateContentRequest,
    PublishRequest,
    UnpublishRequest,
    UpdateContentRequest,
)
from cms_admin.resolver import ContentFilter, Pagination
from cms_admin.services.content import create_content, edit_content
from cms_admin.services.publishing import publish_content, unpublish_content

router = APIRouter(prefix="/content", tags=["content"])

# Path alias for the homepage, whose slug is the empty string.
HOME_SLUG_ALIAS = "__home__"


def _repository(request: Request) -> ContentVersionRepository:
    cosmos = request.app.state.cosmos
    settings = request.app.state.settings
    return ContentVersionRepository(cosmos.database, container_name=settings.cosmos.container)


def _slug(path_slug: str) -> str:
    return "" if path_slug == HOME_SLUG_ALIAS else path_slug


def _dump(record: ContentVersion) -> dict[str, Any]:
    return record.model_dump(mode="json")


@router.post("")
async def create(request: Request, body: CreateContentRequest) -> dict[str, Any]:
    """Create version 1 of a new content item."""
    repo = _repository(request)
    record = await create_content(body, repo, user=current_user_id(request))
    return _dump(record)


@router.get("")
async def list_content(
    request: Request,
    content_type: ContentType | None = Query(default=None, alias="type"),
    status: ContentStatus | None = None,
    page_type: PageType | None = Query(default=None, alias="pageType"),
    product_id: str | None = Query(default=None, alias="productId"),
    search: str | None = None,
    public_view: bool = Query(default=False, alias="publicView"),
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    """List the latest version of every slug matching the filters."""
    if public_view and status is None:
        status = ContentStatus.PUBLISHED
    content_filter = ContentFilter(
        type=content_type,
        status=status,
        page_type=page_type,
        product_id=product_id,
        search=search or None,
    )
    repo = _repository(request)
    result = await repo.list_latest_per_slug(content_filter, page, limit)
    return result.to_dict()


@router.get("/{slug}")
async def get_latest(request: Request, slug: str, published: bool = False) -> dict[str, Any]:
    """Return the current version; ``published=true`` is the public read."""
    repo = _repository(request)
    if published:
        return _dump(await repo.get_latest_published(_slug(slug)))
    return _dump(await repo.get_latest(_slug(slug)))


@router.put("/{slug}")
async def update(request: Request, slug: str, body: UpdateContentRequest) -> dict[str, Any]:
    """Append a new version with the edited fields."""
    repo = _repository(request)
    record = await edit_content(_slug(slug), body, repo, user=current_user_id(request))
    return _dump(record)


@router.get("/{slug}/versions")
async def list_versions(
    request: Request, slug: str, page: int = 1, limit: int = 10
) -> dict[str, Any]:
    """Return the slug's version history, newest first."""
    repo = _repository(request)
    records, total = await repo.list_versions(_slug(slug), page, limit)
    return {
        "versions": [_dump(record) for record in records],
        "pagination": Pagination(total=total, page=page, limit=limit).to_dict(),
    }


@router.get("/{slug}/versions/{version}")
async def get_version(request: Request, slug: str, version: int) -> dict[str, Any]:
    """Return one specific version of the slug."""
    repo = _repository(request)
    return _dump(await repo.get_version(_slug(slug), version))


@router.post("/{slug}/publish")
async def publish(
    request: Request, slug: str, body: PublishRequest | None = None
) -> dict[str, Any]:
    """Publish the current version now, or schedule it with ``publishAt``."""
    body = body or PublishRequest()
    repo = _repository(request)
    record = await publish_content(
        _slug(slug),
        repo,
        publish_at=body.publish_at,
        expected_version=body.version,
        user=current_user_id(request),
    )
    return _dump(record)


@router.delete("/{slug}/publish")
async def unpublish(
    request: Request,
    slug: str,
    version: int | None = Query(default=None, ge=1),
    body: UnpublishRequest | None = None,
) -> dict[str, Any]:
    """Return the current version to draft and cancel any schedule.

    The expected version may come from the body or the ``version`` query
    parameter; when both are sent they must agree.
    """
    body_version = body.version if body else None
    if body_version is not None and version is not None and body_version != version:
        raise ContentValidationError("Body and query version disagree", slug=slug)
    repo = _repository(request)
    record = await unpublish_content(
        _slug(slug),
        repo,
        expected_version=body_version if body_version is not None else version,
        user=current_user_id(request),
    )
    return _dump(record)
