"""Content version document model — one record per (slug, version)."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import Field, model_validator

from cms_admin.models.base import DocumentBase


class ContentType(StrEnum):
    PAGE = "page"
    BLOG = "blog"
    PRODUCT = "product"


class ContentStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"


class PageType(StrEnum):
    PREDEFINED = "predefined"
    CUSTOM = "custom"


BLOG_FIELDS = frozenset(
    {"blog_category", "blog_tags", "blog_author", "blog_featured_image", "blog_excerpt"}
)


class PublishState(StrEnum):
    """Logical publish state derived from ``status`` and the two timestamps."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


class ContentVersion(DocumentBase):
    """An immutable-once-superseded snapshot of one content item.

    The document id is the version number, so inside the ``/slug`` partition
    the store itself guarantees a single record per (slug, version). Which
    record is current is never stored: it is always the highest version.
    """

    slug: str
    version: int = Field(ge=1)
    type: ContentType
    title: str
    status: ContentStatus = ContentStatus.DRAFT
    blocks: list[dict[str, Any]] = Field(default_factory=list)
    seo: dict[str, Any] = Field(default_factory=dict)
    settings: dict[str, Any] = Field(default_factory=dict)

    page_type: PageType | None = None
    product_id: str | None = None

    blog_category: str | None = None
    blog_tags: list[str] | None = None
    blog_author: str | None = None
    blog_featured_image: str | None = None
    blog_excerpt: str | None = None

    published_at: datetime | None = None
    scheduled_publish_at: datetime | None = None

    created_by: str = "system"
    updated_by: str = "system"

    @model_validator(mode="before")
    @classmethod
    def _document_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and "version" in data:
            data = {**data, "id": str(data["version"])}
        return data

    @property
    def publish_state(self) -> PublishState:
        if self.status == ContentStatus.PUBLISHED:
            return PublishState.PUBLISHED
        if self.scheduled_publish_at is not None:
            return PublishState.SCHEDULED
        return PublishState.DRAFT

    def applicable_changes(self, changes: dict[str, Any]) -> dict[str, Any]:
        """Drop edits to blog metadata unless this record is a blog post."""
        if self.type == ContentType.BLOG:
            return dict(changes)
        return {name: value for name, value in changes.items() if name not in BLOG_FIELDS}

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON body stored in Cosmos DB."""
        return self.model_dump(mode="json", exclude_none=True)
