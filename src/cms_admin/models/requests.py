"""Request payloads accepted by the content API.

Bodies accept the camelCase keys the admin client sends (``publishAt``,
``productId``) as well as the snake_case field names.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cms_admin.models.content import ContentStatus, ContentType, PageType

_EDITABLE_FIELDS = frozenset(
    {
        "title",
        "blocks",
        "seo",
        "settings",
        "blog_category",
        "blog_tags",
        "blog_author",
        "blog_featured_image",
        "blog_excerpt",
    }
)


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateContentRequest(_RequestModel):
    """Fields for version 1 of a new content item."""

    slug: str | None = None
    title: str | None = None
    type: ContentType | None = None
    status: ContentStatus | None = None
    blocks: list[dict[str, Any]] | None = None
    seo: dict[str, Any] | None = None
    settings: dict[str, Any] | None = None
    page_type: PageType | None = None
    product_id: str | None = None
    blog_category: str | None = None
    blog_tags: list[str] | None = None
    blog_author: str | None = None
    blog_featured_image: str | None = None
    blog_excerpt: str | None = None


class UpdateContentRequest(_RequestModel):
    """A content edit based on ``version``, the version the editor last read."""

    version: int = Field(ge=1)
    title: str | None = None
    blocks: list[dict[str, Any]] | None = None
    seo: dict[str, Any] | None = None
    settings: dict[str, Any] | None = None
    blog_category: str | None = None
    blog_tags: list[str] | None = None
    blog_author: str | None = None
    blog_featured_image: str | None = None
    blog_excerpt: str | None = None

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually sent.

        An explicit null clears an optional blog field; it is dropped for
        title, blocks, seo and settings, which always hold a value.
        """
        sent = self.model_dump(include=set(_EDITABLE_FIELDS), exclude_unset=True)
        return {
            name: value
            for name, value in sent.items()
            if value is not None or name.startswith("blog_")
        }


class PublishRequest(_RequestModel):
    publish_at: datetime | None = None
    version: int | None = Field(default=None, ge=1)


class UnpublishRequest(_RequestModel):
    version: int | None = Field(default=None, ge=1)
