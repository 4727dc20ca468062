"""Data models for Cosmos DB document types."""

from cms_admin.models.content import (
    ContentStatus,
    ContentType,
    ContentVersion,
    PageType,
    PublishState,
)

__all__ = [
    "ContentStatus",
    "ContentType",
    "ContentVersion",
    "PageType",
    "PublishState",
]
