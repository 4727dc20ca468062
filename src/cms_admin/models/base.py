"""Shared base for documents persisted in Cosmos DB."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Properties Cosmos DB adds to every stored document.
SYSTEM_PROPERTIES = frozenset({"_rid", "_self", "_etag", "_attachments", "_ts"})


def utcnow() -> datetime:
    return datetime.now(UTC)


def strip_system_properties(document: dict[str, Any]) -> dict[str, Any]:
    """Return the stored body without the Cosmos system properties."""
    return {key: value for key, value in document.items() if key not in SYSTEM_PROPERTIES}


class DocumentBase(BaseModel):
    """Fields every stored document carries.

    ``etag`` mirrors the system ``_etag`` property returned on reads. It is
    never written back as part of the body; repositories pass it separately
    as the match condition for conditional writes.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    etag: str | None = Field(default=None, alias="_etag", exclude=True)
