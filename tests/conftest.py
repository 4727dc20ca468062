"""Shared fixtures: an in-memory stand-in for the content repository."""

from __future__ import annotations

import itertools
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from cms_admin.database.repositories.content import ContentVersionRepository
from cms_admin.errors import (
    ContentValidationError,
    DuplicateSlugError,
    NotFoundError,
    StaleVersionError,
)
from cms_admin.models.content import ContentStatus, ContentVersion
from cms_admin.resolver import (
    ContentFilter,
    Page,
    check_paging,
    due_scheduled,
    resolve_listing,
    select_latest,
)


class InMemoryContentRepository:
    """Mirrors ContentVersionRepository semantics, etags included, over a dict."""

    def __init__(self) -> None:
        self._docs: dict[tuple[str, int], dict[str, Any]] = {}
        self._etags = itertools.count(1)

    def _store(self, record: ContentVersion) -> ContentVersion:
        doc = record.to_document()
        doc["_etag"] = f'"{next(self._etags)}"'
        self._docs[(record.slug, record.version)] = doc
        return ContentVersion.model_validate(doc)

    def records(self, slug: str | None = None) -> list[ContentVersion]:
        return [
            ContentVersion.model_validate(doc)
            for (doc_slug, _), doc in self._docs.items()
            if slug is None or doc_slug == slug
        ]

    async def slug_exists(self, slug: str) -> bool:
        return any(doc_slug == slug for doc_slug, _ in self._docs)

    async def get_latest(self, slug: str) -> ContentVersion:
        latest = select_latest(self.records(slug))
        if latest is None:
            raise NotFoundError(f"Content not found: {slug}", slug=slug)
        return latest

    async def get_latest_published(self, slug: str) -> ContentVersion:
        latest = await self.get_latest(slug)
        if latest.status != ContentStatus.PUBLISHED:
            raise NotFoundError(f"No published content for: {slug}", slug=slug)
        return latest

    async def get_version(self, slug: str, version: int) -> ContentVersion:
        doc = self._docs.get((slug, version))
        if doc is None:
            raise NotFoundError(f"Version {version} not found for: {slug}", slug=slug)
        return ContentVersion.model_validate(doc)

    async def list_versions(
        self, slug: str, page: int = 1, page_size: int = 10
    ) -> tuple[list[ContentVersion], int]:
        check_paging(page, page_size)
        history = sorted(self.records(slug), key=lambda r: r.version, reverse=True)
        if not history:
            raise NotFoundError(f"Content not found: {slug}", slug=slug)
        start = (page - 1) * page_size
        return history[start : start + page_size], len(history)

    async def list_latest_per_slug(
        self, content_filter: ContentFilter, page: int = 1, page_size: int = 20
    ) -> Page:
        return resolve_listing(self.records(), content_filter, page, page_size)

    async def list_due_scheduled(self, now: datetime | None = None) -> list[ContentVersion]:
        return due_scheduled(self.records(), now or datetime.now(UTC))

    async def create_version(self, record: ContentVersion) -> ContentVersion:
        if await self.slug_exists(record.slug):
            raise DuplicateSlugError("exists", slug=record.slug)
        return self._store(record)

    async def append_version(
        self,
        slug: str,
        prior_version: int,
        changes: dict[str, Any],
        *,
        user: str,
        now: datetime | None = None,
    ) -> ContentVersion:
        current = await self.get_latest(slug)
        if current.version != prior_version:
            raise StaleVersionError(
                "stale",
                slug=slug,
                expected_version=prior_version,
                current_version=current.version,
            )
        applied = current.applicable_changes(changes)
        if not applied:
            raise ContentValidationError("no applicable changes", slug=slug)
        new_record = ContentVersion.model_validate(
            {
                **current.to_document(),
                **applied,
                "version": prior_version + 1,
                "updated_by": user,
                "updated_at": now or datetime.now(UTC),
            }
        )
        return await self.commit_append(current, new_record)

    async def commit_append(
        self, current: ContentVersion, new_record: ContentVersion
    ) -> ContentVersion:
        """The transactional batch: etag-checked rewrite of prior plus create of new."""
        stored = self._docs[(current.slug, current.version)]
        if stored["_etag"] != current.etag or (new_record.slug, new_record.version) in self._docs:
            raise StaleVersionError("stale", slug=current.slug, expected_version=current.version)
        stored["_etag"] = f'"{next(self._etags)}"'
        return self._store(new_record)

    async def replace_current(self, record: ContentVersion) -> ContentVersion:
        stored = self._docs.get((record.slug, record.version))
        if stored is None:
            raise NotFoundError("missing", slug=record.slug)
        if stored["_etag"] != record.etag:
            raise StaleVersionError("stale", slug=record.slug, expected_version=record.version)
        return self._store(record)


@pytest.fixture
def memory_repo() -> InMemoryContentRepository:
    return InMemoryContentRepository()


@pytest.fixture
def mock_container() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def content_repo(mock_container: AsyncMock) -> ContentVersionRepository:
    """A real repository wired to a mocked Cosmos container."""
    mock_db = MagicMock()
    mock_db.get_container_client.return_value = mock_container
    return ContentVersionRepository(mock_db)


@pytest.fixture
def async_items():
    """Build async iterators standing in for AsyncItemPaged query results."""

    def _build(items: list[Any]):
        async def _gen():
            for item in items:
                yield item

        return _gen()

    return _build


@pytest.fixture
def make_record():
    """Factory for ContentVersion records with sensible defaults."""

    def _make(slug: str = "about", version: int = 1, **fields: Any) -> ContentVersion:
        data: dict[str, Any] = {
            "slug": slug,
            "version": version,
            "type": "page",
            "title": f"{slug} v{version}",
            **fields,
        }
        return ContentVersion.model_validate(data)

    return _make
