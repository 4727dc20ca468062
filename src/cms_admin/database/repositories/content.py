"""Repository for the cms_content container (partitioned by /slug).

Each document is one (slug, version) record with ``id == str(version)``.
Writes touching "the current record" are conditional on the etag observed
at read time; an append additionally rewrites the prior record, byte for
byte, in the same transactional batch so its etag moves and any writer
still holding the old one is rejected.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from azure.core import MatchConditions
from azure.cosmos.exceptions import (
    CosmosBatchOperationError,
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)
from pydantic import TypeAdapter

from cms_admin.database.repositories.base import BaseRepository, store_errors
from cms_admin.errors import (
    ContentValidationError,
    DuplicateSlugError,
    NotFoundError,
    StaleVersionError,
)
from cms_admin.models.base import strip_system_properties
from cms_admin.models.content import ContentStatus, ContentVersion
from cms_admin.resolver import (
    ContentFilter,
    Page,
    check_paging,
    due_scheduled,
    latest_per_slug,
    resolve_listing,
)

if TYPE_CHECKING:
    from cms_admin.models.content import ContentType

logger = logging.getLogger(__name__)

_HTTP_CONFLICT = 409
_HTTP_PRECONDITION_FAILED = 412

# Everything the listing filters and sorts on; blocks, seo and settings stay
# in the store until the page's records are point-read.
_SUMMARY_FIELDS = ", ".join(
    f"c.{name}"
    for name in (
        "slug",
        "version",
        "type",
        "title",
        "status",
        "page_type",
        "product_id",
        "scheduled_publish_at",
        "updated_at",
    )
)

_DUE_SCHEDULED_QUERY = (
    "SELECT * FROM c WHERE c.status = @draft"
    " AND IS_DEFINED(c.scheduled_publish_at) AND c.scheduled_publish_at <= @now"
)

_datetime_adapter = TypeAdapter(datetime)


class ContentVersionRepository(BaseRepository[ContentVersion]):
    """Version record store and latest-version reads for CMS content."""

    container_name = "cms_content"
    model_class = ContentVersion

    # ── Reads ────────────────────────────────────────────────────

    async def slug_exists(self, slug: str) -> bool:
        """Return True if any version, of any status, exists for the slug."""
        count = await self.scalar(
            "SELECT VALUE COUNT(1) FROM c WHERE c.slug = @slug",
            [{"name": "@slug", "value": slug}],
            partition_key=slug,
        )
        return count > 0

    async def _latest_document(self, slug: str) -> dict[str, Any]:
        documents = await self.query_documents(
            "SELECT TOP 1 * FROM c WHERE c.slug = @slug ORDER BY c.version DESC",
            [{"name": "@slug", "value": slug}],
            partition_key=slug,
        )
        if not documents:
            raise NotFoundError(f"Content not found: {slug}", slug=slug)
        return documents[0]

    async def get_latest(self, slug: str) -> ContentVersion:
        """Return the highest-version record for the slug."""
        return self.model_class.model_validate(await self._latest_document(slug))

    async def get_latest_published(self, slug: str) -> ContentVersion:
        """Return the latest record only if that record is published."""
        latest = await self.get_latest(slug)
        if latest.status != ContentStatus.PUBLISHED:
            raise NotFoundError(f"No published content for: {slug}", slug=slug)
        return latest

    async def get_version(self, slug: str, version: int) -> ContentVersion:
        record = await self.get(str(version), slug)
        if record is None:
            raise NotFoundError(f"Version {version} not found for: {slug}", slug=slug)
        return record

    async def list_versions(
        self, slug: str, page: int = 1, page_size: int = 10
    ) -> tuple[list[ContentVersion], int]:
        """Return one page of a slug's history, newest version first, plus the total."""
        check_paging(page, page_size)
        params = [{"name": "@slug", "value": slug}]
        total = await self.scalar(
            "SELECT VALUE COUNT(1) FROM c WHERE c.slug = @slug",
            params,
            partition_key=slug,
        )
        if total == 0:
            raise NotFoundError(f"Content not found: {slug}", slug=slug)
        records = await self.query(
            "SELECT * FROM c WHERE c.slug = @slug ORDER BY c.version DESC"
            " OFFSET @offset LIMIT @limit",
            [
                *params,
                {"name": "@offset", "value": (page - 1) * page_size},
                {"name": "@limit", "value": page_size},
            ],
            partition_key=slug,
        )
        return records, total

    async def list_summaries(
        self, content_type: ContentType | None = None
    ) -> list[ContentVersion]:
        """Fetch the filterable fields of every version record.

        Type is fixed at creation and carried by every version of a slug, so
        narrowing on it before the latest-per-slug reduction is safe.
        """
        if content_type is None:
            return await self.query(f"SELECT {_SUMMARY_FIELDS} FROM c")
        return await self.query(
            f"SELECT {_SUMMARY_FIELDS} FROM c WHERE c.type = @type",
            [{"name": "@type", "value": content_type.value}],
        )

    async def list_latest_per_slug(
        self, content_filter: ContentFilter, page: int = 1, page_size: int = 20
    ) -> Page:
        """List the latest record of every slug that passes the filter.

        Reduction, filtering and paging run over summaries; only the records
        on the requested page are read in full.
        """
        check_paging(page, page_size)
        summaries = await self.list_summaries(content_filter.type)
        listing = resolve_listing(summaries, content_filter, page, page_size)
        items = await asyncio.gather(
            *(self.get_version(summary.slug, summary.version) for summary in listing.items)
        )
        return Page(items=list(items), pagination=listing.pagination)

    async def list_due_scheduled(self, now: datetime | None = None) -> list[ContentVersion]:
        """Latest records whose scheduled publish time has arrived.

        The query only finds candidates; each is kept when it is still the
        latest version of its slug and still due.
        """
        now = now or datetime.now(UTC)
        candidates = await self.query(
            _DUE_SCHEDULED_QUERY,
            [
                {"name": "@draft", "value": ContentStatus.DRAFT.value},
                {"name": "@now", "value": _datetime_adapter.dump_python(now, mode="json")},
            ],
        )
        due: list[ContentVersion] = []
        for candidate in latest_per_slug(candidates):
            latest = await self.get_latest(candidate.slug)
            if latest.version == candidate.version:
                due.extend(due_scheduled([latest], now))
        return due

    # ── Writes ───────────────────────────────────────────────────

    async def create_version(self, record: ContentVersion) -> ContentVersion:
        """Insert the first version of a new slug.

        Rejected when any record already exists for the slug. Two creators
        racing on the same slug both target id ``"1"`` in one partition, so
        the loser gets a 409 from the store.
        """
        if await self.slug_exists(record.slug):
            logger.warning("Rejected duplicate slug=%s", record.slug)
            raise DuplicateSlugError(
                f"Content with this slug already exists: {record.slug}", slug=record.slug
            )
        with store_errors("create"):
            try:
                data = await self._container.create_item(body=record.to_document())
            except CosmosResourceExistsError as exc:
                logger.warning("Lost creation race for slug=%s", record.slug)
                raise DuplicateSlugError(
                    f"Content with this slug already exists: {record.slug}", slug=record.slug
                ) from exc
        return self.model_class.model_validate(data)

    async def append_version(
        self,
        slug: str,
        prior_version: int,
        changes: dict[str, Any],
        *,
        user: str,
        now: datetime | None = None,
    ) -> ContentVersion:
        """Create ``prior_version + 1`` from the current record plus ``changes``.

        The new record inherits status and publish timestamps. Blog metadata
        edits are ignored for other content types. The prior record is
        rewritten exactly as stored, under an etag match, so the batch fails
        if anything touched it since the read.
        """
        stored = await self._latest_document(slug)
        current = self.model_class.model_validate(stored)
        if current.version != prior_version:
            raise StaleVersionError(
                f"Version {prior_version} of {slug} is no longer current",
                slug=slug,
                expected_version=prior_version,
                current_version=current.version,
            )
        applied = current.applicable_changes(changes)
        if not applied:
            raise ContentValidationError(f"No applicable changes for {current.type} content")

        timestamp = now or datetime.now(UTC)
        new_record = ContentVersion.model_validate(
            {
                **current.to_document(),
                **applied,
                "version": prior_version + 1,
                "updated_by": user,
                "updated_at": timestamp,
            }
        )

        operations: list[tuple[Any, ...]] = [
            (
                "replace",
                (current.id, strip_system_properties(stored)),
                {"if_match_etag": current.etag},
            ),
            ("create", (new_record.to_document(),)),
        ]
        with store_errors("append"):
            try:
                results = await self._container.execute_item_batch(
                    batch_operations=operations, partition_key=slug
                )
            except CosmosBatchOperationError as exc:
                if exc.status_code in (_HTTP_CONFLICT, _HTTP_PRECONDITION_FAILED):
                    logger.warning(
                        "Stale append rejected — slug=%s prior_version=%d", slug, prior_version
                    )
                    raise StaleVersionError(
                        f"Version {prior_version} of {slug} changed during the edit",
                        slug=slug,
                        expected_version=prior_version,
                    ) from exc
                raise

        created = results[1] if len(results) > 1 else {}
        body = created.get("resourceBody") if isinstance(created, dict) else None
        if body:
            return self.model_class.model_validate(body)
        return new_record

    async def replace_current(self, record: ContentVersion) -> ContentVersion:
        """Write an in-place change to the record, conditional on its etag."""
        with store_errors("replace"):
            try:
                data = await self._container.replace_item(
                    item=record.id,
                    body=record.to_document(),
                    etag=record.etag,
                    match_condition=MatchConditions.IfNotModified,
                )
            except CosmosResourceNotFoundError as exc:
                raise NotFoundError(
                    f"Version {record.version} not found for: {record.slug}", slug=record.slug
                ) from exc
            except CosmosHttpResponseError as exc:
                if exc.status_code != _HTTP_PRECONDITION_FAILED:
                    raise
                logger.warning(
                    "Stale in-place write rejected — slug=%s version=%d",
                    record.slug,
                    record.version,
                )
                raise StaleVersionError(
                    f"Version {record.version} of {record.slug} was modified concurrently",
                    slug=record.slug,
                    expected_version=record.version,
                ) from exc
        return self.model_class.model_validate(data)
