"""One-time migration: embedded history arrays to one document per version.

Legacy records kept every edit in a ``history`` array on a single document.
Each such record is replaced, atomically per slug, by discrete version
documents. Run it once, before serving traffic from the new layout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from azure.cosmos.exceptions import CosmosBatchOperationError

from cms_admin.models.base import SYSTEM_PROPERTIES

if TYPE_CHECKING:
    from azure.cosmos.aio import ContainerProxy

logger = logging.getLogger(__name__)

# Cosmos DB rejects transactional batches with more operations than this.
MAX_BATCH_OPERATIONS = 100

LEGACY_FIELDS = frozenset({"history", "is_current", "isCurrent"})

_LEGACY_QUERY = "SELECT * FROM c WHERE IS_DEFINED(c.history) AND ARRAY_LENGTH(c.history) > 0"


@dataclass
class MigrationReport:
    scanned: int = 0
    migrated: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def build_version_documents(legacy: dict[str, Any]) -> list[dict[str, Any]]:
    """Expand one legacy record into version documents, ascending by version.

    Every document copies the legacy record and takes ``version``, ``blocks``,
    ``title`` and the update audit fields from its history entry. The
    legacy record's own version is kept when its history does not list it.
    No document carries a current flag.
    """
    base = {
        key: value
        for key, value in legacy.items()
        if key not in LEGACY_FIELDS and key not in SYSTEM_PROPERTIES
    }
    documents: dict[int, dict[str, Any]] = {}
    for entry in legacy.get("history") or []:
        version = int(entry["version"])
        documents[version] = {
            **base,
            "id": str(version),
            "version": version,
            "title": entry.get("title", base.get("title")),
            "blocks": entry.get("blocks", []),
            "updated_by": entry.get("updated_by", base.get("updated_by")),
            "updated_at": entry.get("updated_at", base.get("updated_at")),
        }

    own_version = legacy.get("version")
    if own_version is not None and int(own_version) not in documents:
        documents[int(own_version)] = {**base, "id": str(own_version), "version": int(own_version)}

    return [documents[version] for version in sorted(documents)]


async def migrate_embedded_history(
    container: ContainerProxy, *, dry_run: bool = False
) -> MigrationReport:
    """Replace every legacy history-bearing record with discrete version documents."""
    report = MigrationReport()
    legacy_records = [item async for item in container.query_items(query=_LEGACY_QUERY)]
    logger.info("Found %d documents to migrate", len(legacy_records))

    for legacy in legacy_records:
        report.scanned += 1
        slug = legacy.get("slug")
        if slug is None:
            report.failed[str(legacy.get("id"))] = "record has no slug"
            logger.error("Skipping legacy record %s without a slug", legacy.get("id"))
            continue

        versions = build_version_documents(legacy)
        if len(versions) + 1 > MAX_BATCH_OPERATIONS:
            report.failed[slug] = f"{len(versions)} versions exceed a single transactional batch"
            logger.error("Cannot migrate %s atomically: %d versions", slug, len(versions))
            continue

        if dry_run:
            logger.info("Would migrate %s into %d versions", slug, len(versions))
            report.migrated.append(slug)
            continue

        operations: list[tuple[Any, ...]] = [("delete", (legacy["id"],))]
        operations.extend(("create", (document,)) for document in versions)
        try:
            await container.execute_item_batch(batch_operations=operations, partition_key=slug)
        except CosmosBatchOperationError as exc:
            report.failed[slug] = exc.message or str(exc)
            logger.error("Failed to migrate %s: %s", slug, report.failed[slug])  # noqa: TRY400
            continue

        report.migrated.append(slug)
        logger.info("Migrated %s with %d versions", slug, len(versions))

    logger.info(
        "Embedded history migration finished: migrated=%d errors=%d",
        len(report.migrated),
        len(report.failed),
    )
    return report
