"""One-time migration: drop the stored current-version flag.

The flag could disagree with the real highest version, so "current" is now
always derived from version numbers. This removes the leftover field.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from azure.cosmos.exceptions import CosmosResourceNotFoundError

if TYPE_CHECKING:
    from azure.cosmos.aio import ContainerProxy

logger = logging.getLogger(__name__)

CURRENT_FLAG_FIELDS = ("is_current", "isCurrent")

_FLAGGED_FILTER = " OR ".join(f"IS_DEFINED(c.{name})" for name in CURRENT_FLAG_FIELDS)


@dataclass
class FlagRemovalReport:
    matched: int = 0
    modified: int = 0
    remaining: int = 0


async def _count_flagged(container: ContainerProxy) -> int:
    total = 0
    async for item in container.query_items(
        query=f"SELECT VALUE COUNT(1) FROM c WHERE {_FLAGGED_FILTER}"
    ):
        total = int(item)
    return total


async def remove_current_flag(
    container: ContainerProxy, *, dry_run: bool = False
) -> FlagRemovalReport:
    """Remove the current flag from every record that still has it."""
    report = FlagRemovalReport()
    flagged = [
        item
        async for item in container.query_items(query=f"SELECT * FROM c WHERE {_FLAGGED_FILTER}")
    ]
    report.matched = len(flagged)
    logger.info("Found %d documents with a current flag", report.matched)
    if not flagged:
        logger.info("No flagged documents found, migration not needed")
        return report

    for item in flagged:
        operations = [
            {"op": "remove", "path": f"/{name}"} for name in CURRENT_FLAG_FIELDS if name in item
        ]
        if dry_run:
            continue
        try:
            await container.patch_item(
                item=item["id"],
                partition_key=item["slug"],
                patch_operations=operations,
            )
        except CosmosResourceNotFoundError:
            logger.warning("Document %s/%s vanished during migration", item["slug"], item["id"])
            continue
        report.modified += 1

    report.remaining = await _count_flagged(container)
    if report.remaining:
        logger.warning("%d documents still have a current flag", report.remaining)
    else:
        logger.info("Removed current flag from %d documents", report.modified)
    return report
