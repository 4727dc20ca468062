"""Container provisioning for the version record store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from azure.cosmos import PartitionKey

if TYPE_CHECKING:
    from azure.cosmos.aio import ContainerProxy, DatabaseProxy

logger = logging.getLogger(__name__)

PARTITION_KEY_PATH = "/slug"

# Composite indexes backing the latest-version and history queries:
# latest per slug, type/status listings, product lookups, history by date.
INDEXING_POLICY: dict[str, Any] = {
    "indexingMode": "consistent",
    "automatic": True,
    "includedPaths": [{"path": "/*"}],
    "excludedPaths": [{"path": "/blocks/*"}, {"path": '/"_etag"/?'}],
    "compositeIndexes": [
        [
            {"path": "/slug", "order": "ascending"},
            {"path": "/version", "order": "descending"},
        ],
        [
            {"path": "/type", "order": "ascending"},
            {"path": "/status", "order": "ascending"},
            {"path": "/version", "order": "descending"},
        ],
        [
            {"path": "/product_id", "order": "ascending"},
            {"path": "/version", "order": "descending"},
        ],
        [
            {"path": "/slug", "order": "ascending"},
            {"path": "/created_at", "order": "descending"},
        ],
    ],
}


async def ensure_container(database: DatabaseProxy, name: str) -> ContainerProxy:
    """Create the content container if missing, partitioned by slug."""
    container = await database.create_container_if_not_exists(
        id=name,
        partition_key=PartitionKey(path=PARTITION_KEY_PATH),
        indexing_policy=INDEXING_POLICY,
    )
    logger.info("Content container ready — database=%s container=%s", database.id, name)
    return container
