"""Connection lifecycle for the Cosmos DB account backing the content store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from azure.core.exceptions import AzureError
from azure.cosmos.aio import CosmosClient

from cms_admin.database.setup import ensure_container

if TYPE_CHECKING:
    from azure.cosmos.aio import ContainerProxy, DatabaseProxy

    from cms_admin.config import CosmosConfig

logger = logging.getLogger(__name__)


class CosmosStore:
    """Owns the async Cosmos client plus the database and content container handles.

    The API process provisions the database and container on startup. One-shot
    tools such as the migration CLI pass ``provision=False`` and only attach to
    what already exists; they use the store as an async context manager.
    """

    def __init__(self, config: CosmosConfig, *, provision: bool = True) -> None:
        self._config = config
        self._provision = provision
        self._client: CosmosClient | None = None
        self._database: DatabaseProxy | None = None
        self._container: ContainerProxy | None = None

    async def initialize(self) -> None:
        """Open the client and resolve the database and container."""
        self._client = CosmosClient(self._config.endpoint, credential=self._config.key)
        try:
            if self._provision:
                self._database = await self._client.create_database_if_not_exists(
                    self._config.database
                )
                self._container = await ensure_container(self._database, self._config.container)
            else:
                self._database = self._client.get_database_client(self._config.database)
                self._container = self._database.get_container_client(self._config.container)
        except AzureError:
            await self.close()
            raise
        logger.info(
            "Connected to Cosmos DB — database=%s container=%s",
            self._config.database,
            self._config.container,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.close()
        self._client = None
        self._database = None
        self._container = None

    async def __aenter__(self) -> CosmosStore:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def database(self) -> DatabaseProxy:
        if self._database is None:
            raise RuntimeError("CosmosStore not initialized — call initialize() first")
        return self._database

    @property
    def container(self) -> ContainerProxy:
        if self._container is None:
            raise RuntimeError("CosmosStore not initialized — call initialize() first")
        return self._container
