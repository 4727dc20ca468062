"""Generic repository over a single Cosmos DB container."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, cast

from azure.core.exceptions import AzureError
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from cms_admin.errors import StoreUnavailableError
from cms_admin.models.base import DocumentBase

if TYPE_CHECKING:
    from collections.abc import Iterator

    from azure.cosmos.aio import ContainerProxy, DatabaseProxy

T = TypeVar("T", bound=DocumentBase)


@contextlib.contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate unhandled SDK failures into ``StoreUnavailableError``."""
    try:
        yield
    except AzureError as exc:
        raise StoreUnavailableError(f"Content store unavailable during {operation}") from exc


class BaseRepository(Generic[T]):
    """Typed CRUD helpers shared by container repositories."""

    container_name: ClassVar[str]
    model_class: type[T]

    def __init__(self, database: DatabaseProxy, *, container_name: str | None = None) -> None:
        self._container: ContainerProxy = database.get_container_client(
            container_name or self.container_name
        )

    async def get(self, item_id: str, partition_key: str) -> T | None:
        """Point-read a document, returning None when it does not exist."""
        with store_errors("read"):
            try:
                data = await self._container.read_item(item=item_id, partition_key=partition_key)
            except CosmosResourceNotFoundError:
                return None
        return self.model_class.model_validate(data)

    async def query_documents(
        self,
        query: str,
        parameters: list[dict[str, Any]] | None = None,
        *,
        partition_key: str | None = None,
    ) -> list[dict[str, Any]]:
        """Run a SQL query and return the raw stored documents."""
        kwargs: dict[str, Any] = {}
        if partition_key is not None:
            kwargs["partition_key"] = partition_key
        with store_errors("query"):
            items = self._container.query_items(
                query=query, parameters=parameters or [], **kwargs
            )
            return [item async for item in items]

    async def query(
        self,
        query: str,
        parameters: list[dict[str, Any]] | None = None,
        *,
        partition_key: str | None = None,
    ) -> list[T]:
        """Run a SQL query and validate every result into the model class."""
        documents = await self.query_documents(query, parameters, partition_key=partition_key)
        return [self.model_class.model_validate(document) for document in documents]

    async def scalar(
        self,
        query: str,
        parameters: list[dict[str, Any]] | None = None,
        *,
        partition_key: str | None = None,
    ) -> int:
        """Run a ``SELECT VALUE`` aggregate and return its single integer result."""
        kwargs: dict[str, Any] = {}
        if partition_key is not None:
            kwargs["partition_key"] = partition_key
        total = 0
        with store_errors("query"):
            async for item in self._container.query_items(
                query=query, parameters=parameters or [], **kwargs
            ):
                total = cast("int", item)
        return total
