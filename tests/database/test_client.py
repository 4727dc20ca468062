"""Tests for the Cosmos connection lifecycle."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from azure.core.exceptions import ServiceRequestError

from cms_admin.database.client import CosmosStore


@pytest.fixture
def config() -> SimpleNamespace:
    return SimpleNamespace(
        endpoint="https://localhost:8081",
        key="key",
        database="cms",
        container="cms_content",
    )


@pytest.fixture
def sdk_client() -> MagicMock:
    client = MagicMock()
    client.close = AsyncMock()
    client.create_database_if_not_exists = AsyncMock(return_value=MagicMock(id="cms"))
    return client


class TestCosmosStore:
    async def test_initialize_provisions_database_and_container(self, config, sdk_client):
        with (
            patch("cms_admin.database.client.CosmosClient", return_value=sdk_client) as cls,
            patch(
                "cms_admin.database.client.ensure_container", new=AsyncMock(return_value="c")
            ) as ensure,
        ):
            store = CosmosStore(config)
            await store.initialize()

        cls.assert_called_once_with("https://localhost:8081", credential="key")
        sdk_client.create_database_if_not_exists.assert_awaited_once_with("cms")
        ensure.assert_awaited_once_with(store.database, "cms_content")
        assert store.container == "c"

    async def test_attach_without_provisioning(self, config, sdk_client):
        with (
            patch("cms_admin.database.client.CosmosClient", return_value=sdk_client),
            patch("cms_admin.database.client.ensure_container", new=AsyncMock()) as ensure,
        ):
            async with CosmosStore(config, provision=False) as store:
                assert store.container is (
                    sdk_client.get_database_client.return_value.get_container_client.return_value
                )

        ensure.assert_not_called()
        sdk_client.create_database_if_not_exists.assert_not_called()
        sdk_client.close.assert_awaited_once()

    async def test_failed_initialize_closes_client(self, config, sdk_client):
        sdk_client.create_database_if_not_exists.side_effect = ServiceRequestError("refused")
        with patch("cms_admin.database.client.CosmosClient", return_value=sdk_client):
            store = CosmosStore(config)
            with pytest.raises(ServiceRequestError):
                await store.initialize()

        sdk_client.close.assert_awaited_once()

    def test_uninitialized_access_raises(self, config):
        store = CosmosStore(config)
        with pytest.raises(RuntimeError):
            _ = store.database
        with pytest.raises(RuntimeError):
            _ = store.container
