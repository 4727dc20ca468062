"""Tests for the cms-migrate command line entry point."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cms_admin.migrations.__main__ import main, run
from cms_admin.migrations.current_flag import FlagRemovalReport
from cms_admin.migrations.embedded_history import MigrationReport


def _store() -> MagicMock:
    store = MagicMock()
    store.__aenter__ = AsyncMock(return_value=store)
    store.__aexit__ = AsyncMock(return_value=False)
    return store


@pytest.fixture
def settings() -> SimpleNamespace:
    return SimpleNamespace(
        cosmos=SimpleNamespace(container="cms_content"),
        app=SimpleNamespace(log_level="INFO"),
    )


async def test_run_embedded_history(settings):
    store = _store()
    migrate = AsyncMock(return_value=MigrationReport(scanned=1, migrated=["about"]))
    with (
        patch("cms_admin.migrations.__main__.load_settings", return_value=settings),
        patch("cms_admin.migrations.__main__.CosmosStore", return_value=store) as store_cls,
        patch("cms_admin.migrations.__main__.migrate_embedded_history", new=migrate),
    ):
        assert await run("embedded-history", dry_run=True) is True

    store_cls.assert_called_once_with(settings.cosmos, provision=False)
    migrate.assert_awaited_once_with(store.container, dry_run=True)


async def test_run_remove_flag_fails_when_flags_remain(settings):
    store = _store()
    remove = AsyncMock(return_value=FlagRemovalReport(matched=2, modified=1, remaining=1))
    with (
        patch("cms_admin.migrations.__main__.load_settings", return_value=settings),
        patch("cms_admin.migrations.__main__.CosmosStore", return_value=store),
        patch("cms_admin.migrations.__main__.remove_current_flag", new=remove),
    ):
        assert await run("remove-current-flag") is False


def test_main_exit_code(settings):
    with (
        patch("cms_admin.migrations.__main__.load_settings", return_value=settings),
        patch("cms_admin.migrations.__main__.configure_logging"),
        patch("cms_admin.migrations.__main__.run", new=AsyncMock(return_value=False)),
        pytest.raises(SystemExit) as exc_info,
    ):
        main(["remove-current-flag", "--dry-run"])

    assert exc_info.value.code == 1


def test_main_rejects_unknown_command():
    with pytest.raises(SystemExit) as exc_info:
        main(["rebuild-everything"])
    assert exc_info.value.code == 2
