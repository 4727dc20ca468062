"""One-time data-shape migrations for the content container."""

from cms_admin.migrations.current_flag import FlagRemovalReport, remove_current_flag
from cms_admin.migrations.embedded_history import (
    MigrationReport,
    build_version_documents,
    migrate_embedded_history,
)

__all__ = [
    "FlagRemovalReport",
    "MigrationReport",
    "build_version_documents",
    "migrate_embedded_history",
    "remove_current_flag",
]
