"""Repository modules for each Cosmos DB container."""

from cms_admin.database.repositories.content import ContentVersionRepository

__all__ = ["ContentVersionRepository"]
