"""Typed failures raised by the content store and its services.

Every class carries a machine-readable ``kind`` and the HTTP status the API
layer maps it to, so handlers never inspect messages.
"""

from __future__ import annotations


class ContentError(Exception):
    """Base class for all content store failures."""

    kind = "content_error"
    status_code = 500

    def __init__(self, message: str, *, slug: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.slug = slug


class NotFoundError(ContentError):
    """The slug (or slug + version) has no records."""

    kind = "not_found"
    status_code = 404


class DuplicateSlugError(ContentError):
    """Creation collided with a slug that has at least one historical record."""

    kind = "duplicate_slug"
    status_code = 409


class StaleVersionError(ContentError):
    """The version the caller based its write on is no longer current."""

    kind = "stale_version"
    status_code = 409

    def __init__(
        self,
        message: str,
        *,
        slug: str | None = None,
        expected_version: int | None = None,
        current_version: int | None = None,
    ) -> None:
        super().__init__(message, slug=slug)
        self.expected_version = expected_version
        self.current_version = current_version


class ContentValidationError(ContentError):
    """Missing or invalid fields on a create or edit request."""

    kind = "validation_error"
    status_code = 400


class StoreUnavailableError(ContentError):
    """The backing document store failed or could not be reached."""

    kind = "store_unavailable"
    status_code = 503
