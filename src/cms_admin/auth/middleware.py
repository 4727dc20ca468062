"""Request identity — reads the user placed in the session by the upstream login."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fastapi import Request

SYSTEM_USER = "system"


def get_user(request: Request) -> dict[str, Any] | None:
    """Extract the authenticated user from the session, if present."""
    if "session" not in request.scope:
        return None
    user = request.session.get("user")
    return user if isinstance(user, dict) else None


def current_user_id(request: Request) -> str:
    """Return the acting user's id for audit fields, or ``"system"``.

    The value is recorded verbatim and never used for authorization.
    """
    user = get_user(request)
    if not user:
        return SYSTEM_USER
    return str(user.get("id") or user.get("email") or SYSTEM_USER)
