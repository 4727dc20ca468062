"""Request identity for audit fields."""

from cms_admin.auth.middleware import current_user_id, get_user

__all__ = ["current_user_id", "get_user"]
