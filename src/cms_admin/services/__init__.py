"""Business logic over the content repository."""
