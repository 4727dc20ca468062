"""Versioned content store with scheduled publishing for the admin dashboard."""
