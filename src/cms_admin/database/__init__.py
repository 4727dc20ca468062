"""Cosmos DB access: client lifecycle, container provisioning, repositories."""
