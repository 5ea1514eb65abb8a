"""Relationship store adapters (remote GraphQL API, embedded KuzuDB)."""
from .base import RelationshipSource

__all__ = ["RelationshipSource"]
