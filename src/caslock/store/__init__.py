"""Row stores the lock manager can run against."""

from .base import ClaimResult, CollectionRef, RowStore
from .memory import InMemoryRowStore

__all__ = ["ClaimResult", "CollectionRef", "InMemoryRowStore", "RowStore"]
