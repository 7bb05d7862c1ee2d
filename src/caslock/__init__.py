"""caslock - Row locks for stores with compare-and-swap and TTL.

Locks an arbitrary set of rows using only per-row conditional writes and
column expiry, as offered by Cassandra lightweight transactions.

Usage::

    from caslock import acquire

    lock = acquire(store, "keyspace", "table", 30, "rowKey1", "rowKey2")
    try:
        ...
    finally:
        lock.release()
"""

__version__ = "0.1.0"

from . import exceptions, logging
from .config import CassandraConfig, ConfigManager, LockConfig
from .locking import Lock, LockManager, LockState, acquire
from .store import ClaimResult, CollectionRef, InMemoryRowStore, RowStore

__all__ = [
    "CassandraConfig",
    "ClaimResult",
    "CollectionRef",
    "ConfigManager",
    "InMemoryRowStore",
    "Lock",
    "LockConfig",
    "LockManager",
    "LockState",
    "RowStore",
    "acquire",
    "exceptions",
    "logging",
]
