"""Row store interface used by the lock manager."""

import abc
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CollectionRef:
    """Identifies a table within a keyspace."""

    keyspace: str
    table: str

    def __str__(self) -> str:
        return f"{self.keyspace}.{self.table}"


@dataclass(frozen=True)
class ClaimResult:
    """Outcome of a conditional marker write.

    ``current_owner`` is the marker value that prevented the write, if the
    store reported one.
    """

    applied: bool
    current_owner: Any | None = None


class RowStore(abc.ABC):
    """Data store offering per-row compare-and-swap with TTL.

    Implementations raise ``StoreFailureError`` for any failure talking to
    the underlying store. Stores that keep the marker in a named column set
    ``lock_column``; the lock manager refuses a configuration naming a
    different column.
    """

    lock_column: str | None = None

    @abc.abstractmethod
    def try_claim(
        self,
        collection: CollectionRef,
        row_key: Any,
        owner_id: Any,
        ttl: float,
    ) -> ClaimResult:
        """Set the row's marker to ``owner_id`` for ``ttl`` seconds if it is unset."""

    @abc.abstractmethod
    def try_release(self, collection: CollectionRef, row_key: Any, owner_id: Any) -> bool:
        """Clear the row's marker if it currently equals ``owner_id``."""

    @abc.abstractmethod
    def count_existing(self, collection: CollectionRef, row_keys: Sequence[Any]) -> int:
        """Count how many of ``row_keys`` exist in the collection."""
