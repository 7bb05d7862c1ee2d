"""Thread-safe in-process row store with marker expiry."""

import threading
import time
from collections.abc import Callable, Sequence
from typing import Any

from caslock.store.base import ClaimResult, CollectionRef, RowStore


class InMemoryRowStore(RowStore):
    """Keeps rows and their lock markers in memory.

    Every operation runs under a single mutex, which gives the same per-row
    linearizable compare-and-swap a replicated store provides. Markers expire
    according to ``clock``, a monotonic time source in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize an empty store."""
        self._clock = clock
        self._mutex = threading.Lock()
        # collection -> row key -> (owner id, expires at) or None when unlocked
        self._rows: dict[CollectionRef, dict[Any, tuple[Any, float] | None]] = {}

    def add_rows(self, collection: CollectionRef, *row_keys: Any) -> None:
        """Create unlocked rows in ``collection``."""
        with self._mutex:
            rows = self._rows.setdefault(collection, {})
            for row_key in row_keys:
                rows.setdefault(row_key, None)

    def marker(self, collection: CollectionRef, row_key: Any) -> Any | None:
        """Return the live marker value of a row, or ``None`` if unlocked."""
        with self._mutex:
            return self._live_marker(collection, row_key)

    def _live_marker(self, collection: CollectionRef, row_key: Any) -> Any | None:
        entry = self._rows.get(collection, {}).get(row_key)
        if entry is None:
            return None
        owner_id, expires_at = entry
        if self._clock() >= expires_at:
            self._rows[collection][row_key] = None
            return None
        return owner_id

    def try_claim(
        self,
        collection: CollectionRef,
        row_key: Any,
        owner_id: Any,
        ttl: float,
    ) -> ClaimResult:
        with self._mutex:
            rows = self._rows.get(collection, {})
            if row_key not in rows:
                # A conditional update of a missing row does not apply
                return ClaimResult(applied=False)
            current = self._live_marker(collection, row_key)
            if current is not None:
                return ClaimResult(applied=False, current_owner=current)
            rows[row_key] = (owner_id, self._clock() + ttl)
            return ClaimResult(applied=True)

    def try_release(self, collection: CollectionRef, row_key: Any, owner_id: Any) -> bool:
        with self._mutex:
            if self._live_marker(collection, row_key) != owner_id:
                return False
            self._rows[collection][row_key] = None
            return True

    def count_existing(self, collection: CollectionRef, row_keys: Sequence[Any]) -> int:
        with self._mutex:
            rows = self._rows.get(collection, {})
            return sum(1 for row_key in set(row_keys) if row_key in rows)
