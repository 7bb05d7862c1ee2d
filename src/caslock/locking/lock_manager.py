"""Row locks built on the conditional writes of a row store.

A lock covers a fixed, ordered set of rows in one collection. Each row carries
a marker column; claiming a row means writing a fresh owner id into the marker
with a TTL, conditioned on the marker being unset. Releasing clears the marker,
conditioned on it still holding the owner id.

The marker TTL is twice the requested timeout. The extra headroom is spent
while the remaining rows are claimed; once the time left on the first marker
drops below the timeout, the attempt is abandoned and restarted from the first
row with a new owner id.
"""

import logging
import time
import types
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from caslock.config import LockConfig
from caslock.exceptions import (
    ConfigurationError,
    InsufficientTimeBudgetError,
    InvalidLockRequestError,
    LockStateError,
    RowNotFoundError,
    StoreFailureError,
)
from caslock.logging import get_logger
from caslock.store.base import CollectionRef, RowStore


class LockState(Enum):
    """Lifecycle states of a lock manager."""

    IDLE = "idle"
    ACQUIRING = "acquiring"
    RESTARTING = "restarting"
    ACQUIRED = "acquired"
    FAILED = "failed"
    RELEASED = "released"


@dataclass
class Lock:
    """Identity and timing of one lock over a set of rows."""

    collection: CollectionRef
    row_keys: tuple[Any, ...]
    timeout: float
    owner_id: uuid.UUID = field(default_factory=uuid.uuid1)

    def __post_init__(self) -> None:
        """Validate the lock request."""
        self.row_keys = tuple(self.row_keys)
        if self.timeout <= 0:
            error_msg = f"Lock timeout must be positive, got {self.timeout}"
            raise InvalidLockRequestError(error_msg)
        if not self.row_keys:
            error_msg = "At least one row key is required"
            raise InvalidLockRequestError(error_msg)
        try:
            distinct = len(set(self.row_keys))
        except TypeError as e:
            error_msg = f"Row keys must be hashable: {e}"
            raise InvalidLockRequestError(error_msg, original_error=e) from e
        if distinct != len(self.row_keys):
            error_msg = f"Duplicate row keys in lock request: {list(self.row_keys)}"
            raise InvalidLockRequestError(error_msg)

    @property
    def ttl(self) -> float:
        """Lifetime of each marker, in seconds."""
        return self.timeout * 2

    def renew_owner(self) -> None:
        """Replace the owner id with a newly generated one."""
        self.owner_id = uuid.uuid1()


class LockManager:
    """Acquires and releases a lock over rows of one collection.

    Usage::

        with LockManager(store, CollectionRef("ks", "accounts"), 30, ["a", "b"]):
            ...

    The store handle is borrowed and may be shared with other locks.
    """

    def __init__(
        self,
        store: RowStore,
        collection: CollectionRef,
        timeout: float,
        row_keys: Iterable[Any],
        config: LockConfig | None = None,
    ) -> None:
        """Initialize the LockManager.

        Args:
            store: Row store holding the rows to lock
            collection: Keyspace and table of the rows
            timeout: Minimum time in seconds the rows stay locked once
                acquisition completes
            row_keys: Rows to lock, claimed in the given order
            config: Optional lock configuration; defaults apply when omitted

        Raises:
            ConfigurationError: If the store keeps its marker in a column other
                than the configured one
            InvalidLockRequestError: If timeout or row keys are invalid

        """
        self.store = store
        self.config = config or LockConfig()
        if store.lock_column is not None and store.lock_column != self.config.lock_column:
            error_msg = (
                f"Store uses marker column '{store.lock_column}' but the lock is "
                f"configured for '{self.config.lock_column}'"
            )
            raise ConfigurationError(error_msg)
        self.logger: logging.Logger = self.config.logger or get_logger("locking")

        keys = tuple(row_keys)
        if self.config.sort_row_keys:
            try:
                keys = tuple(sorted(keys))
            except TypeError as e:
                error_msg = f"Row keys cannot be sorted: {e}"
                raise InvalidLockRequestError(error_msg, original_error=e) from e

        self.lock = Lock(collection=collection, row_keys=keys, timeout=timeout)
        self.state = LockState.IDLE

    @property
    def owner_id(self) -> uuid.UUID:
        """Owner id written into the markers by the current attempt."""
        return self.lock.owner_id

    def __enter__(self) -> "LockManager":
        """Context manager entry point."""
        return self.acquire()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Context manager exit point."""
        self.release()

    def acquire(self) -> "LockManager":
        """Block until every row is locked.

        Returns:
            This lock manager, now holding the lock

        Raises:
            LockStateError: If the lock is not idle
            RowNotFoundError: If a requested row does not exist
            StoreFailureError: If the store fails; not retried

        """
        if self.state is not LockState.IDLE:
            error_msg = f"Cannot acquire a lock in state '{self.state.value}'"
            raise LockStateError(error_msg)

        self.state = LockState.ACQUIRING
        while True:
            try:
                self._acquire_rows()
            except InsufficientTimeBudgetError:
                self.state = LockState.RESTARTING
                previous_owner = self.lock.owner_id
                self.lock.renew_owner()
                self.logger.warning(
                    f"Cannot satisfy timeout of {self.lock.timeout}s on {self.lock.collection}, "
                    f"restarting acquire: previous owner {previous_owner}, new owner {self.lock.owner_id}",
                )
                self.state = LockState.ACQUIRING
                continue
            except BaseException:
                self.state = LockState.FAILED
                raise
            break

        self.state = LockState.ACQUIRED
        self.logger.debug(
            f"Locked {len(self.lock.row_keys)} row(s) in {self.lock.collection} as {self.lock.owner_id}",
        )
        return self

    def _acquire_rows(self) -> None:
        """Run one acquisition attempt, releasing claimed rows if it aborts."""
        try:
            self._claim_rows()
        except BaseException:
            # Interrupts during polling must not leave claimed rows behind
            self._release_after_abort()
            raise

    def _claim_rows(self) -> None:
        lock = self.lock
        deadline = 0.0
        for index, row_key in enumerate(lock.row_keys):
            while True:
                now = time.monotonic()
                if index == 0:
                    deadline = now + lock.ttl
                elif deadline - now < lock.timeout:
                    error_msg = f"Cannot satisfy timeout of {lock.timeout}s"
                    raise InsufficientTimeBudgetError(error_msg)

                result = self.store.try_claim(lock.collection, row_key, lock.owner_id, lock.ttl)
                if result.applied:
                    break

                self.logger.info(
                    f"Cannot lock row {row_key!r} in {lock.collection}: "
                    f"owner={lock.owner_id} current_owner={result.current_owner}",
                )
                # A failed claim may also mean the row does not exist
                self._check_rows()
                time.sleep(self.config.retry_interval)

    def _check_rows(self) -> None:
        """Verify that every requested row exists.

        Raises:
            RowNotFoundError: If the store counts fewer rows than requested

        """
        lock = self.lock
        count = self.store.count_existing(lock.collection, lock.row_keys)
        if count != len(lock.row_keys):
            error_msg = (
                f"Key not found: {count} of {len(lock.row_keys)} requested rows "
                f"exist in {lock.collection}"
            )
            self.logger.error(error_msg)
            raise RowNotFoundError(error_msg)

    def _release_after_abort(self) -> None:
        try:
            self._release_rows()
        except StoreFailureError:
            # Markers left behind expire with their TTL
            self.logger.exception(
                f"Failed to release rows in {self.lock.collection} after aborted attempt",
            )

    def release(self) -> None:
        """Clear the markers this lock still holds.

        Rows whose marker no longer holds this owner id, for example because
        it expired and was claimed by someone else, are skipped silently.

        Raises:
            StoreFailureError: If the store fails. Rows after the failing one
                are not released and keep their markers until the TTL expires.

        """
        self._release_rows()
        self.state = LockState.RELEASED
        self.logger.debug(f"Released lock {self.lock.owner_id} on {self.lock.collection}")

    def _release_rows(self) -> None:
        lock = self.lock
        for index, row_key in enumerate(lock.row_keys):
            try:
                applied = self.store.try_release(lock.collection, row_key, lock.owner_id)
            except StoreFailureError:
                self.logger.warning(
                    f"Release of {lock.owner_id} aborted, rows left locked until their TTL "
                    f"expires: {list(lock.row_keys[index:])}",
                )
                raise
            if not applied:
                self.logger.debug(f"Row {row_key!r} is not held by {lock.owner_id}, skipping")


def acquire(
    store: RowStore,
    keyspace: str,
    table: str,
    timeout: float,
    *row_keys: Any,
    config: LockConfig | None = None,
) -> LockManager:
    """Lock ``row_keys`` in ``keyspace.table`` for at least ``timeout`` seconds.

    Returns the acquired lock manager; call ``release()`` on it when done.
    """
    manager = LockManager(
        store,
        CollectionRef(keyspace=keyspace, table=table),
        timeout,
        row_keys,
        config=config,
    )
    return manager.acquire()
