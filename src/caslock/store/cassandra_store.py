"""Cassandra row store based on lightweight transactions."""

import math
from collections.abc import Sequence
from typing import Any

from cassandra import DriverException, OperationTimedOut, RequestExecutionException
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, NoHostAvailable, Session
from cassandra.query import PreparedStatement

from caslock.config import CaslockSettings, CassandraConfig, LockConfig
from caslock.exceptions import StoreFailureError
from caslock.store.base import ClaimResult, CollectionRef, RowStore

DRIVER_ERRORS = (DriverException, RequestExecutionException, NoHostAvailable, OperationTimedOut)

CLAIM_QUERY = "UPDATE {table} USING TTL ? SET {lock} = ? WHERE {key} = ? IF {lock} = null"
RELEASE_QUERY = "UPDATE {table} SET {lock} = null WHERE {key} = ? IF {lock} = ?"
COUNT_QUERY = "SELECT COUNT(*) FROM {table} WHERE {key} IN ?"


def quote_identifier(name: str) -> str:
    """Quote a CQL identifier, preserving case and special characters."""
    return '"' + name.replace('"', '""') + '"'


def ttl_seconds(ttl: float) -> int:
    """Round a TTL up to the whole seconds Cassandra accepts.

    A TTL of 0 disables expiry in Cassandra, so the result is at least 1.
    """
    return max(1, math.ceil(ttl))


def create_session(config: CassandraConfig) -> Session:
    """Connect to the cluster described by ``config``.

    The caller owns the returned session and is responsible for shutting
    down its cluster.

    Raises:
        StoreFailureError: If no connection can be established

    """
    auth_provider = None
    if config.username is not None:
        auth_provider = PlainTextAuthProvider(
            username=config.username,
            password=config.password,
        )
    cluster = Cluster(
        contact_points=config.contact_points,
        port=config.port,
        auth_provider=auth_provider,
        connect_timeout=config.connect_timeout,
    )
    try:
        return cluster.connect()
    except DRIVER_ERRORS as e:
        cluster.shutdown()
        error_msg = f"Failed to connect to Cassandra at {config.contact_points}: {e}"
        raise StoreFailureError(error_msg, original_error=e) from e


class CassandraRowStore(RowStore):
    """Binds the row store interface to a Cassandra session."""

    def __init__(
        self,
        session: Session,
        config: LockConfig | None = None,
        key_column: str = "id",
    ) -> None:
        """Initialize the store.

        Args:
            session: Connected session, borrowed and never shut down here
            config: Lock configuration naming the marker column, which must
                exist in every locked table
            key_column: Name of the partition key column

        """
        self.session = session
        self.lock_column = (config or LockConfig()).lock_column
        self.key_column = key_column
        self._statements: dict[tuple[CollectionRef, str], PreparedStatement] = {}

    @classmethod
    def from_settings(cls, session: Session, settings: CaslockSettings) -> "CassandraRowStore":
        """Create a store using the marker and key columns from loaded settings."""
        return cls(session, config=settings.lock, key_column=settings.cassandra.key_column)

    def _statement(self, collection: CollectionRef, template: str) -> PreparedStatement:
        cache_key = (collection, template)
        statement = self._statements.get(cache_key)
        if statement is None:
            query = template.format(
                table=f"{quote_identifier(collection.keyspace)}.{quote_identifier(collection.table)}",
                lock=quote_identifier(self.lock_column),
                key=quote_identifier(self.key_column),
            )
            statement = self._execute(self.session.prepare, query)
            self._statements[cache_key] = statement
        return statement

    @staticmethod
    def _execute(func: Any, *args: Any) -> Any:
        try:
            return func(*args)
        except DRIVER_ERRORS as e:
            error_msg = f"Cassandra request failed: {e}"
            raise StoreFailureError(error_msg, original_error=e) from e

    def _current_owner(self, row: Any) -> Any | None:
        """Extract the marker value from a non-applied LWT result row."""
        if row is None:
            return None
        if isinstance(row, dict):
            return row.get(self.lock_column)
        # Tuple rows carry [applied] first, then the condition columns
        return row[1] if len(row) > 1 else None

    def try_claim(
        self,
        collection: CollectionRef,
        row_key: Any,
        owner_id: Any,
        ttl: float,
    ) -> ClaimResult:
        statement = self._statement(collection, CLAIM_QUERY)
        result = self._execute(
            self.session.execute,
            statement,
            (ttl_seconds(ttl), owner_id, row_key),
        )
        if result.was_applied:
            return ClaimResult(applied=True)
        return ClaimResult(applied=False, current_owner=self._current_owner(result.one()))

    def try_release(self, collection: CollectionRef, row_key: Any, owner_id: Any) -> bool:
        statement = self._statement(collection, RELEASE_QUERY)
        result = self._execute(self.session.execute, statement, (row_key, owner_id))
        return bool(result.was_applied)

    def count_existing(self, collection: CollectionRef, row_keys: Sequence[Any]) -> int:
        statement = self._statement(collection, COUNT_QUERY)
        result = self._execute(self.session.execute, statement, (list(row_keys),))
        row = result.one()
        if row is None:
            return 0
        if isinstance(row, dict):
            return int(next(iter(row.values())))
        return int(row[0])
