"""Exceptions raised by the caslock library."""


class CasLockError(Exception):
    """Base exception for all caslock errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """Initialize the exception with message and optional original error."""
        super().__init__(message)
        self.original_error = original_error
        self.message = message


class ConfigurationError(CasLockError):
    """Raised when configuration is invalid or cannot be loaded."""


class InvalidLockRequestError(CasLockError):
    """Raised when a lock is requested with an invalid timeout or row set."""


class LockStateError(CasLockError):
    """Raised when an operation is not valid in the lock's current state."""


class StoreFailureError(CasLockError):
    """Raised when the row store fails to execute a read or write."""


class RowNotFoundError(CasLockError):
    """Raised when one or more requested rows do not exist in the collection."""


class InsufficientTimeBudgetError(CasLockError):
    """Raised internally when an acquisition attempt has to be restarted.

    Never escapes ``LockManager.acquire``.
    """
