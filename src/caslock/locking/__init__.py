"""Row locking over compare-and-swap row stores."""

from .lock_manager import Lock, LockManager, LockState, acquire

__all__ = ["Lock", "LockManager", "LockState", "acquire"]
