from __future__ import annotations


class LocksError(Exception):
    """Base class for lock errors."""

    pass


class BadConfigurationError(LocksError):
    """Bad configuration."""

    pass


class LockNotGrantedError(LocksError):
    """Not granted because the lock is still held by someone else after the wait time."""

    pass


class NotAcquiredError(LocksError):
    """Not acquired because some errors popped during the lock acquisition."""

    pass


class NotReleasedError(LocksError):
    """Not released lock because some errors popped during the lock release."""

    pass
