from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from dynamodb_locks.common import LockParams, LockTable

logger = logging.getLogger("dynamodb-locks")


class LogSink(Protocol):
    """Something able to receive `(severity, message)` log lines."""

    def log(self, severity: str, message: str) -> None: ...


class LockClient(Protocol):
    """The lock client interface the orchestrator relies on.

    The storage protocol (conditional writes, heartbeats, lease expiry)
    lives behind this interface.
    """

    def lock(self, prefix: str, name: str, params: LockParams) -> Any:
        """Acquire the lock `name` in the `prefix` namespace and return a handle.

        Raises:
            LockNotGrantedError: the lock is still held by someone else after
                `params.max_retry_count` retries.
            NotAcquiredError: some other errors popped during the acquisition.
        """
        ...

    def release_lock(self, handle: Any) -> None:
        """Release a lock previously returned by `lock()`.

        Raises:
            NotReleasedError: the lock can't be released.
        """
        ...

    def close(self) -> None: ...


LockClientFactory = Callable[[Any, LockTable, LockParams, LogSink], LockClient]
"""Build a `LockClient` from (store client, table layout, lock params, log sink)."""


class DebugLogSink:
    """Forward collaborator log lines as debug logs (if enabled)."""

    def __init__(self, owner: str, enabled: bool):
        self.owner = owner
        self.enabled = enabled

    def log(self, severity: str, message: str) -> None:
        if not self.enabled:
            return
        logger.debug("%s %s: %s", self.owner, severity, message)
