from __future__ import annotations

from dynamodb_locks.client import DebugLogSink, LockClient, LockClientFactory, LogSink
from dynamodb_locks.common import (
    LockParams,
    LocksConfig,
    LocksOverrides,
    LockTable,
    resolve_config,
)
from dynamodb_locks.const import (
    DEFAULT_HEARTBEAT_PERIOD_MS,
    DEFAULT_LEASE_DURATION_MS,
    DEFAULT_LOCK_TABLE,
    DEFAULT_MAX_WAIT_MS,
    DEFAULT_OWNER,
    DEFAULT_PREFIX,
    DEFAULT_RETRY_DELAY_MS,
)
from dynamodb_locks.exception import (
    BadConfigurationError,
    LockNotGrantedError,
    LocksError,
    NotAcquiredError,
    NotReleasedError,
)
from dynamodb_locks.locks import (
    Locks,
    acquire,
    configure_locks,
    get_locks,
    reset_locks,
)

__all__ = [
    "DEFAULT_HEARTBEAT_PERIOD_MS",
    "DEFAULT_LEASE_DURATION_MS",
    "DEFAULT_LOCK_TABLE",
    "DEFAULT_MAX_WAIT_MS",
    "DEFAULT_OWNER",
    "DEFAULT_PREFIX",
    "DEFAULT_RETRY_DELAY_MS",
    "Locks",
    "LocksConfig",
    "LocksOverrides",
    "LockParams",
    "LockTable",
    "LockClient",
    "LockClientFactory",
    "LogSink",
    "DebugLogSink",
    "resolve_config",
    "get_locks",
    "configure_locks",
    "reset_locks",
    "acquire",
    "LocksError",
    "BadConfigurationError",
    "LockNotGrantedError",
    "NotAcquiredError",
    "NotReleasedError",
]

__pdoc__ = {"locks": False, "exception": False, "common": False, "client": False}

VERSION = "v0.0.0"
