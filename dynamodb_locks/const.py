from __future__ import annotations

DEFAULT_LOCK_TABLE = "locks-dev"
"""Default DynamoDB table holding the locks."""

DEFAULT_HEARTBEAT_PERIOD_MS = 3000
"""Default heartbeat period (in milliseconds)."""

DEFAULT_LEASE_DURATION_MS = 10000
"""Default lease duration (in milliseconds)."""

DEFAULT_RETRY_DELAY_MS = 450
"""Default delay between two acquisition attempts (in milliseconds)."""

DEFAULT_MAX_WAIT_MS = 20000
"""Default maximum wait for acquiring a lock (in milliseconds)."""

DEFAULT_PREFIX = "default"
"""Default namespace prefix."""

DEFAULT_OWNER = "Locks"
"""Default owner tag stored with each lock."""

DEBUG_LOGS_ENABLED = "1"
"""Exact value of `LOCKS_DEBUG_LOGS` that enables debug logs."""
