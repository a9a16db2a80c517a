from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

import boto3

from dynamodb_locks.const import (
    DEBUG_LOGS_ENABLED,
    DEFAULT_HEARTBEAT_PERIOD_MS,
    DEFAULT_LEASE_DURATION_MS,
    DEFAULT_LOCK_TABLE,
    DEFAULT_MAX_WAIT_MS,
    DEFAULT_OWNER,
    DEFAULT_PREFIX,
    DEFAULT_RETRY_DELAY_MS,
)
from dynamodb_locks.exception import BadConfigurationError


def make_dynamodb_resource() -> Any:
    return boto3.resource("dynamodb")


@dataclass(frozen=True)
class LockParams:
    """This dataclass holds the parameters handed to the lock client."""

    lease_duration_ms: int
    """The lease duration (in milliseconds)."""

    heartbeat_interval_ms: int
    """The lease renewal period (in milliseconds)."""

    wait_duration_ms: int
    """The delay between two acquisition attempts (in milliseconds)."""

    max_retry_count: int
    """The maximum number of acquisition retries."""

    trust_local_time: bool = True
    attributes: Mapping[str, Any] = field(default_factory=dict)
    """Additional attributes stored with the lock (the owner tag lives here)."""


@dataclass(frozen=True)
class LockTable:
    """Layout of the DynamoDB table holding the locks."""

    table_name: str
    partition_key: str = "id"
    sort_key: str = "group"
    ttl_key: str = "ttl"


@dataclass(frozen=True)
class LocksOverrides:
    """Explicit configuration overrides.

    Every field left to `None` is not overridden and will be resolved from
    the lower layers (base configuration, env vars, defaults).
    """

    lock_table: str | None = None
    heartbeat_period_ms: int | None = None
    lease_duration_ms: int | None = None
    retry_delay_ms: int | None = None
    max_wait_ms: int | None = None
    prefix: str | None = None
    owner: str | None = None
    debug_logs: bool | None = None
    dynamodb: Any = None
    """A boto3 DynamoDB resource (or any compatible store client)."""

    def as_dict(self) -> dict[str, Any]:
        """Return the overridden fields only."""
        return {
            f.name: getattr(self, f.name)
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass(frozen=True)
class LocksConfig:
    """This dataclass holds a fully resolved (and immutable) configuration."""

    lock_table: str
    """The DynamoDB table name (`LOCKS_TABLE` env var)."""

    heartbeat_period_ms: int
    """The heartbeat period in milliseconds (`LOCKS_HEARTBEAT_PERIOD_MS` env var)."""

    lease_duration_ms: int
    """The lease duration in milliseconds (`LOCKS_LEASE_DURATION_MS` env var)."""

    retry_delay_ms: int
    """The retry delay in milliseconds (`LOCKS_RETRY_DELAY_MS` env var)."""

    max_wait_ms: int
    """The maximum acquisition wait in milliseconds (`LOCKS_MAX_WAIT_MS` env var)."""

    prefix: str
    """The namespace prefix of the lock names (`LOCKS_PREFIX` env var)."""

    owner: str
    """The owner tag (`LOCKS_OWNER` env var)."""

    debug_logs: bool
    """Emit debug logs or not (`LOCKS_DEBUG_LOGS=1` env var)."""

    dynamodb: Any
    """The backing store client (a boto3 DynamoDB resource by default)."""

    def __post_init__(self):
        if not self.lock_table:
            raise BadConfigurationError("lock_table must not be empty")
        for name in (
            "heartbeat_period_ms",
            "lease_duration_ms",
            "retry_delay_ms",
            "max_wait_ms",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise BadConfigurationError(f"{name} must be an integer, got {value!r}")
        for name in ("heartbeat_period_ms", "lease_duration_ms", "retry_delay_ms"):
            if getattr(self, name) <= 0:
                raise BadConfigurationError(f"{name} must be strictly positive")
        if self.max_wait_ms < 0:
            raise BadConfigurationError("max_wait_ms must be positive")

    @property
    def max_retry_count(self) -> int:
        """The maximum number of acquisition retries (derived, never overridden)."""
        return self.max_wait_ms // self.retry_delay_ms

    @property
    def table(self) -> LockTable:
        return LockTable(table_name=self.lock_table)

    def to_lock_params(self) -> LockParams:
        """Derive the parameters handed to the lock client."""
        return LockParams(
            lease_duration_ms=self.lease_duration_ms,
            heartbeat_interval_ms=self.heartbeat_period_ms,
            wait_duration_ms=self.retry_delay_ms,
            max_retry_count=self.max_retry_count,
            trust_local_time=True,
            attributes={"owner": self.owner},
        )

    def with_overrides(self, overrides: LocksOverrides | None = None) -> LocksConfig:
        """Return a new configuration with the given overrides applied on top."""
        if overrides is None:
            return dataclasses.replace(self)
        return dataclasses.replace(self, **overrides.as_dict())


def _get_env(environ: Mapping[str, str] | None, name: str) -> str | None:
    env = os.environ if environ is None else environ
    return env.get(name) or None


def _get_int(environ: Mapping[str, str] | None, name: str, default: int) -> int:
    value = _get_env(environ, name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise BadConfigurationError(
            f"{name} env var must be an integer (got {value!r})"
        ) from None


def get_lock_table(environ: Mapping[str, str] | None = None) -> str:
    """Get the lock table name from env or from default."""
    return _get_env(environ, "LOCKS_TABLE") or DEFAULT_LOCK_TABLE


def get_heartbeat_period_ms(environ: Mapping[str, str] | None = None) -> int:
    """Get the heartbeat period from env or from default.

    Raises:
        BadConfigurationError: if the env var is not an integer.
    """
    return _get_int(environ, "LOCKS_HEARTBEAT_PERIOD_MS", DEFAULT_HEARTBEAT_PERIOD_MS)


def get_lease_duration_ms(environ: Mapping[str, str] | None = None) -> int:
    """Get the lease duration from env or from default.

    Raises:
        BadConfigurationError: if the env var is not an integer.
    """
    return _get_int(environ, "LOCKS_LEASE_DURATION_MS", DEFAULT_LEASE_DURATION_MS)


def get_retry_delay_ms(environ: Mapping[str, str] | None = None) -> int:
    """Get the retry delay from env or from default.

    Raises:
        BadConfigurationError: if the env var is not an integer.
    """
    return _get_int(environ, "LOCKS_RETRY_DELAY_MS", DEFAULT_RETRY_DELAY_MS)


def get_max_wait_ms(environ: Mapping[str, str] | None = None) -> int:
    """Get the maximum wait from env or from default.

    Raises:
        BadConfigurationError: if the env var is not an integer.
    """
    return _get_int(environ, "LOCKS_MAX_WAIT_MS", DEFAULT_MAX_WAIT_MS)


def get_prefix(environ: Mapping[str, str] | None = None) -> str:
    """Get the namespace prefix from env or from default."""
    return _get_env(environ, "LOCKS_PREFIX") or DEFAULT_PREFIX


def get_owner(environ: Mapping[str, str] | None = None) -> str:
    """Get the owner tag from env or from default."""
    return _get_env(environ, "LOCKS_OWNER") or DEFAULT_OWNER


def get_debug_logs(environ: Mapping[str, str] | None = None) -> bool:
    """Return True only if `LOCKS_DEBUG_LOGS` is exactly "1"."""
    return _get_env(environ, "LOCKS_DEBUG_LOGS") == DEBUG_LOGS_ENABLED


_ENV_GETTERS: dict[str, Callable[[Mapping[str, str] | None], Any]] = {
    "lock_table": get_lock_table,
    "heartbeat_period_ms": get_heartbeat_period_ms,
    "lease_duration_ms": get_lease_duration_ms,
    "retry_delay_ms": get_retry_delay_ms,
    "max_wait_ms": get_max_wait_ms,
    "prefix": get_prefix,
    "owner": get_owner,
    "debug_logs": get_debug_logs,
}


def resolve_config(
    overrides: LocksOverrides | None = None,
    base: LocksConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> LocksConfig:
    """Resolve a full configuration.

    Without `base`, each field is resolved from (first match wins): the
    explicit override, the env var, the default value. With `base` (child
    configurations), the base configuration replaces both env and defaults.

    The `dynamodb` store client is resolved on its own: if it is overridden,
    no default resource is built.

    Raises:
        BadConfigurationError: if an env var is malformed or if the resolved
            configuration is not valid.
    """
    overrides = overrides or LocksOverrides()
    if base is not None:
        return base.with_overrides(overrides)
    values = {}
    for name, getter in _ENV_GETTERS.items():
        value = getattr(overrides, name)
        values[name] = value if value is not None else getter(environ)
    dynamodb = overrides.dynamodb
    if dynamodb is None:
        dynamodb = make_dynamodb_resource()
    return LocksConfig(dynamodb=dynamodb, **values)
