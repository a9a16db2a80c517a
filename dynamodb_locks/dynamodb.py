from __future__ import annotations

import datetime
from typing import Any

from python_dynamodb_lock.python_dynamodb_lock import (
    DynamoDBLockClient,
    DynamoDBLockError,
)

from dynamodb_locks.client import LogSink
from dynamodb_locks.common import LockParams, LockTable
from dynamodb_locks.exception import (
    LockNotGrantedError,
    NotAcquiredError,
    NotReleasedError,
)


def _ms(value: int) -> datetime.timedelta:
    return datetime.timedelta(milliseconds=value)


# DynamoDBLockClient replaces a zero retry_timeout by lease + heartbeat
SINGLE_ATTEMPT = datetime.timedelta(microseconds=1)


def _retry_timeout(params: LockParams) -> datetime.timedelta:
    return _ms(params.wait_duration_ms * params.max_retry_count) or SINGLE_ATTEMPT


def _safe_period(params: LockParams) -> datetime.timedelta:
    """The delay without heartbeat after which a held lock is "in danger".

    It must stay below the lease duration.
    """
    safe_period_ms = params.lease_duration_ms - params.heartbeat_interval_ms
    if safe_period_ms <= 0:
        safe_period_ms = max(params.lease_duration_ms // 2, 1)
    return _ms(safe_period_ms)


class DynamoDBLockClientAdapter:
    """`LockClient` implementation on top of `python_dynamodb_lock`.

    Notes:
        - lease duration and heartbeat period are client-wide settings of
          `DynamoDBLockClient`, so they are taken from the params given at
          construction time
        - the retry delay, the retry count and the attributes are taken
          from the params given to each `lock()` call
    """

    def __init__(
        self, dynamodb: Any, table: LockTable, params: LockParams, log_sink: LogSink
    ):
        self.table = table
        self.log_sink = log_sink
        self._client = DynamoDBLockClient(
            dynamodb,
            table_name=table.table_name,
            partition_key_name=table.partition_key,
            sort_key_name=table.sort_key,
            ttl_attribute_name=table.ttl_key,
            heartbeat_period=_ms(params.heartbeat_interval_ms),
            safe_period=_safe_period(params),
            lease_duration=_ms(params.lease_duration_ms),
        )

    def lock(self, prefix: str, name: str, params: LockParams) -> Any:
        self.log_sink.log("info", f"Try to lock {prefix}/{name}...")
        try:
            handle = self._client.acquire_lock(
                prefix,
                sort_key=name,
                retry_period=_ms(params.wait_duration_ms),
                retry_timeout=_retry_timeout(params),
                additional_attributes=dict(params.attributes),
            )
        except DynamoDBLockError as e:
            self.log_sink.log("error", f"Can't lock {prefix}/{name}: {e}")
            if getattr(e, "code", None) == DynamoDBLockError.ACQUIRE_TIMEOUT:
                raise LockNotGrantedError(
                    f"lock {prefix}/{name} not granted after "
                    f"{params.max_retry_count} retries"
                ) from e
            raise NotAcquiredError(f"can't acquire lock {prefix}/{name}") from e
        self.log_sink.log("info", f"Lock on {prefix}/{name} acquired")
        return handle

    def release_lock(self, handle: Any) -> None:
        self.log_sink.log("info", f"Try to release {handle}...")
        try:
            self._client.release_lock(handle, best_effort=False)
        except DynamoDBLockError as e:
            self.log_sink.log("error", f"Can't release {handle}: {e}")
            raise NotReleasedError(f"can't release lock {handle}") from e
        self.log_sink.log("info", f"Lock {handle} released")

    def close(self) -> None:
        self._client.close()


def dynamodb_lock_client_factory(
    dynamodb: Any, table: LockTable, params: LockParams, log_sink: LogSink
) -> DynamoDBLockClientAdapter:
    """Default `LockClientFactory`."""
    return DynamoDBLockClientAdapter(dynamodb, table, params, log_sink)
