from __future__ import annotations

import os
from unittest import mock

import pytest

from dynamodb_locks import (
    DEFAULT_LOCK_TABLE,
    DEFAULT_OWNER,
    DEFAULT_PREFIX,
    BadConfigurationError,
    LocksConfig,
    LocksOverrides,
    LockTable,
    resolve_config,
)
from dynamodb_locks.common import (
    get_debug_logs,
    get_heartbeat_period_ms,
    get_lease_duration_ms,
    get_lock_table,
    get_max_wait_ms,
    get_owner,
    get_prefix,
    get_retry_delay_ms,
)

STORE = object()


@mock.patch.dict(os.environ, {"LOCKS_TABLE": "my-locks"}, clear=True)
def test_get_lock_table():
    assert get_lock_table() == "my-locks"


@mock.patch.dict(os.environ, {}, clear=True)
def test_get_lock_table2():
    assert get_lock_table() == DEFAULT_LOCK_TABLE


@mock.patch.dict(os.environ, {"LOCKS_TABLE": ""}, clear=True)
def test_get_lock_table_empty():
    assert get_lock_table() == DEFAULT_LOCK_TABLE


@mock.patch.dict(
    os.environ,
    {
        "LOCKS_HEARTBEAT_PERIOD_MS": "5000",
        "LOCKS_LEASE_DURATION_MS": "15000",
        "LOCKS_RETRY_DELAY_MS": " 500 ",
        "LOCKS_MAX_WAIT_MS": "30000",
    },
    clear=True,
)
def test_get_durations():
    assert get_heartbeat_period_ms() == 5000
    assert get_lease_duration_ms() == 15000
    assert get_retry_delay_ms() == 500
    assert get_max_wait_ms() == 30000


@mock.patch.dict(os.environ, {}, clear=True)
def test_get_durations2():
    assert get_heartbeat_period_ms() == 3000
    assert get_lease_duration_ms() == 10000
    assert get_retry_delay_ms() == 450
    assert get_max_wait_ms() == 20000


@mock.patch.dict(os.environ, {"LOCKS_MAX_WAIT_MS": "20s"}, clear=True)
def test_get_duration_malformed():
    with pytest.raises(BadConfigurationError, match="LOCKS_MAX_WAIT_MS"):
        get_max_wait_ms()


def test_get_prefix_and_owner_kept_verbatim():
    environ = {"LOCKS_PREFIX": " ns ", "LOCKS_OWNER": "worker "}
    assert get_prefix(environ) == " ns "
    assert get_owner(environ) == "worker "


def test_get_with_explicit_environ():
    environ = {"LOCKS_PREFIX": "ns", "LOCKS_OWNER": "worker"}
    assert get_prefix(environ) == "ns"
    assert get_owner(environ) == "worker"
    assert get_prefix({}) == DEFAULT_PREFIX
    assert get_owner({}) == DEFAULT_OWNER


@pytest.mark.parametrize(
    "value,expected",
    [
        ("1", True),
        ("true", False),
        ("0", False),
        ("", False),
        (" 1", False),
        ("1\n", False),
    ],
)
def test_get_debug_logs(value, expected):
    assert get_debug_logs({"LOCKS_DEBUG_LOGS": value}) is expected


@mock.patch.dict(os.environ, {}, clear=True)
def test_resolve_defaults():
    config = resolve_config(LocksOverrides(dynamodb=STORE))
    assert config.lock_table == "locks-dev"
    assert config.heartbeat_period_ms == 3000
    assert config.lease_duration_ms == 10000
    assert config.retry_delay_ms == 450
    assert config.max_wait_ms == 20000
    assert config.prefix == "default"
    assert config.owner == "Locks"
    assert config.debug_logs is False
    assert config.dynamodb is STORE
    assert config.max_retry_count == 44


@mock.patch.dict(
    os.environ,
    {
        "LOCKS_TABLE": "env-table",
        "LOCKS_PREFIX": "env-prefix",
        "LOCKS_OWNER": "env-owner",
        "LOCKS_DEBUG_LOGS": "1",
    },
    clear=True,
)
def test_resolve_overrides_win_over_env():
    config = resolve_config(
        LocksOverrides(prefix="explicit", debug_logs=False, dynamodb=STORE)
    )
    assert config.lock_table == "env-table"
    assert config.owner == "env-owner"
    assert config.prefix == "explicit"
    assert config.debug_logs is False


@mock.patch.dict(os.environ, {"LOCKS_RETRY_DELAY_MS": "oops"}, clear=True)
def test_resolve_malformed_env():
    with pytest.raises(BadConfigurationError, match="LOCKS_RETRY_DELAY_MS"):
        resolve_config(LocksOverrides(dynamodb=STORE))


@mock.patch.dict(os.environ, {"LOCKS_RETRY_DELAY_MS": "oops"}, clear=True)
def test_resolve_malformed_env_but_overridden():
    config = resolve_config(LocksOverrides(retry_delay_ms=100, dynamodb=STORE))
    assert config.retry_delay_ms == 100


def test_resolve_default_store_client():
    with mock.patch("dynamodb_locks.common.boto3") as boto3:
        config = resolve_config()
    boto3.resource.assert_called_once_with("dynamodb")
    assert config.dynamodb is boto3.resource.return_value


def test_resolve_explicit_store_client():
    with mock.patch("dynamodb_locks.common.boto3") as boto3:
        config = resolve_config(LocksOverrides(dynamodb=STORE))
    boto3.resource.assert_not_called()
    assert config.dynamodb is STORE


def test_max_retry_count():
    config = resolve_config(
        LocksOverrides(max_wait_ms=10000, retry_delay_ms=500, dynamodb=STORE)
    )
    assert config.max_retry_count == 20
    config = resolve_config(
        LocksOverrides(max_wait_ms=999, retry_delay_ms=1000, dynamodb=STORE)
    )
    assert config.max_retry_count == 0


def test_with_overrides():
    base = resolve_config(LocksOverrides(dynamodb=STORE))
    derived = resolve_config(LocksOverrides(max_wait_ms=1000), base=base)
    assert derived.max_wait_ms == 1000
    assert derived.max_retry_count == 1000 // 450
    assert base.max_wait_ms == 20000
    assert base.max_retry_count == 44
    assert derived.dynamodb is STORE


@mock.patch.dict(os.environ, {"LOCKS_PREFIX": "from-env"}, clear=True)
def test_with_overrides_ignores_env():
    base = resolve_config(LocksOverrides(prefix="base", dynamodb=STORE))
    assert resolve_config(LocksOverrides(), base=base).prefix == "base"


def test_with_overrides_empty():
    base = resolve_config(LocksOverrides(dynamodb=STORE))
    derived = base.with_overrides(LocksOverrides())
    assert derived == base
    assert derived is not base


@pytest.mark.parametrize(
    "overrides",
    [
        LocksOverrides(retry_delay_ms=0),
        LocksOverrides(heartbeat_period_ms=-1),
        LocksOverrides(lease_duration_ms=0),
        LocksOverrides(max_wait_ms=-1),
        LocksOverrides(lock_table=""),
        LocksOverrides(max_wait_ms="1000"),
    ],
)
def test_bad_configuration(overrides):
    base = resolve_config(LocksOverrides(dynamodb=STORE))
    with pytest.raises(BadConfigurationError):
        base.with_overrides(overrides)


def test_lock_params():
    config = resolve_config(LocksOverrides(owner="worker-1", dynamodb=STORE))
    params = config.to_lock_params()
    assert params.lease_duration_ms == 10000
    assert params.heartbeat_interval_ms == 3000
    assert params.wait_duration_ms == 450
    assert params.max_retry_count == 44
    assert params.trust_local_time is True
    assert params.attributes == {"owner": "worker-1"}


def test_lock_table():
    config = resolve_config(LocksOverrides(lock_table="my-table", dynamodb=STORE))
    assert config.table == LockTable(
        table_name="my-table", partition_key="id", sort_key="group", ttl_key="ttl"
    )


def test_config_is_frozen():
    config = resolve_config(LocksOverrides(dynamodb=STORE))
    assert isinstance(config, LocksConfig)
    with pytest.raises(AttributeError):
        config.prefix = "other"
