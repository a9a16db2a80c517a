from __future__ import annotations

import time

import pytest

from dynamodb_locks import reset_locks

ENV_VARS = (
    "LOCKS_TABLE",
    "LOCKS_HEARTBEAT_PERIOD_MS",
    "LOCKS_LEASE_DURATION_MS",
    "LOCKS_RETRY_DELAY_MS",
    "LOCKS_MAX_WAIT_MS",
    "LOCKS_PREFIX",
    "LOCKS_OWNER",
    "LOCKS_DEBUG_LOGS",
)


class FakeLockClient:
    def __init__(self, dynamodb, table, params, log_sink):
        self.dynamodb = dynamodb
        self.table = table
        self.params = params
        self.log_sink = log_sink
        self.events: list = []
        self.lock_error: Exception | None = None
        self.release_error: Exception | None = None
        self.lock_delay = 0.0
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def lock(self, prefix, name, params):
        self.events.append(("lock", prefix, name, params))
        if self.lock_delay:
            time.sleep(self.lock_delay)
        if self.lock_error is not None:
            raise self.lock_error
        return ("handle", prefix, name)

    def release_lock(self, handle):
        self.events.append(("release", handle))
        if self.release_error is not None:
            raise self.release_error

    def close(self):
        self.close_calls += 1


class FakeLockClientFactory:
    def __init__(self):
        self.clients: list[FakeLockClient] = []

    def __call__(self, dynamodb, table, params, log_sink):
        client = FakeLockClient(dynamodb, table, params, log_sink)
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeLockClient:
        return self.clients[-1]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
    yield
    reset_locks()


@pytest.fixture
def factory():
    return FakeLockClientFactory()
