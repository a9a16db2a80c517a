from __future__ import annotations

import asyncio
import inspect
import threading
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, Mapping, TypeVar

from dynamodb_locks.client import DebugLogSink, LockClient, LockClientFactory
from dynamodb_locks.common import LocksConfig, LocksOverrides, resolve_config
from dynamodb_locks.dynamodb import dynamodb_lock_client_factory

T = TypeVar("T")


def _check_name(name: str):
    if not isinstance(name, str) or not name:
        raise ValueError("the lock name must be a non-empty string")


class Locks:
    """Acquire named DynamoDB locks and hold them while some work executes.

    The configuration is resolved once (see `resolve_config()`) from the
    given overrides, the `LOCKS_*` env vars and the default values.
    Locks are renewed (heartbeat) by the lock client as long as they are
    held. Should the process crash, a lock will be available again once
    its lease has expired.
    """

    def __init__(
        self,
        overrides: LocksOverrides | None = None,
        *,
        base: LocksConfig | None = None,
        lock_client_factory: LockClientFactory | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        if lock_client_factory is None:
            lock_client_factory = dynamodb_lock_client_factory
        self.config: LocksConfig = resolve_config(overrides, base=base, environ=environ)
        self.prefix = self.config.prefix
        self.lock_params = self.config.to_lock_params()
        self.log_sink = DebugLogSink(self.config.owner, self.config.debug_logs)
        self._lock_client_factory = lock_client_factory
        self._closed = False
        self._client: LockClient = lock_client_factory(
            self.config.dynamodb, self.config.table, self.lock_params, self.log_sink
        )

    @contextmanager
    def exclusive_lock(self, name: str) -> Iterator[Any]:
        """Acquire the lock `name` and release it as a context manager.

        If the lock can't be acquired, the error is raised and nothing is
        released. Once acquired, the lock is always released when the block
        exits. If the release fails, the release error is raised (even if the
        block raised an exception: it stays available as `__context__`).

        Raises:
            LockNotGrantedError: the lock is still held by someone else after
                the maximum wait.
            NotAcquiredError: some other errors popped during the acquisition.
            NotReleasedError: the lock can't be released.

        """
        _check_name(name)
        handle = self._client.lock(self.prefix, name, self.lock_params)
        try:
            yield handle
        finally:
            self._client.release_lock(handle)

    def acquire(self, name: str, work: Callable[[], T]) -> T:
        """Acquire the lock `name`, execute `work()` and release the lock.

        Examples:
            >>> locks.acquire("my_resource", do_something)
            >>> try:
            ...     locks.acquire("my_resource", failing_function)
            ... except ValueError:
            ...     pass  # raised by failing_function (lock released)

        Args:
            name: the name of the lock to acquire (in the `prefix` namespace).
            work: a synchronous callable to execute while the lock is held
                (use `acquire_async()` for coroutine functions).

        Returns:
            Whatever `work()` returns.

        Raises:
            LockNotGrantedError: the lock is still held by someone else after
                the maximum wait (`work` is not executed).
            NotAcquiredError: some other errors popped during the acquisition
                (`work` is not executed).
            NotReleasedError: the lock can't be released (this error wins
                over an exception raised by `work`).
            TypeError: `work` returned an awaitable.

        """
        with self.exclusive_lock(name):
            res = work()
            if inspect.isawaitable(res):
                if inspect.iscoroutine(res):
                    res.close()
                raise TypeError("work returned an awaitable, use acquire_async()")
            return res

    async def acquire_async(
        self, name: str, work: Callable[[], T | Awaitable[T]]
    ) -> T:
        """Asyncio flavor of `acquire()`.

        `work` can be a coroutine function (or any callable returning an
        awaitable) or a plain callable. Lock client calls are run in a
        worker thread.

        If the task is cancelled during the acquisition, the worker thread
        is awaited anyway and the lock, if finally acquired, is released
        before `CancelledError` is raised.
        """
        _check_name(name)
        acquiring = asyncio.ensure_future(
            asyncio.to_thread(self._client.lock, self.prefix, name, self.lock_params)
        )
        try:
            handle = await asyncio.shield(acquiring)
        except asyncio.CancelledError:
            await asyncio.wait({acquiring})
            if not acquiring.cancelled() and acquiring.exception() is None:
                await asyncio.to_thread(self._client.release_lock, acquiring.result())
            raise
        try:
            res = work()
            if inspect.isawaitable(res):
                res = await res
            return res
        finally:
            await asyncio.to_thread(self._client.release_lock, handle)

    def child(self, overrides: LocksOverrides | None = None) -> Locks:
        """Create a new Locks instance with overrides layered over this configuration.

        Examples:
            >>> child = locks.child(LocksOverrides(prefix="my_namespace-"))
            >>> child.acquire("my_key", do_something)  # lock "my_namespace-" / "my_key"
            >>> with locks.child(LocksOverrides(prefix="batch-")) as child:
            ...     child.acquire("my_key", do_something)

        The new instance owns its own lock client (and its heartbeat
        threads): close it with `close()` or use it as a context manager.
        The store client (`dynamodb`) is shared unless overridden.
        """
        return Locks(
            overrides, base=self.config, lock_client_factory=self._lock_client_factory
        )

    def close(self):
        """Close the lock client (held locks are not released).

        Calling it more than once is harmless.
        """
        if self._closed:
            return
        self._closed = True
        self._client.close()

    def __enter__(self) -> Locks:
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __del__(self):
        if hasattr(self, "_client"):
            self.close()


_default_locks: Locks | None = None
_default_locks_lock = threading.Lock()


def get_locks() -> Locks:
    """Return the process-wide Locks instance (built from env on first use)."""
    global _default_locks
    with _default_locks_lock:
        if _default_locks is None:
            _default_locks = Locks()
        return _default_locks


def configure_locks(
    overrides: LocksOverrides | None = None,
    *,
    lock_client_factory: LockClientFactory | None = None,
) -> Locks:
    """Replace the process-wide Locks instance (mainly useful in tests)."""
    global _default_locks
    locks = Locks(overrides, lock_client_factory=lock_client_factory)
    with _default_locks_lock:
        previous, _default_locks = _default_locks, locks
    if previous is not None:
        previous.close()
    return locks


def reset_locks():
    """Drop (and close) the process-wide Locks instance."""
    global _default_locks
    with _default_locks_lock:
        previous, _default_locks = _default_locks, None
    if previous is not None:
        previous.close()


def acquire(name: str, work: Callable[[], T]) -> T:
    """`acquire()` on the process-wide Locks instance."""
    return get_locks().acquire(name, work)
