"""Optional single-writer locks around read-modify-write cycles.

The store runs without a lock unless one is configured. Two writers racing on
the same file then behave as last-writer-wins.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Callable, ContextManager, Iterator

from redis import Redis
from redis.exceptions import LockError, RedisError

from ..config import StoreConfig
from ..core.exceptions import StorageError

logger = logging.getLogger(__name__)

WriterLock = Callable[[], ContextManager[object]]

_PROCESS_LOCK = threading.Lock()


def no_lock() -> ContextManager[object]:
    return nullcontext()


def thread_lock() -> ContextManager[object]:
    """Serialize writers within the current process."""
    return _PROCESS_LOCK


class RedisWriterLock:
    """Serialize writers across processes with a redis-py :class:`~redis.lock.Lock`."""

    def __init__(self, connection: Redis, *, name: str, timeout: int = 30, blocking_timeout: float | None = None):
        self.connection = connection
        self.name = name
        self.timeout = timeout
        self.blocking_timeout = timeout if blocking_timeout is None else blocking_timeout

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisWriterLock":
        return cls(Redis.from_url(url), **kwargs)

    def __call__(self) -> ContextManager[object]:
        return self._acquire()

    @contextmanager
    def _acquire(self) -> Iterator[None]:
        lock = self.connection.lock(self.name, timeout=self.timeout, blocking_timeout=self.blocking_timeout)
        try:
            acquired = lock.acquire()
        except RedisError as exc:
            raise StorageError("Could not reach Redis for the writer lock", details={"lock": self.name}) from exc
        if not acquired:
            raise StorageError("Timed out waiting for the KML writer lock", details={"lock": self.name})
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                logger.warning("Writer lock %s expired before release", self.name)


def build_writer_lock(config: StoreConfig) -> WriterLock:
    """Return the lock factory selected by ``config.lock_backend``."""

    if config.lock_backend == "thread":
        return thread_lock
    if config.lock_backend == "redis":
        logger.info("Using Redis writer lock %s", config.lock_name)
        return RedisWriterLock.from_url(
            config.redis_url,
            name=config.lock_name,
            timeout=config.lock_timeout,
        )
    return no_lock
