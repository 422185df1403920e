"""
Per-student ledger locks.

All writes to one student's ledger are serialized. The in-process backend
uses re-entrant thread locks; the redis backend shares the lock between
API workers and Celery workers.
"""

import threading
from contextlib import contextmanager
from functools import lru_cache
from typing import Dict, Iterator, Optional

from redis import Redis
from redis.exceptions import LockError

from hostel_ledger.config.settings import settings
from hostel_ledger.core.exceptions import LedgerLockTimeoutError
from hostel_ledger.core.logging import get_logger

logger = get_logger(__name__)


class StudentLockRegistry:
    """Hands out one lock per student id."""

    def __init__(
        self,
        backend: str = "memory",
        timeout: Optional[float] = None,
        redis_client: Optional[Redis] = None,
        ttl: Optional[int] = None,
    ):
        if backend not in ("memory", "redis"):
            raise ValueError(f"Unknown lock backend: {backend}")
        self.backend = backend
        self.timeout = settings.LEDGER_LOCK_TIMEOUT_SECONDS if timeout is None else timeout
        self.ttl = ttl or settings.LEDGER_LOCK_TTL_SECONDS
        self._redis = redis_client
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def _local_lock(self, student_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(student_id)
            if lock is None:
                lock = self._locks[student_id] = threading.RLock()
            return lock

    def _redis_client(self) -> Redis:
        if self._redis is None:
            from hostel_ledger.config.redis import get_redis_client

            self._redis = get_redis_client()
        return self._redis

    @contextmanager
    def hold(self, student_id: str, timeout: Optional[float] = None) -> Iterator[None]:
        """
        Hold the student's lock for the duration of the block.

        Raises:
            LedgerLockTimeoutError: if the lock is not acquired within `timeout`
        """
        timeout = self.timeout if timeout is None else timeout
        if self.backend == "redis":
            with self._hold_redis(student_id, timeout):
                yield
            return

        lock = self._local_lock(student_id)
        if not lock.acquire(timeout=timeout):
            raise LedgerLockTimeoutError(student_id, timeout)
        try:
            yield
        finally:
            lock.release()

    @contextmanager
    def _hold_redis(self, student_id: str, timeout: float) -> Iterator[None]:
        lock = self._redis_client().lock(
            f"hostel_ledger:student:{student_id}",
            timeout=self.ttl,
            blocking_timeout=timeout,
        )
        if not lock.acquire():
            raise LedgerLockTimeoutError(student_id, timeout)
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # Expired under us; the ttl bounded the critical section
                logger.warning(
                    "Student ledger lock expired before release",
                    extra={"student_id": student_id},
                )


@lru_cache()
def get_lock_registry() -> StudentLockRegistry:
    """Process-wide registry configured from settings"""
    return StudentLockRegistry(backend=settings.LEDGER_LOCK_BACKEND)
