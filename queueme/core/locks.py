"""
Per-key mutual exclusion.

Admission for a business is a check-then-act sequence (count waiting
entries, then insert). ``KeyedLockRegistry`` hands out one lock per
business id so joins for the same business run one at a time while joins
for different businesses proceed in parallel.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from queueme.core.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


class KeyedLockRegistry:
    """Lazily created ``threading.Lock`` per key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _get(self, key: str) -> threading.Lock:
        with self._lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str, timeout: float) -> Iterator[None]:
        """
        Hold the lock for ``key`` for the duration of the block.

        Raises:
            LockTimeoutError: If the lock is not acquired within ``timeout`` seconds
        """
        lock = self._get(key)
        if not lock.acquire(timeout=timeout):
            logger.warning("Timed out after %.1fs waiting for lock %s", timeout, key)
            raise LockTimeoutError(f"Queue for {key} is busy, please retry")
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        with self._lock:
            return len(self._locks)


# Shared by every engine in the process
business_locks = KeyedLockRegistry()
