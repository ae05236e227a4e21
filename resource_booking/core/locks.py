"""In-process mutual exclusion keyed by resource id.

Writers for the same resource queue on one lock; writers for different
resources never contend. Cross-process safety comes from the row lock taken
inside the booking transaction.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging
import threading

from .errors import ReservationTimeout

logger = logging.getLogger(__name__)


class ResourceLockRegistry:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def _lock_for(self, resource_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(resource_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[resource_id] = lock
            return lock

    @contextmanager
    def hold(self, resource_id: int, timeout: float) -> Iterator[None]:
        lock = self._lock_for(resource_id)
        if not lock.acquire(timeout=timeout):
            logger.warning(
                "Timed out waiting for resource lock",
                extra={"resource_id": resource_id, "timeout": timeout},
            )
            raise ReservationTimeout(resource_id, timeout)
        try:
            yield
        finally:
            lock.release()


resource_locks = ResourceLockRegistry()
