"""
Process-wide guard that keeps two configuration runs from overlapping.
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class ConfigurationGuard:
    """Non-blocking mutex marking "configuration in progress"."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """
        Try to take the guard for the duration of the block.

        Yields True if this caller owns the guard, False if another run
        already holds it. The guard is released on exit however the block ends.
        """
        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
