from __future__ import annotations

import threading
from contextlib import contextmanager

from codearena.executor.common import OperationInProgress


class TaskSlot:
    """Single-slot handle: at most one operation holds it at a time.

    Starting an operation while the slot is taken is rejected with
    OperationInProgress; nothing is queued or cancelled.
    """

    def __init__(self, name: str = 'task'):
        self.name = name
        self._lock = threading.Lock()
        self.holder = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def acquire(self, holder: str = None):
        if not self._lock.acquire(blocking=False):
            raise OperationInProgress(
                f'{self.name} is busy ({self.holder or "another operation"} in progress)'
            )
        self.holder = holder

    def release(self):
        self.holder = None
        self._lock.release()

    @contextmanager
    def hold(self, holder: str = None):
        self.acquire(holder)
        try:
            yield self
        finally:
            self.release()
