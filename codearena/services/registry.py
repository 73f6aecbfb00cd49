"""In-process registry of live workspaces and contest sessions."""
from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Keyed store of live objects with idle eviction and a size cap.

    Entries are evicted when unused for longer than *idle_seconds*, and the
    least recently used ones go first once *max_size* is exceeded. An entry
    for which *busy* returns True (a batch thread still writing into it) is
    never evicted.
    """

    def __init__(self, name: str, busy=None, clock=time.monotonic):
        self.name = name
        self._busy = busy or (lambda item: False)
        self._clock = clock
        self._items = OrderedDict()  # key -> (item, last_used)
        self._lock = threading.Lock()

    def get_or_create(self, key, factory, max_size: int = None, idle_seconds: float = None):
        with self._lock:
            now = self._clock()
            entry = self._items.pop(key, None)
            item = entry[0] if entry else factory()
            self._items[key] = (item, now)
            self._evict(now, max_size, idle_seconds, keep=key)
            return item

    def _evict(self, now, max_size, idle_seconds, keep):
        if idle_seconds:
            for key, (item, last_used) in list(self._items.items()):
                if key != keep and now - last_used > idle_seconds and not self._busy(item):
                    del self._items[key]
                    logger.info(f"Evicted idle {self.name} {key}")
        if max_size:
            # oldest first
            for key, (item, _) in list(self._items.items()):
                if len(self._items) <= max_size:
                    break
                if key != keep and not self._busy(item):
                    del self._items[key]
                    logger.info(f"Evicted {self.name} {key} (registry full)")

    def __getitem__(self, key):
        with self._lock:
            return self._items[key][0]

    def __contains__(self, key):
        with self._lock:
            return key in self._items

    def __len__(self):
        with self._lock:
            return len(self._items)

    def clear(self):
        with self._lock:
            self._items.clear()
