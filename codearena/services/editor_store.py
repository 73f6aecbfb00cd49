"""Persistence port for the editor's convenience fields (input/expected)."""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

INPUT_KEY = 'codeEditor:input'
EXPECTED_KEY = 'codeEditor:expected'


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str, default=None):
        ...

    @abstractmethod
    def set(self, key: str, value: str):
        ...


class MemoryStore(KeyValueStore):
    def __init__(self, initial: dict = None):
        self._data = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key, default=None):
        with self._lock:
            return self._data.get(key, default)

    def set(self, key, value):
        with self._lock:
            self._data[key] = value


class SettingStore(KeyValueStore):
    """Database-backed store scoped to one workspace.

    Requires an application context. Failures are logged and treated as a
    cache miss; this store is never authoritative.
    """

    def __init__(self, scope: str):
        self.scope = scope

    def get(self, key, default=None):
        from codearena.models import EditorSetting
        try:
            return EditorSetting.get(self.scope, key, default)
        except Exception as e:
            logger.warning(f"Failed to read editor setting {key!r} for {self.scope}: {e}")
            return default

    def set(self, key, value):
        from codearena.extensions import db
        from codearena.models import EditorSetting
        try:
            EditorSetting.set(self.scope, key, value)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.warning(f"Failed to persist editor setting {key!r} for {self.scope}: {e}")
