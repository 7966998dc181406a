# core/local_store.py

"""
Device-local JSON storage.

Each device (browser) gets its own namespace directory; every key is one
JSON file. Nothing here is synchronised across devices.
"""

import json
import re
import weakref
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Optional

from core.config import settings
from core.logging_config import logger


CHAT_HISTORY_KEY = "abs_chat_history"
SITE_CONFIG_KEY = "abs_site_config"
SURVEY_PAD_KEY = "abs_survey_pad"

SITE_NAMESPACE = "site"

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


def _safe(name: str) -> str:
    cleaned = _SAFE_NAME.sub("_", name.strip())
    return cleaned or "default"


class LocalStore:
    """
    Key/value store backed by one JSON file per key.

    Thread-safe for concurrent access.
    """

    # One lock per file; an entry goes away once no caller holds it
    _locks: "weakref.WeakValueDictionary[str, Lock]" = weakref.WeakValueDictionary()
    _locks_guard = Lock()

    def __init__(self, namespace: str, root: Optional[str] = None):
        self.namespace = _safe(namespace)
        self.root = Path(root or settings.LOCAL_STATE_DIR) / self.namespace

    @classmethod
    def for_device(cls, device_id: str, root: Optional[str] = None) -> "LocalStore":
        return cls(f"device-{device_id}", root)

    def _path(self, key: str) -> Path:
        return self.root / f"{_safe(key)}.json"

    def _lock(self, key: str) -> Lock:
        path = str(self._path(key))
        with self._locks_guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = Lock()
                self._locks[path] = lock
            return lock

    def get(self, key: str, default: Any = None) -> Any:
        """
        Read a key. Missing keys and unreadable JSON both return `default`;
        a malformed file is discarded so the next write starts clean.
        """
        path = self._path(key)
        with self._lock(key):
            if not path.exists():
                return default
            try:
                return json.loads(path.read_text(encoding="utf-8"))
            except (ValueError, OSError) as e:
                logger.warning(f"Discarding malformed local state {self.namespace}/{key}: {e}")
                path.unlink(missing_ok=True)
                return default

    def load(self, key: str, factory: Callable[[], Any], validate: Callable[[Any], Any]) -> Any:
        """
        Read a key and pass it through `validate`; anything that fails
        validation is discarded in favour of `factory()`.
        """
        raw = self.get(key)
        if raw is None:
            return factory()
        try:
            return validate(raw)
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Discarding invalid local state {self.namespace}/{key}: {e}")
            self.delete(key)
            return factory()

    def set(self, key: str, value: Any):
        path = self._path(key)
        with self._lock(key):
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(value, ensure_ascii=False, default=str), encoding="utf-8")
            tmp.replace(path)

    def delete(self, key: str):
        with self._lock(key):
            self._path(key).unlink(missing_ok=True)
