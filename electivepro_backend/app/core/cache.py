"""Expiring key-value cache for repeated reads of tenant reference data.

Entries live under a cache key (``degrees``, ``users``...) and a scope, the id
the data was loaded for (institution, program, profile). Each entry stores
``{"data", "timestamp"}``; reads older than the TTL are misses.
"""
import json
import logging
import os
import threading
import time
from typing import Any, Callable

from app.core.config import settings

logger = logging.getLogger(__name__)

STORAGE_KEY = "electivepro_data_cache"
GLOBAL_SCOPE = "*"


class DataCache:
    def __init__(
        self,
        ttl_seconds: int,
        path: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.path = path
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, dict[str, dict[str, Any]]] = {}
        if path:
            self._load()

    def get(self, key: str, scope: Any = GLOBAL_SCOPE) -> Any | None:
        with self._lock:
            entry = self._entries.get(key, {}).get(str(scope))
            if entry is None:
                return None
            if self._clock() - entry["timestamp"] > self.ttl_seconds:
                self._drop(key, str(scope))
                self._save()
                return None
            return entry["data"]

    def set(self, key: str, scope: Any, data: Any) -> None:
        with self._lock:
            self._entries.setdefault(key, {})[str(scope)] = {
                "data": data,
                "timestamp": self._clock(),
            }
            self._save()

    def invalidate(self, key: str, scope: Any = None) -> None:
        """Drop one scope of ``key``, or every scope when ``scope`` is None."""
        with self._lock:
            if key not in self._entries:
                return
            if scope is None:
                del self._entries[key]
            else:
                self._drop(key, str(scope))
            self._save()

    def clear(self) -> None:
        with self._lock:
            self._entries = {}
            if self.path and os.path.exists(self.path):
                os.remove(self.path)

    def get_or_load(self, key: str, scope: Any, loader: Callable[[], Any]) -> Any:
        cached = self.get(key, scope)
        if cached is not None:
            logger.debug("Using cached %s data for %s", key, scope)
            return cached
        logger.debug("Loading %s data for %s", key, scope)
        data = loader()
        self.set(key, scope, data)
        return data

    def _drop(self, key: str, scope: str) -> None:
        scopes = self._entries.get(key)
        if scopes is None:
            return
        scopes.pop(scope, None)
        if not scopes:
            del self._entries[key]

    def _load(self) -> None:
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, encoding="utf-8") as fh:
                document = json.load(fh)
            self._entries = dict(document[STORAGE_KEY])
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Discarding unreadable cache file %s: %s", self.path, exc)
            self._entries = {}
            os.remove(self.path)

    def _save(self) -> None:
        if not self.path:
            return
        try:
            with open(self.path, "w", encoding="utf-8") as fh:
                json.dump({STORAGE_KEY: self._entries}, fh, default=str)
        except OSError as exc:
            logger.error("Error saving cache to %s: %s", self.path, exc)


data_cache = DataCache(settings.cache_ttl_seconds, settings.cache_file)
