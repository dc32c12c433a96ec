"""Device-local persistent key-value storage.

Each key is stored as one JSON document under the store directory
(``<key>.json``). Writes go to a temp file that atomically replaces the
target, under an advisory lockfile, so a crash never leaves a half-written
array behind. There is no partial update: callers read a whole value,
change it and write the whole value back.
"""
from __future__ import annotations

import json
import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Iterable

from app.domain.exceptions import RepositoryError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileLock:
    """Simple file-lock using a lockfile (cross-platform, advisory).

    Note: This is a lightweight lock suitable for single-writer or low-contention
    scenarios. It uses atomic creation of a .lock file and retries until timeout.
    """

    def __init__(self, lock_path: str, timeout: float = 5.0, retry: float = 0.05) -> None:
        self.lock_path = lock_path
        self.timeout = float(timeout)
        self.retry = float(retry)
        self._acquired = False

    def acquire(self) -> bool:
        start = time.time()
        while True:
            try:
                # O_EXCL ensures atomic creation; failing if exists
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                os.close(fd)
                self._acquired = True
                return True
            except FileExistsError:
                if (time.time() - start) >= self.timeout:
                    return False
                time.sleep(self.retry)

    def release(self) -> None:
        try:
            if self._acquired and os.path.exists(self.lock_path):
                os.unlink(self.lock_path)
        finally:
            self._acquired = False

    def __enter__(self):
        ok = self.acquire()
        if not ok:
            raise TimeoutError(f"Failed to acquire file lock: {self.lock_path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class LocalKeyValueStore:
    """JSON-file key-value store standing in for on-device storage."""

    # Keys used by guest (local-only) mode
    IS_GUEST_MODE = "is_guest_mode"
    GUEST_DATA_SYNCED = "guest_data_synced"
    GUEST_PLANTS = "guest_plants"
    GUEST_WATER_EVENTS = "guest_water_events"
    GUEST_SPECIES_CACHE = "guest_species_cache"

    GUEST_KEYS = (IS_GUEST_MODE, GUEST_DATA_SYNCED, GUEST_PLANTS, GUEST_WATER_EVENTS, GUEST_SPECIES_CACHE)

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with FileLock(str(path) + ".lock"):
                with open(path, "r", encoding="utf-8") as fh:
                    return json.load(fh)
        except (OSError, ValueError, TimeoutError) as e:
            logger.error("Failed to read local store key %s: %s", key, e)
            raise RepositoryError(f"Failed to read local data for {key}") from e

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            with FileLock(str(path) + ".lock"):
                tmp = str(path) + ".tmp"
                with open(tmp, "w", encoding="utf-8") as fh:
                    json.dump(value, fh)
                os.replace(tmp, path)
        except (OSError, TypeError, ValueError, TimeoutError) as e:
            logger.error("Failed to write local store key %s: %s", key, e)
            raise RepositoryError(f"Failed to write local data for {key}") from e

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    def get_list(self, key: str) -> list[dict[str, Any]]:
        value = self.get(key, [])
        return value if isinstance(value, list) else []

    def set_list(self, key: str, items: Iterable[dict[str, Any]]) -> None:
        self.set(key, list(items))

    # --- Guest mode helpers -----------------------------------------------

    def is_guest_mode(self) -> bool:
        return self.get(self.IS_GUEST_MODE, False) is True

    def set_guest_mode(self, is_guest: bool) -> None:
        self.set(self.IS_GUEST_MODE, bool(is_guest))

    def has_guest_data(self) -> bool:
        return bool(self.get_list(self.GUEST_PLANTS) or self.get_list(self.GUEST_WATER_EVENTS))

    def clear_guest_data(self) -> None:
        """Remove every guest-mode key."""
        for key in self.GUEST_KEYS:
            self.remove(key)
        logger.info("Cleared guest data from %s", self._dir)
