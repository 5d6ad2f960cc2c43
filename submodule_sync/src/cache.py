"""Per-run cache of repository validity checks."""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Dict, Optional


class RepositoryCache:
    """Read-through ``path -> is valid repository`` map.

    One instance lives for a single run and is shared by sibling discovery
    and planning; entries are never invalidated during the run.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, bool] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(path: Path | str) -> str:
        return str(Path(path).resolve(strict=False))

    def get(self, path: Path | str) -> Optional[bool]:
        with self._lock:
            return self._entries.get(self._key(path))

    def set(self, path: Path | str, is_valid: bool) -> None:
        with self._lock:
            self._entries[self._key(path)] = is_valid

    def get_or_compute(self, path: Path | str, probe: Callable[[Path], bool]) -> bool:
        cached = self.get(path)
        if cached is not None:
            return cached
        # Probing outside the lock; two workers may probe the same path once each.
        value = probe(Path(path))
        self.set(path, value)
        return value

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
