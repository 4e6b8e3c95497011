"""Per-directory name allocation shared by all renames of a run."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


class NameRegistry:
    """Serializes name allocation per directory and remembers handed-out names.

    Two files landing in the same directory must not be given the same
    disambiguated name, also when processed in parallel or in dry-run
    mode where nothing is renamed on disk.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Path, threading.Lock] = {}
        self._reserved: dict[Path, set[str]] = {}

    @contextmanager
    def lock(self, directory: Path) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(directory, threading.Lock())
        with lock:
            yield

    def is_reserved(self, directory: Path, name: str) -> bool:
        with self._guard:
            return name in self._reserved.get(directory, set())

    def reserve(self, directory: Path, name: str) -> None:
        with self._guard:
            self._reserved.setdefault(directory, set()).add(name)
