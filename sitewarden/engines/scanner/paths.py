"""Shared path handles: many packages reference the same few site directories."""

from __future__ import annotations

import os
import threading
from pathlib import Path


class SharedPath:
    """An immutable, hashable handle around one :class:`Path`.

    Equality and hashing follow the wrapped path, so handles from different
    interners still compare equal.  Within one :class:`PathInterner` equal paths
    are the *same* object.
    """

    __slots__ = ("_path", "_text")

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._text = str(self._path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    def joinpath(self, *parts: str) -> Path:
        return self._path.joinpath(*parts)

    def __fspath__(self) -> str:
        return self._text

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"SharedPath({self._text!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SharedPath):
            return self._text == other._text
        return NotImplemented

    def __lt__(self, other: SharedPath) -> bool:
        return self._text < other._text

    def __hash__(self) -> int:
        return hash(self._text)


class PathInterner:
    """Deduplicate path values into shared handles.

    The table only grows during the interner's lifetime.  Insertion is guarded
    by a lock because scanner workers intern metadata locations concurrently.
    """

    def __init__(self) -> None:
        self._table: dict[str, SharedPath] = {}
        self._lock = threading.Lock()

    def intern(self, path: str | os.PathLike[str] | SharedPath) -> SharedPath:
        if isinstance(path, SharedPath):
            key = str(path)
        else:
            key = os.path.normpath(os.fspath(path))
        shared = self._table.get(key)
        if shared is not None:
            return shared
        with self._lock:
            shared = self._table.get(key)
            if shared is None:
                shared = path if isinstance(path, SharedPath) else SharedPath(key)
                self._table[key] = shared
            return shared

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, path: object) -> bool:
        if isinstance(path, (str, os.PathLike)):
            return os.path.normpath(os.fspath(path)) in self._table
        return False
