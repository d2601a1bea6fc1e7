"""Tests for shared path handles and the interner."""

from __future__ import annotations

import threading
from pathlib import Path

from sitewarden.engines.scanner.paths import PathInterner, SharedPath


class TestSharedPath:
    def test_equality_follows_path(self):
        assert SharedPath("/a/b") == SharedPath(Path("/a/b"))
        assert hash(SharedPath("/a/b")) == hash(SharedPath("/a/b"))
        assert SharedPath("/a/b") != SharedPath("/a/c")

    def test_fspath_and_name(self):
        shared = SharedPath("/opt/site-packages")
        assert str(shared) == "/opt/site-packages"
        assert shared.name == "site-packages"
        assert shared.joinpath("x") == Path("/opt/site-packages/x")

    def test_ordering(self):
        assert sorted([SharedPath("/b"), SharedPath("/a")]) == [SharedPath("/a"), SharedPath("/b")]


class TestPathInterner:
    def test_equal_paths_share_one_handle(self):
        interner = PathInterner()
        first = interner.intern("/usr/lib/python3/site-packages")
        second = interner.intern(Path("/usr/lib/python3/site-packages"))
        assert first is second
        assert len(interner) == 1

    def test_paths_are_normalized(self):
        interner = PathInterner()
        assert interner.intern("/a/b/../c") is interner.intern("/a/c/")
        assert "/a/./c" in interner

    def test_distinct_paths_grow_table(self):
        interner = PathInterner()
        interner.intern("/a")
        interner.intern("/b")
        assert len(interner) == 2

    def test_interning_a_shared_path_returns_existing(self):
        interner = PathInterner()
        existing = interner.intern("/a")
        assert interner.intern(SharedPath("/a")) is existing

    def test_concurrent_interning(self):
        interner = PathInterner()
        results: list[SharedPath] = []
        lock = threading.Lock()

        def worker():
            handle = interner.intern("/shared/site")
            with lock:
                results.append(handle)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(interner) == 1
        assert all(r is results[0] for r in results)
