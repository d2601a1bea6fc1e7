"""Scanner — discover metadata entries under site roots and merge them into a PackageSet."""

from __future__ import annotations

import concurrent.futures
import threading
from collections.abc import Iterable
from pathlib import Path

import structlog

from sitewarden.core.config import default_workers
from sitewarden.engines.scanner.metadata import MetadataReader, metadata_format
from sitewarden.engines.scanner.models import (
    Package,
    PackageSet,
    ScanResult,
    ScanWarning,
    package_sort_key,
)
from sitewarden.engines.scanner.paths import PathInterner, SharedPath
from sitewarden.exceptions import NoRootsError, ReadError, ScanCancelledError

log = structlog.get_logger("sitewarden.engine")


def _precedence(package: Package) -> tuple:
    """Total order used to pick one record per (key, site_path).

    More specific metadata format first, then the greater version, then the
    lexically greater location so the choice never depends on completion order.
    """
    version_key = package.version.sort_key if package.version is not None else (-1,)
    return (int(package.source_format), version_key, str(package.location))


def merge_packages(packages: Iterable[Package]) -> PackageSet:
    """Reduce worker output to one package per (key, site_path), deterministically."""
    best: dict[tuple[str, SharedPath], Package] = {}
    for package in packages:
        slot = (package.key, package.site_path)
        current = best.get(slot)
        if current is None:
            best[slot] = package
            continue
        if _precedence(package) > _precedence(current):
            log.debug(
                "scanner.duplicate_replaced",
                key=package.key,
                site=str(package.site_path),
                kept=str(package.location),
                dropped=str(current.location),
            )
            best[slot] = package
    return PackageSet(sorted(best.values(), key=package_sort_key))


class Scanner:
    """Read every metadata entry directly under the given roots on a thread pool."""

    def __init__(
        self,
        workers: int | None = None,
        interner: PathInterner | None = None,
    ) -> None:
        self.workers = workers or default_workers()
        self.interner = interner or PathInterner()
        self._reader = MetadataReader(self.interner)

    def scan(
        self,
        roots: Iterable[str | Path],
        cancel: threading.Event | None = None,
    ) -> ScanResult:
        """Scan *roots* and return the merged :class:`ScanResult`.

        Unreadable roots and unreadable entries become warnings.  Raises
        :class:`NoRootsError` when no root could be listed and
        :class:`ScanCancelledError` when *cancel* is set before the merge.
        """
        requested = [str(r) for r in roots]
        warnings: list[ScanWarning] = []
        readable: list[SharedPath] = []
        candidates: list[tuple[Path, SharedPath]] = []

        for root in requested:
            site = self.interner.intern(root)
            if site in readable:
                continue
            try:
                entries = sorted(site.path.iterdir())
            except OSError as exc:
                reason = f"unreadable root: {exc.strerror or exc}"
                log.warning("scanner.root_unreadable", root=str(site), error=str(exc))
                warnings.append(ScanWarning(str(site), reason))
                continue
            readable.append(site)
            candidates.extend((e, site) for e in entries if metadata_format(e) is not None)

        if not readable:
            raise NoRootsError(requested)

        _check_cancel(cancel)
        outcomes = self._read_all(candidates, cancel)

        found: list[Package] = []
        for outcome in outcomes:
            if isinstance(outcome, ScanWarning):
                warnings.append(outcome)
            else:
                found.append(outcome)

        packages = merge_packages(found)
        warnings.sort(key=lambda w: (w.path, w.reason))
        log.info(
            "scanner.complete",
            roots=len(readable),
            entries=len(candidates),
            packages=len(packages),
            warnings=len(warnings),
        )
        return ScanResult(packages=packages, warnings=warnings, roots=readable)

    def _read_all(
        self,
        candidates: list[tuple[Path, SharedPath]],
        cancel: threading.Event | None,
    ) -> list[Package | ScanWarning]:
        if not candidates:
            return []
        results: list[Package | ScanWarning] = []
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="sitewarden-scan"
        ) as executor:
            futures = [executor.submit(self._read_one, entry, site) for entry, site in candidates]
            try:
                for future in concurrent.futures.as_completed(futures):
                    _check_cancel(cancel)
                    results.append(future.result())
            except ScanCancelledError:
                for future in futures:
                    future.cancel()
                raise
        return results

    def _read_one(self, entry: Path, site: SharedPath) -> Package | ScanWarning:
        try:
            return self._reader.read(entry, site)
        except ReadError as exc:
            log.warning("scanner.entry_skipped", path=exc.path, reason=exc.reason)
            return ScanWarning(exc.path, exc.reason)


def _check_cancel(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        log.info("scanner.cancelled")
        raise ScanCancelledError("scan cancelled; partial results discarded")
