"""Installed artifacts of a package, read from its install record.

Wheels list their files in ``<name>.dist-info/RECORD`` (CSV, paths relative to
the site directory).  setuptools writes ``<name>.egg-info/installed-files.txt``
(one path per line, relative to the egg-info directory).
"""

from __future__ import annotations

import concurrent.futures
import csv
import io
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import structlog

from sitewarden.core.config import default_workers
from sitewarden.engines.scanner.models import MetadataFormat, Package, ScanWarning
from sitewarden.exceptions import ReadError

log = structlog.get_logger("sitewarden.engine")

RECORD_FILES: dict[MetadataFormat, str] = {
    MetadataFormat.DIST_INFO: "RECORD",
    MetadataFormat.EGG_INFO: "installed-files.txt",
}


@dataclass(frozen=True)
class Artifact:
    path: Path
    exists: bool


@dataclass(frozen=True)
class PackageArtifacts:
    """Every file a package's install record lists, in record order."""

    package: Package
    artifacts: tuple[Artifact, ...]

    @property
    def count(self) -> int:
        return len(self.artifacts)

    @property
    def missing(self) -> int:
        return sum(1 for a in self.artifacts if not a.exists)


def record_paths(text: str, fmt: MetadataFormat) -> list[str]:
    """Relative paths listed in a RECORD or installed-files.txt body."""
    if fmt is MetadataFormat.DIST_INFO:
        rows = csv.reader(io.StringIO(text))
        return [row[0] for row in rows if row and row[0].strip()]
    return [line.strip() for line in text.splitlines() if line.strip()]


def read_artifacts(package: Package) -> PackageArtifacts:
    """Read the install record of *package*.

    Raises :class:`ReadError` when the entry has no record file (bare
    ``*.egg-info`` files, ``pip install -e`` eggs) or it cannot be read.
    """
    entry = package.location.path
    record = entry / RECORD_FILES[package.source_format]
    # RECORD paths are relative to the site dir, installed-files.txt to the entry
    base = entry.parent if package.source_format is MetadataFormat.DIST_INFO else entry
    if not record.is_file():
        raise ReadError(str(entry), f"no {record.name} file")
    try:
        text = record.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(str(record), f"cannot read install record: {exc}") from exc

    artifacts = []
    for relative in record_paths(text, package.source_format):
        path = Path(os.path.normpath(base / relative))
        artifacts.append(Artifact(path, os.path.exists(path)))
    return PackageArtifacts(package, tuple(artifacts))


def unpack(
    packages: Iterable[Package],
    workers: int | None = None,
) -> tuple[list[PackageArtifacts], list[ScanWarning]]:
    """Read the install records of *packages* on a thread pool.

    Results keep the input order.  A package without a readable record
    becomes a warning.
    """
    packages = list(packages)
    found: list[PackageArtifacts] = []
    warnings: list[ScanWarning] = []
    if not packages:
        return found, warnings

    with concurrent.futures.ThreadPoolExecutor(
        max_workers=workers or default_workers(), thread_name_prefix="sitewarden-unpack"
    ) as executor:
        for outcome in executor.map(_read_one, packages):
            if isinstance(outcome, ScanWarning):
                warnings.append(outcome)
            else:
                found.append(outcome)

    log.info(
        "artifacts.complete",
        packages=len(found),
        files=sum(item.count for item in found),
        warnings=len(warnings),
    )
    return found, warnings


def _read_one(package: Package) -> PackageArtifacts | ScanWarning:
    try:
        return read_artifacts(package)
    except ReadError as exc:
        log.warning("artifacts.record_skipped", path=exc.path, reason=exc.reason)
        return ScanWarning(exc.path, exc.reason)
