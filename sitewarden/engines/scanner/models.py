"""Data models for the installed-package scanner."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import IntEnum

from sitewarden.engines.scanner.paths import SharedPath
from sitewarden.normalize import normalize_name
from sitewarden.version import Version


class MetadataFormat(IntEnum):
    """Metadata record kinds; a higher value is the more specific source."""

    EGG_INFO = 1
    DIST_INFO = 2


@dataclass(frozen=True)
class DirectUrl:
    """Provenance from ``direct_url.json`` (PEP 610), credentials already stripped."""

    url: str
    vcs: str | None = None
    commit_id: str | None = None
    requested_revision: str | None = None

    @property
    def origin(self) -> str:
        """The URL as a requirement line would spell it (``git+https://...``)."""
        if self.vcs:
            return f"{self.vcs}+{self.url}"
        return self.url

    def __str__(self) -> str:
        revision = self.requested_revision or self.commit_id
        return f"{self.origin}@{revision}" if revision else self.origin


@dataclass(frozen=True)
class Package:
    """One installed distribution, as recorded by one metadata entry."""

    name: str
    version: Version | None
    location: SharedPath
    site_path: SharedPath
    direct_url: DirectUrl | None = None
    source_format: MetadataFormat = MetadataFormat.DIST_INFO
    key: str = field(init=False)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Package name cannot be empty")
        object.__setattr__(self, "key", normalize_name(self.name))

    @property
    def version_text(self) -> str:
        return self.version.text if self.version is not None else ""

    def __str__(self) -> str:
        return f"{self.name}-{self.version}" if self.version is not None else self.name


def package_sort_key(package: Package) -> tuple:
    version_key = package.version.sort_key if package.version is not None else (-1,)
    return (package.key, str(package.site_path), version_key)


class PackageSet:
    """Packages keyed by ``(key, site_path)``; insertion order kept for display."""

    def __init__(self, packages: Iterable[Package] = ()) -> None:
        self._items: dict[tuple[str, SharedPath], Package] = {}
        self._keys: set[str] = set()
        for package in packages:
            self.add(package)

    def add(self, package: Package) -> None:
        self._items[(package.key, package.site_path)] = package
        self._keys.add(package.key)

    def get(self, key: str, site_path: SharedPath) -> Package | None:
        return self._items.get((key, site_path))

    def by_key(self, key: str) -> list[Package]:
        return [p for p in self.sorted() if p.key == key]

    def keys(self) -> list[str]:
        """Distinct normalized names, sorted."""
        return sorted(self._keys)

    def sites(self) -> list[SharedPath]:
        return sorted({site for _, site in self._items})

    def sorted(self) -> list[Package]:
        return sorted(self._items.values(), key=package_sort_key)

    def __iter__(self) -> Iterator[Package]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._keys


@dataclass(frozen=True)
class ScanWarning:
    """A non-fatal problem met during a scan (unreadable root, bad metadata)."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


@dataclass
class ScanResult:
    """Result of one scan: the merged package set plus skip warnings."""

    packages: PackageSet
    warnings: list[ScanWarning] = field(default_factory=list)
    roots: list[SharedPath] = field(default_factory=list)
