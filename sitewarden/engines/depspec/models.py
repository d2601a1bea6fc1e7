"""Data models for declared requirements."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from sitewarden.engines.scanner.paths import SharedPath
from sitewarden.exceptions import InvalidLineError
from sitewarden.normalize import normalize_name, strip_credentials
from sitewarden.version import VersionConstraint


@dataclass(frozen=True)
class DepSpec:
    """One declared requirement line, e.g. ``requests>=2.31`` or ``dill @ git+ssh://...@0.3.8``."""

    name: str
    version_constraint: VersionConstraint | None = None
    url: str | None = None
    requested_revision: str | None = None
    commit_id: str | None = None
    extras: tuple[str, ...] = ()
    marker: str | None = None  # kept for display, never evaluated
    source_file: SharedPath | str | None = None
    line_number: int | None = None
    key: str = field(init=False)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("DepSpec name cannot be empty")
        object.__setattr__(self, "key", normalize_name(self.name))
        if self.url is not None:
            object.__setattr__(self, "url", strip_credentials(self.url))

    @property
    def revision(self) -> str | None:
        return self.requested_revision or self.commit_id

    @property
    def provenance(self) -> str:
        if self.source_file is None:
            return ""
        if self.line_number:
            return f"{self.source_file}:{self.line_number}"
        return str(self.source_file)

    def __str__(self) -> str:
        text = self.name
        if self.extras:
            text += "[" + ",".join(self.extras) + "]"
        if self.url:
            text += f" @ {self.url}"
            if self.revision:
                text += f"@{self.revision}"
        elif self.version_constraint is not None:
            text += str(self.version_constraint)
        if self.marker:
            text += f" ; {self.marker}"
        return text


@dataclass(frozen=True)
class Include:
    """A ``-r`` / ``--requirement`` reference to another specification file."""

    target: str
    line_number: int


SpecItem = Union[DepSpec, Include, InvalidLineError]


class LinePolicy(Enum):
    """What the loader does with a line the grammar rejects."""

    ABORT = "abort"
    SKIP = "skip"


class DepSpecSet:
    """Requirements keyed by normalized name.

    A later spec for the same key replaces the earlier one in place, so the
    first-seen display position is kept.
    """

    def __init__(self, specs: Iterable[DepSpec] = ()) -> None:
        self._items: dict[str, DepSpec] = {}
        for spec in specs:
            self.add(spec)

    def add(self, spec: DepSpec) -> DepSpec | None:
        """Insert *spec*; return the spec it overrode, if any."""
        previous = self._items.get(spec.key)
        self._items[spec.key] = spec
        return previous

    def get(self, key: str) -> DepSpec | None:
        return self._items.get(normalize_name(key))

    def keys(self) -> list[str]:
        return sorted(self._items)

    def sorted(self) -> list[DepSpec]:
        return [self._items[k] for k in sorted(self._items)]

    def to_requirements_text(self) -> str:
        return "".join(f"{spec}\n" for spec in self.sorted())

    def __iter__(self) -> Iterator[DepSpec]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_name(key) in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DepSpecSet):
            return NotImplemented
        return list(self._items.items()) == list(other._items.items())


@dataclass
class LoadResult:
    """A flattened specification tree plus the lines that were skipped."""

    specs: DepSpecSet
    warnings: list[InvalidLineError] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
