"""Data models for validation results."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from sitewarden.engines.depspec.models import DepSpec
from sitewarden.engines.scanner.models import Package


class ExplainCode(Enum):
    """Why a record is in the report.  Declaration order is severity order."""

    MISSING = "missing"
    UNEXPECTED = "unexpected"
    URL_MISMATCH = "url_mismatch"
    VERSION_MISMATCH = "version_mismatch"
    UNEVALUABLE = "unevaluable"
    SATISFIED = "satisfied"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @property
    def is_error(self) -> bool:
        return self is not ExplainCode.SATISFIED


_SEVERITY = {code: rank for rank, code in enumerate(ExplainCode)}


class ValidationMode(Enum):
    """Which side's extra entries are reported."""

    SUBSET = "subset"  # every spec must be installed
    SUPERSET = "superset"  # every installed package must be declared
    EXACT = "exact"  # both


class Strictness(Enum):
    VERSION_ONLY = "version"
    VERSION_AND_URL = "url"


@dataclass(frozen=True)
class ValidationConfig:
    mode: ValidationMode = ValidationMode.SUBSET
    strictness: Strictness = Strictness.VERSION_AND_URL


@dataclass(frozen=True)
class ValidationRecord:
    """One report row.  At most one of *package* / *dep_spec* is ``None``."""

    key: str
    package: Package | None
    dep_spec: DepSpec | None
    explain: ExplainCode

    def __post_init__(self) -> None:
        if self.package is None and self.dep_spec is None:
            raise ValueError(f"record {self.key!r} has neither a package nor a spec")

    @property
    def sort_key(self) -> tuple:
        site = str(self.package.site_path) if self.package is not None else ""
        source = self.dep_spec.provenance if self.dep_spec is not None else ""
        return (self.key, self.explain.severity, site, source)


@dataclass(frozen=True)
class ValidationReport:
    records: tuple[ValidationRecord, ...]
    config: ValidationConfig = field(default_factory=ValidationConfig)

    @property
    def has_errors(self) -> bool:
        return any(r.explain.is_error for r in self.records)

    def failures(self) -> list[ValidationRecord]:
        return [r for r in self.records if r.explain.is_error]

    def counts(self) -> dict[ExplainCode, int]:
        counts = {code: 0 for code in ExplainCode}
        for record in self.records:
            counts[record.explain] += 1
        return counts

    def __iter__(self) -> Iterator[ValidationRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)
