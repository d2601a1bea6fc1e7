"""Validator — apply subset/superset policy over matched pairs."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from sitewarden.engines.depspec.models import DepSpec, DepSpecSet
from sitewarden.engines.scanner.models import Package, PackageSet
from sitewarden.engines.validation.matcher import MatchPair, match, revisions_match, urls_match
from sitewarden.engines.validation.models import (
    ExplainCode,
    Strictness,
    ValidationConfig,
    ValidationMode,
    ValidationRecord,
    ValidationReport,
)

log = structlog.get_logger("sitewarden.engine")

_REPORTS_MISSING = {ValidationMode.SUBSET, ValidationMode.EXACT}
_REPORTS_UNEXPECTED = {ValidationMode.SUPERSET, ValidationMode.EXACT}


class Validator:
    """Turn match pairs into an ordered :class:`ValidationReport`.

    Never raises for data anomalies; every finding is an explain code.
    """

    def __init__(self, config: ValidationConfig | None = None) -> None:
        self.config = config or ValidationConfig()

    def validate(self, packages: PackageSet, specs: DepSpecSet) -> ValidationReport:
        return self.validate_pairs(match(packages, specs))

    def validate_pairs(self, pairs: Iterable[MatchPair]) -> ValidationReport:
        records = []
        for pair in pairs:
            explain = self._explain(pair)
            if explain is not None:
                records.append(ValidationRecord(pair.key, pair.package, pair.dep_spec, explain))
        records.sort(key=lambda r: r.sort_key)

        report = ValidationReport(tuple(records), self.config)
        log.info(
            "validator.complete",
            mode=self.config.mode.value,
            strictness=self.config.strictness.value,
            records=len(records),
            errors=len(report.failures()),
        )
        return report

    def _explain(self, pair: MatchPair) -> ExplainCode | None:
        if pair.package is None:
            return ExplainCode.MISSING if self.config.mode in _REPORTS_MISSING else None
        if pair.dep_spec is None:
            return ExplainCode.UNEXPECTED if self.config.mode in _REPORTS_UNEXPECTED else None
        return self.compare(pair.package, pair.dep_spec)

    def compare(self, package: Package, spec: DepSpec) -> ExplainCode:
        """Explain code for a package and the spec it was matched with."""
        if self.config.strictness is Strictness.VERSION_AND_URL and spec.url:
            if not urls_match(spec.url, package.direct_url):
                return ExplainCode.URL_MISMATCH
            if not revisions_match(package.direct_url, spec):
                return ExplainCode.URL_MISMATCH

        if spec.version_constraint is None:
            return ExplainCode.SATISFIED
        satisfied = spec.version_constraint.evaluate(package.version)
        if satisfied is None:
            return ExplainCode.UNEVALUABLE
        return ExplainCode.SATISFIED if satisfied else ExplainCode.VERSION_MISMATCH
