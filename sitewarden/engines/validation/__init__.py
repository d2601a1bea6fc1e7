"""Validation engine — match installed packages to declared specs and explain the result."""

from sitewarden.engines.validation.digest import digest
from sitewarden.engines.validation.matcher import MatchPair, match
from sitewarden.engines.validation.models import (
    ExplainCode,
    Strictness,
    ValidationConfig,
    ValidationMode,
    ValidationRecord,
    ValidationReport,
)
from sitewarden.engines.validation.validator import Validator

__all__ = [
    "ExplainCode",
    "MatchPair",
    "Strictness",
    "ValidationConfig",
    "ValidationMode",
    "ValidationRecord",
    "ValidationReport",
    "Validator",
    "digest",
    "match",
]
