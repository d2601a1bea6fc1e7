"""Declared requirements: grammar, format registry, include loader and derivation."""

from sitewarden.engines.depspec.derive import Anchor, derive_specs
from sitewarden.engines.depspec.fetcher import Fetcher, HttpFetcher
from sitewarden.engines.depspec.grammar import parse_constraint, parse_line, parse_requirements
from sitewarden.engines.depspec.loader import SpecLoader
from sitewarden.engines.depspec.models import (
    DepSpec,
    DepSpecSet,
    Include,
    LinePolicy,
    LoadResult,
)

__all__ = [
    "Anchor",
    "DepSpec",
    "DepSpecSet",
    "Fetcher",
    "HttpFetcher",
    "Include",
    "LinePolicy",
    "LoadResult",
    "SpecLoader",
    "derive_specs",
    "parse_constraint",
    "parse_line",
    "parse_requirements",
]
