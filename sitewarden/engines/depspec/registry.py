"""Specification format registry — match file names to parsers."""

from __future__ import annotations

from fnmatch import fnmatch
from typing import Protocol, runtime_checkable

from sitewarden.engines.depspec.models import SpecItem
from sitewarden.engines.scanner.paths import SharedPath


@runtime_checkable
class SpecFormat(Protocol):
    """Interface that every specification-file parser must satisfy."""

    format_name: str
    file_patterns: list[str]

    def parse(self, content: str, source: SharedPath | str) -> list[SpecItem]: ...


FORMAT_REGISTRY: dict[str, SpecFormat] = {}

DEFAULT_FORMAT = "requirements-txt"


def register_format(fmt: SpecFormat) -> None:
    """Register a parser instance by its format_name."""
    FORMAT_REGISTRY[fmt.format_name] = fmt


def format_for(file_name: str) -> SpecFormat:
    """Pick the parser whose patterns match *file_name*; requirements text otherwise."""
    for fmt in FORMAT_REGISTRY.values():
        if fmt.format_name == DEFAULT_FORMAT:
            continue
        if any(fnmatch(file_name, pattern) for pattern in fmt.file_patterns):
            return fmt
    return FORMAT_REGISTRY[DEFAULT_FORMAT]
