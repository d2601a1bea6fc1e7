"""Parser for Python pyproject.toml [project] dependencies."""

from __future__ import annotations

import sys

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from sitewarden.engines.depspec.grammar import parse_line
from sitewarden.engines.depspec.models import SpecItem
from sitewarden.engines.depspec.registry import register_format
from sitewarden.engines.scanner.paths import SharedPath
from sitewarden.exceptions import InvalidLineError, LoadError


def _line_of(lines: list[str], raw: str) -> int:
    """1-based line holding the quoted requirement, 0 if it cannot be located."""
    for number, line in enumerate(lines, start=1):
        if f'"{raw}"' in line or f"'{raw}'" in line:
            return number
    return 0


def _table(parent: dict, key: str, source: SharedPath | str) -> dict:
    value = parent.get(key, {})
    if not isinstance(value, dict):
        raise LoadError(f"{source}: {key!r} must be a table, not {type(value).__name__}")
    return value


def _array(parent: dict, key: str, source: SharedPath | str) -> list:
    value = parent.get(key, [])
    if not isinstance(value, list):
        raise LoadError(f"{source}: {key!r} must be an array, not {type(value).__name__}")
    return value


class PyprojectTomlParser:
    format_name = "pyproject-toml"
    file_patterns = ["pyproject.toml"]

    def parse(self, content: str, source: SharedPath | str) -> list[SpecItem]:
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as exc:
            raise LoadError(f"{source}: invalid TOML: {exc}") from exc

        project = _table(data, "project", source)
        dep_strings: list[object] = list(_array(project, "dependencies", source))
        optional = _table(project, "optional-dependencies", source)
        for group in sorted(optional):
            dep_strings.extend(_array(optional, group, source))

        lines = content.splitlines()
        items: list[SpecItem] = []
        for raw in dep_strings:
            if not isinstance(raw, str):
                items.append(InvalidLineError(0, repr(raw), str(source)))
                continue
            line_number = _line_of(lines, raw)
            try:
                item = parse_line(raw, line_number, source)
            except InvalidLineError as exc:
                items.append(exc)
                continue
            if item is not None:
                items.append(item)
        return items


register_format(PyprojectTomlParser())
