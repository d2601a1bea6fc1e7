"""Parser for pip requirements files (requirements.txt, constraints, lock exports)."""

from __future__ import annotations

from sitewarden.engines.depspec.grammar import parse_requirements
from sitewarden.engines.depspec.models import SpecItem
from sitewarden.engines.depspec.registry import register_format
from sitewarden.engines.scanner.paths import SharedPath


class RequirementsTxtParser:
    format_name = "requirements-txt"
    file_patterns = ["*.txt", "*.in"]

    def parse(self, content: str, source: SharedPath | str) -> list[SpecItem]:
        return parse_requirements(content, source)


register_format(RequirementsTxtParser())
