"""Best-effort version ordering and constraint evaluation.

PEP 440 versions are handled by :mod:`packaging`.  Anything else (legacy
``1.0-custom``, calendar tags, vendor builds) falls back to a dotted-part
ordering in which numeric parts sort above text parts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

from packaging.specifiers import InvalidSpecifier, Specifier
from packaging.version import InvalidVersion
from packaging.version import Version as Pep440Version

OPERATORS = ("===", "~=", "==", "!=", "<=", ">=", "<", ">")

_LEADING_DIGIT = re.compile(r"^\d")


def _split_parts(text: str) -> tuple[tuple[int, int, str], ...]:
    parts = []
    for piece in re.split(r"[.\-_+]", text):
        if piece.isdigit():
            parts.append((1, int(piece), ""))
        else:
            parts.append((0, 0, piece))
    return tuple(parts)


@total_ordering
class Version:
    """An installed or declared version string with a total ordering."""

    __slots__ = ("text", "pep440", "_parts")

    def __init__(self, text: str) -> None:
        self.text = text.strip()
        try:
            self.pep440: Pep440Version | None = Pep440Version(self.text)
        except InvalidVersion:
            self.pep440 = None
        self._parts = _split_parts(self.text)

    @property
    def sort_key(self) -> tuple:
        if self.pep440 is not None:
            return (1, self.pep440)
        return (0, self._parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key == other.sort_key

    def __lt__(self, other: Version) -> bool:
        return self.sort_key < other.sort_key

    def __hash__(self) -> int:
        return hash(self.sort_key)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Version({self.text!r})"


@dataclass(frozen=True)
class Clause:
    """One ``<operator><version>`` comparison."""

    operator: str
    version: str

    def __str__(self) -> str:
        return f"{self.operator}{self.version}"

    def evaluate(self, installed: Version) -> bool | None:
        """Return whether *installed* satisfies this clause, or ``None`` if undecidable."""
        if self.operator == "===":
            return installed.text == self.version

        if installed.pep440 is not None:
            try:
                spec = Specifier(str(self))
            except InvalidSpecifier:
                spec = None
            if spec is not None:
                return spec.contains(installed.pep440, prereleases=True)

        return self._evaluate_fallback(installed)

    def _evaluate_fallback(self, installed: Version) -> bool | None:
        if self.operator == "~=" or not _LEADING_DIGIT.match(self.version):
            return None

        if self.version.endswith(".*"):
            if self.operator not in ("==", "!="):
                return None
            prefix = _split_parts(self.version[:-2])
            matched = installed._parts[: len(prefix)] == prefix
            return matched if self.operator == "==" else not matched
        if "*" in self.version:
            return None

        declared = _split_parts(self.version)
        ours = _pad(installed._parts, len(declared))
        theirs = _pad(declared, len(installed._parts))
        if self.operator == "==":
            return ours == theirs
        if self.operator == "!=":
            return ours != theirs
        if self.operator == "<":
            return ours < theirs
        if self.operator == "<=":
            return ours <= theirs
        if self.operator == ">":
            return ours > theirs
        return ours >= theirs


def _pad(parts: tuple, length: int) -> tuple:
    if len(parts) >= length:
        return parts
    return parts + ((1, 0, ""),) * (length - len(parts))


@dataclass(frozen=True)
class VersionConstraint:
    """A conjunction of clauses, e.g. ``>=1.0,<2``."""

    clauses: tuple[Clause, ...]

    def __str__(self) -> str:
        return ",".join(str(c) for c in self.clauses)

    def evaluate(self, installed: Version | None) -> bool | None:
        """``False`` if any clause fails, ``None`` if any is undecidable, else ``True``."""
        if installed is None:
            return None
        results = [clause.evaluate(installed) for clause in self.clauses]
        if any(r is False for r in results):
            return False
        if any(r is None for r in results):
            return None
        return True
