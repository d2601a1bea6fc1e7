"""Glob-style search over a PackageSet."""

from __future__ import annotations

import re
from collections.abc import Iterator
from functools import lru_cache

from sitewarden.engines.scanner.models import Package, PackageSet


@lru_cache(maxsize=128)
def compile_pattern(pattern: str, case_sensitive: bool = False) -> re.Pattern[str]:
    """Translate a ``*`` / ``?`` pattern to a regex.

    ``-`` and ``_`` in the pattern each match either separator, mirroring how
    installers rewrite names.  Every other character is literal.
    """
    out = []
    for char in pattern:
        if char == "*":
            out.append(".*")
        elif char == "?":
            out.append(".")
        elif char in "-_":
            out.append("[-_]")
        else:
            out.append(re.escape(char))
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile("".join(out) + r"\Z", flags | re.DOTALL)


def search(
    packages: PackageSet,
    pattern: str,
    *,
    match_path: bool = False,
    case_sensitive: bool = False,
) -> Iterator[Package]:
    """Yield packages whose key or name (or location, with *match_path*) match *pattern*.

    Results come in normalized-key order.  Each call starts a fresh pass.
    """
    regex = compile_pattern(pattern, case_sensitive)
    for package in packages.sorted():
        subjects = [package.key, package.name]
        if match_path:
            subjects.append(str(package.location))
        if any(regex.match(s) for s in subjects):
            yield package
