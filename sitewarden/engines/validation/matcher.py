"""Matcher — pair installed packages with declared specs by normalized key."""

from __future__ import annotations

from dataclasses import dataclass

from sitewarden.engines.depspec.models import DepSpec, DepSpecSet
from sitewarden.engines.scanner.models import DirectUrl, Package, PackageSet
from sitewarden.normalize import canonical_url, normalize_name, strip_credentials

__all__ = [
    "MatchPair",
    "canonical_url",
    "match",
    "normalize_name",
    "revisions_match",
    "strip_credentials",
    "urls_match",
]


@dataclass(frozen=True)
class MatchPair:
    key: str
    package: Package | None
    dep_spec: DepSpec | None


def match(packages: PackageSet, specs: DepSpecSet) -> list[MatchPair]:
    """One pair per installed package, plus one per spec nothing installed matches.

    A key installed in several sites yields one pair per site, each carrying
    the same spec.
    """
    pairs: list[MatchPair] = []
    for package in packages.sorted():
        pairs.append(MatchPair(package.key, package, specs.get(package.key)))
    for spec in specs.sorted():
        if spec.key not in packages:
            pairs.append(MatchPair(spec.key, None, spec))
    pairs.sort(key=lambda p: p.key)
    return pairs


def urls_match(spec_url: str, direct_url: DirectUrl | None) -> bool:
    """Compare canonical forms; user-info never takes part in the comparison."""
    if direct_url is None:
        return False
    return canonical_url(spec_url) == canonical_url(direct_url.origin)


def revisions_match(direct_url: DirectUrl | None, spec: DepSpec) -> bool:
    """Revision identity is an OR over the ways a revision can be recorded.

    ``requested_revision`` equal, or ``commit_id`` equal, or the declared
    revision equal to the commit the installer resolved it to.  A spec that
    names no revision always matches.
    """
    if spec.revision is None:
        return True
    if direct_url is None:
        return False
    if spec.requested_revision and spec.requested_revision == direct_url.requested_revision:
        return True
    if spec.commit_id and spec.commit_id == direct_url.commit_id:
        return True
    return spec.revision == direct_url.commit_id
