"""Derive a requirements set from what is installed."""

from __future__ import annotations

from collections import defaultdict
from enum import Enum

from sitewarden.engines.depspec.models import DepSpec, DepSpecSet
from sitewarden.engines.scanner.models import Package, PackageSet
from sitewarden.version import Clause, Version, VersionConstraint


class Anchor(Enum):
    """Which bound of the installed versions becomes the declared constraint."""

    LOWER = "lower"
    UPPER = "upper"
    EXACT = "exact"


def _constraint(versions: list[Version], anchor: Anchor) -> VersionConstraint | None:
    if not versions:
        return None
    low, high = min(versions), max(versions)
    if anchor is Anchor.LOWER:
        clauses = (Clause(">=", low.text),)
    elif anchor is Anchor.UPPER:
        clauses = (Clause("<=", high.text),)
    elif low == high:
        clauses = (Clause("==", low.text),)
    else:
        # several sites disagree, so pin the installed range
        clauses = (Clause(">=", low.text), Clause("<=", high.text))
    return VersionConstraint(clauses)


def _derive_one(group: list[Package], anchor: Anchor) -> DepSpec:
    first = group[0]
    durl = first.direct_url
    if len(group) == 1 and durl is not None and durl.vcs and durl.commit_id:
        # VCS installs are pinned to the commit they were built from
        return DepSpec(name=first.name, url=durl.origin, commit_id=durl.commit_id)
    versions = [p.version for p in group if p.version is not None]
    return DepSpec(name=first.name, version_constraint=_constraint(versions, anchor))


def derive_specs(packages: PackageSet, anchor: Anchor = Anchor.LOWER) -> DepSpecSet:
    """One DepSpec per installed key, constrained around the installed version(s)."""
    groups: dict[str, list[Package]] = defaultdict(list)
    for package in packages.sorted():
        groups[package.key].append(package)
    return DepSpecSet(_derive_one(groups[key], anchor) for key in sorted(groups))
