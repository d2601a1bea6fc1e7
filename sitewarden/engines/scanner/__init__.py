"""Installed-package scanner — discover dist-info / egg-info metadata across site roots."""

from sitewarden.engines.scanner.artifacts import (
    Artifact,
    PackageArtifacts,
    read_artifacts,
    unpack,
)
from sitewarden.engines.scanner.metadata import MetadataReader
from sitewarden.engines.scanner.models import (
    DirectUrl,
    MetadataFormat,
    Package,
    PackageSet,
    ScanResult,
    ScanWarning,
)
from sitewarden.engines.scanner.paths import PathInterner, SharedPath
from sitewarden.engines.scanner.scanner import Scanner, merge_packages
from sitewarden.engines.scanner.search import search

__all__ = [
    "Artifact",
    "DirectUrl",
    "MetadataFormat",
    "MetadataReader",
    "Package",
    "PackageArtifacts",
    "PackageSet",
    "PathInterner",
    "ScanResult",
    "ScanWarning",
    "Scanner",
    "SharedPath",
    "merge_packages",
    "read_artifacts",
    "search",
    "unpack",
]
