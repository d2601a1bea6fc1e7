"""Read one ``*.dist-info`` / ``*.egg-info`` entry into a :class:`Package`."""

from __future__ import annotations

import re
from pathlib import Path

import structlog
from pydantic import BaseModel, ValidationError

from sitewarden.engines.scanner.models import DirectUrl, MetadataFormat, Package
from sitewarden.engines.scanner.paths import PathInterner, SharedPath
from sitewarden.exceptions import MalformedMetadataError, ReadError
from sitewarden.normalize import strip_credentials
from sitewarden.version import Version

log = structlog.get_logger("sitewarden.engine")

ENTRY_SUFFIXES: dict[str, MetadataFormat] = {
    ".dist-info": MetadataFormat.DIST_INFO,
    ".egg-info": MetadataFormat.EGG_INFO,
}

# Metadata file inside the entry directory, per format
_METADATA_FILES: dict[MetadataFormat, tuple[str, ...]] = {
    MetadataFormat.DIST_INFO: ("METADATA", "PKG-INFO"),
    MetadataFormat.EGG_INFO: ("PKG-INFO",),
}

# "foo-1.0-py3.11" → strip the "-py3.11" interpreter tag of setuptools egg names
_PY_TAG_RE = re.compile(r"-py\d+(?:\.\d+)*$")


class _VcsInfo(BaseModel):
    vcs: str
    commit_id: str | None = None
    requested_revision: str | None = None


class _DirectUrlRecord(BaseModel):
    """Schema of ``direct_url.json`` (only the fields we match on)."""

    url: str
    vcs_info: _VcsInfo | None = None


def metadata_format(entry: Path) -> MetadataFormat | None:
    """Return the entry's metadata format, or ``None`` if it is not a metadata entry."""
    for suffix, fmt in ENTRY_SUFFIXES.items():
        if entry.name.endswith(suffix):
            return fmt
    return None


def split_entry_name(entry_name: str) -> tuple[str | None, str | None]:
    """Split ``name-version.dist-info`` into ``(name, version)``.

    Wheel installers escape hyphens in names to underscores, so the last
    hyphen separates the version.  Either part may be missing.
    """
    stem = entry_name
    for suffix in ENTRY_SUFFIXES:
        if stem.endswith(suffix):
            stem = stem[: -len(suffix)]
            break
    stem = _PY_TAG_RE.sub("", stem)
    if not stem:
        return None, None
    if "-" not in stem:
        return stem, None
    name, version = stem.rsplit("-", 1)
    return (name or None), (version or None)


def parse_headers(text: str) -> dict[str, str]:
    """Read the RFC 822 style header block of METADATA / PKG-INFO.

    Only the first occurrence of each header is kept; parsing stops at the
    blank line that starts the long description.
    """
    headers: dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip():
            break
        if line[0] in " \t" or ":" not in line:
            continue
        field, value = line.split(":", 1)
        headers.setdefault(field.strip().lower(), value.strip())
    return headers


def parse_direct_url(text: str) -> DirectUrl:
    """Parse ``direct_url.json`` content; raises :class:`ValidationError` if malformed."""
    record = _DirectUrlRecord.model_validate_json(text)
    vcs = record.vcs_info
    return DirectUrl(
        url=strip_credentials(record.url),
        vcs=vcs.vcs if vcs else None,
        commit_id=vcs.commit_id if vcs else None,
        requested_revision=vcs.requested_revision if vcs else None,
    )


class MetadataReader:
    """Build a :class:`Package` from one metadata entry on disk."""

    def __init__(self, interner: PathInterner | None = None) -> None:
        self._interner = interner or PathInterner()

    def read(self, entry: Path, site_path: SharedPath) -> Package:
        fmt = metadata_format(entry)
        if fmt is None:
            raise ReadError(str(entry), "not a metadata entry")

        headers = self._read_headers(entry, fmt)
        name_from_entry, version_from_entry = split_entry_name(entry.name)

        name = headers.get("name") or name_from_entry
        if not name:
            raise MalformedMetadataError(str(entry), "no package name in metadata or entry name")
        version_text = headers.get("version") or version_from_entry

        direct_url = None
        if fmt is MetadataFormat.DIST_INFO and entry.is_dir():
            direct_url = self._read_direct_url(entry / "direct_url.json")

        return Package(
            name=name,
            version=Version(version_text) if version_text else None,
            location=self._interner.intern(entry),
            site_path=site_path,
            direct_url=direct_url,
            source_format=fmt,
        )

    @staticmethod
    def _read_headers(entry: Path, fmt: MetadataFormat) -> dict[str, str]:
        try:
            if entry.is_file():
                # Old setuptools writes a bare PKG-INFO file named *.egg-info
                return parse_headers(entry.read_text(encoding="utf-8", errors="replace"))
            for filename in _METADATA_FILES[fmt]:
                candidate = entry / filename
                if candidate.is_file():
                    return parse_headers(candidate.read_text(encoding="utf-8", errors="replace"))
        except OSError as exc:
            raise ReadError(str(entry), f"cannot read metadata: {exc}") from exc
        return {}

    @staticmethod
    def _read_direct_url(path: Path) -> DirectUrl | None:
        if not path.is_file():
            return None
        try:
            return parse_direct_url(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("metadata.direct_url_unreadable", path=str(path), error=str(exc))
        except ValidationError as exc:
            # The error text echoes input values, which may carry credentials
            log.warning(
                "metadata.direct_url_malformed", path=str(path), errors=exc.error_count()
            )
        return None
