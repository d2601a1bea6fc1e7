"""Custom exceptions for sitewarden."""

from __future__ import annotations

from collections.abc import Sequence

from sitewarden.normalize import strip_credentials


class SitewardenError(Exception):
    """Base exception for all sitewarden errors."""


class ConfigError(SitewardenError):
    """Raised when an environment setting has an invalid value."""


# ── metadata / scan ──────────────────────────────────────────────────────


class ReadError(SitewardenError):
    """Raised when a single metadata entry cannot be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class MalformedMetadataError(ReadError):
    """Raised when no package name can be determined for a metadata entry."""


class ScanError(SitewardenError):
    """Base exception for fatal scan failures."""


class NoRootsError(ScanError):
    """Raised when none of the requested roots could be read."""

    def __init__(self, roots: Sequence[str]):
        self.roots = list(roots)
        super().__init__(f"no readable roots among {len(self.roots)} candidate(s): {self.roots}")


class ScanCancelledError(ScanError):
    """Raised when the caller cancels a scan before the merge step."""


# ── specification files ──────────────────────────────────────────────────


class ParseError(SitewardenError):
    """Base exception for specification grammar errors."""


class InvalidLineError(ParseError):
    """Raised (or returned) for a requirement line the grammar cannot parse.

    Credentials in URLs of the raw text are removed before it is stored.
    """

    def __init__(self, line_number: int, raw_text: str, source: str | None = None):
        self.line_number = line_number
        self.raw_text = strip_credentials(raw_text)
        self.source = source
        where = f"{source}:{line_number}" if source else f"line {line_number}"
        super().__init__(f"{where}: invalid requirement {self.raw_text!r}")


class LoadError(SitewardenError):
    """Base exception for failures while loading a specification file tree."""


class SpecNotFoundError(LoadError):
    """Raised when a specification file (or an included file) does not exist."""


class CyclicIncludeError(LoadError):
    """Raised when a file includes itself, directly or transitively."""

    def __init__(self, chain: Sequence[str]):
        self.chain = list(chain)
        super().__init__("cyclic include: " + " -> ".join(self.chain))


class FetchError(LoadError):
    """Raised when a remote specification file cannot be retrieved."""


class LoadCancelledError(LoadError):
    """Raised when the caller cancels a load between files."""
