"""SpecLoader — flatten a tree of specification files into one DepSpecSet."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import urljoin, urlsplit

import structlog

import sitewarden.engines.depspec.parsers  # noqa: F401  (registers built-in formats)
from sitewarden.engines.depspec.fetcher import Fetcher
from sitewarden.engines.depspec.models import (
    DepSpec,
    DepSpecSet,
    Include,
    LinePolicy,
    LoadResult,
)
from sitewarden.engines.depspec.registry import format_for
from sitewarden.engines.scanner.paths import PathInterner, SharedPath
from sitewarden.exceptions import (
    CyclicIncludeError,
    FetchError,
    InvalidLineError,
    LoadCancelledError,
    LoadError,
    SpecNotFoundError,
)
from sitewarden.normalize import strip_credentials

log = structlog.get_logger("sitewarden.engine")

_REMOTE_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_remote(target: str) -> bool:
    return bool(_REMOTE_RE.match(target))


@dataclass(frozen=True)
class _FileRef:
    """One file in the include tree.

    ``location`` is what gets opened or fetched; ``identity`` is the
    canonical form used for cycle detection and provenance (absolute path,
    or URL without credentials).
    """

    location: str
    identity: str
    remote: bool

    @property
    def file_name(self) -> str:
        if self.remote:
            return PurePosixPath(urlsplit(self.identity).path).name
        return Path(self.location).name


class SpecLoader:
    """Load a root specification file and everything it includes.

    Includes are resolved relative to the including file (``urljoin`` for
    remote files).  A later spec for the same normalized name overrides an
    earlier one.
    """

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        on_invalid: LinePolicy = LinePolicy.ABORT,
        interner: PathInterner | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.on_invalid = on_invalid
        self.interner = interner or PathInterner()

    def load(
        self,
        target: str | Path,
        cancel: threading.Event | None = None,
    ) -> LoadResult:
        """Flatten *target* and its includes.

        Raises :class:`SpecNotFoundError`, :class:`CyclicIncludeError`,
        :class:`FetchError`, :class:`LoadCancelledError`, and
        :class:`InvalidLineError` under :attr:`LinePolicy.ABORT`.
        """
        result = LoadResult(specs=DepSpecSet())
        self._load_file(self._resolve(str(target), None), [], result, cancel)
        log.info(
            "loader.complete",
            root=strip_credentials(str(target)),
            files=len(result.files),
            specs=len(result.specs),
            skipped=len(result.warnings),
        )
        return result

    # ── internals ──────────────────────────────────────────────────────────

    def _resolve(self, target: str, parent: _FileRef | None) -> _FileRef:
        try:
            return self._resolve_ref(target, parent)
        except ValueError:
            # malformed URL authority, or a NUL byte in a path
            where = f" (included from {parent.identity})" if parent is not None else ""
            raise LoadError(
                f"invalid specification location {strip_credentials(target)!r}{where}"
            ) from None

    @staticmethod
    def _resolve_ref(target: str, parent: _FileRef | None) -> _FileRef:
        if is_remote(target):
            urlsplit(target)
            return _FileRef(target, strip_credentials(target), remote=True)
        if parent is not None and parent.remote:
            url = urljoin(parent.location, target)
            urlsplit(url)
            return _FileRef(url, strip_credentials(url), remote=True)
        path = Path(target).expanduser()
        if parent is not None and not path.is_absolute():
            path = Path(parent.location).parent / path
        path = path.resolve()
        return _FileRef(str(path), str(path), remote=False)

    def _load_file(
        self,
        ref: _FileRef,
        chain: list[_FileRef],
        result: LoadResult,
        cancel: threading.Event | None,
    ) -> None:
        if cancel is not None and cancel.is_set():
            raise LoadCancelledError(f"load cancelled before {ref.identity}")
        if any(seen.identity == ref.identity for seen in chain):
            raise CyclicIncludeError([r.identity for r in chain] + [ref.identity])

        text = self._read(ref, chain)
        source: SharedPath | str = ref.identity if ref.remote else self.interner.intern(ref.location)
        result.files.append(ref.identity)
        if chain:
            log.debug("loader.include", parent=chain[-1].identity, target=ref.identity)

        chain = [*chain, ref]
        for item in format_for(ref.file_name).parse(text, source):
            if isinstance(item, Include):
                self._load_file(self._resolve(item.target, ref), chain, result, cancel)
            elif isinstance(item, InvalidLineError):
                if self.on_invalid is LinePolicy.ABORT:
                    raise item
                log.warning(
                    "loader.line_skipped",
                    source=item.source,
                    line=item.line_number,
                )
                result.warnings.append(item)
            else:
                self._add(result.specs, item)

    @staticmethod
    def _add(specs: DepSpecSet, spec: DepSpec) -> None:
        previous = specs.add(spec)
        if previous is not None and previous != spec:
            log.info(
                "loader.spec_overridden",
                key=spec.key,
                previous=previous.provenance,
                current=spec.provenance,
            )

    def _read(self, ref: _FileRef, chain: list[_FileRef]) -> str:
        if ref.remote:
            if self.fetcher is None:
                raise FetchError(f"no fetcher configured for remote file {ref.identity}")
            return self.fetcher.fetch(ref.location)
        path = Path(ref.location)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            where = f" (included from {chain[-1].identity})" if chain else ""
            raise SpecNotFoundError(f"specification file not found: {path}{where}") from None
        except (OSError, UnicodeDecodeError) as exc:
            raise SpecNotFoundError(f"cannot read specification file {path}: {exc}") from exc
