"""Requirements-file grammar: turn text into DepSpec / Include items.

Handles comments, ``\\`` continuations, extras, comparison clauses, direct and
VCS URLs (``name @ url`` and ``vcs+url@rev#egg=name``), environment markers
(kept verbatim, never evaluated) and ``-r`` / ``--requirement`` includes.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlsplit

from sitewarden.engines.depspec.models import DepSpec, Include, SpecItem
from sitewarden.engines.scanner.paths import SharedPath
from sitewarden.exceptions import InvalidLineError
from sitewarden.normalize import is_commit_id, split_vcs_revision, strip_credentials
from sitewarden.version import OPERATORS, Clause, VersionConstraint

_NAME = r"[A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?"

# name, optional [extras], then everything else
_REQ_RE = re.compile(rf"^(?P<name>{_NAME})\s*(?:\[(?P<extras>[^\]]*)\])?\s*(?P<rest>.*)$")

_CLAUSE_RE = re.compile(
    r"^\s*(?P<op>" + "|".join(re.escape(op) for op in OPERATORS) + r")\s*"
    r"(?P<version>[A-Za-z0-9_.*+!-]+)\s*$"
)

_INCLUDE_RE = re.compile(r"^(?:-r\s*|--requirement(?:\s*=\s*|\s+))(?P<target>\S+)$")
_EDITABLE_RE = re.compile(r"^(?:-e|--editable)(?:\s*=\s*|\s+)(?P<target>\S.*)$")

# "scheme://" or "file:" at the start of a bare URL requirement
_URL_START_RE = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.-]*://|file:)")

_COMMENT_RE = re.compile(r"(^|\s+)#.*$")
_HASH_OPTION_RE = re.compile(r"\s+--hash[=\s]\S+")

# After a URL the marker separator must follow whitespace (PEP 508)
_URL_MARKER_RE = re.compile(r"\s+;\s*")


def logical_lines(text: str) -> list[tuple[int, str]]:
    """Join ``\\`` continuations; return ``(first_line_number, text)`` pairs."""
    result: list[tuple[int, str]] = []
    buffer: list[str] = []
    start = 0
    for number, raw in enumerate(text.splitlines(), start=1):
        if not buffer:
            start = number
        stripped = raw.rstrip()
        if stripped.endswith("\\"):
            buffer.append(stripped[:-1])
            continue
        buffer.append(raw)
        result.append((start, "".join(buffer)))
        buffer = []
    if buffer:
        result.append((start, "".join(buffer)))
    return result


def parse_requirements(
    text: str,
    source: SharedPath | str | None = None,
) -> list[SpecItem]:
    """Parse a whole file.  Invalid lines are returned as :class:`InvalidLineError` items."""
    items: list[SpecItem] = []
    for line_number, line in logical_lines(text):
        try:
            item = parse_line(line, line_number, source)
        except InvalidLineError as exc:
            items.append(exc)
            continue
        if item is not None:
            items.append(item)
    return items


def parse_line(
    line: str,
    line_number: int = 1,
    source: SharedPath | str | None = None,
) -> DepSpec | Include | None:
    """Parse one logical line; ``None`` for blanks, comments and ignored options.

    Raises :class:`InvalidLineError` for anything else the grammar rejects.
    """
    content = _COMMENT_RE.sub("", line).strip()
    if not content:
        return None

    include = _INCLUDE_RE.match(content)
    if include:
        return Include(target=include.group("target"), line_number=line_number)

    editable = _EDITABLE_RE.match(content)
    if editable:
        content = editable.group("target").strip()
        if not _URL_START_RE.match(content):
            # -e ./local/checkout names no distribution
            return None
    elif content.startswith("-"):
        # --index-url, -c constraints, --pre, ... declare no requirement
        return None

    content = _HASH_OPTION_RE.sub("", content).strip()
    error = InvalidLineError(line_number, line.strip(), str(source) if source else None)

    if _URL_START_RE.match(content):
        try:
            spec = _parse_bare_url(content, line_number, source)
        except ValueError:
            raise error from None
        if spec is None:
            raise error
        return spec

    match = _REQ_RE.match(content)
    if not match:
        raise error

    name = match.group("name")
    extras = _parse_extras(match.group("extras"))
    rest = match.group("rest").strip()

    if rest.startswith("@"):
        url_text, *marker = _URL_MARKER_RE.split(rest[1:].strip(), maxsplit=1)
        url_text = url_text.strip()
        if not url_text or not _URL_START_RE.match(url_text) or " " in url_text:
            raise error
        try:
            return _url_spec(
                name,
                url_text,
                extras=extras,
                marker=marker[0].strip() if marker else None,
                line_number=line_number,
                source=source,
            )
        except ValueError:
            # urlsplit rejects malformed authorities such as an unclosed "[::1"
            raise error from None

    constraint_text, _, marker_text = rest.partition(";")
    try:
        constraint = parse_constraint(constraint_text)
    except ValueError:
        raise error from None
    return DepSpec(
        name=name,
        version_constraint=constraint,
        extras=extras,
        marker=marker_text.strip() or None,
        source_file=source,
        line_number=line_number,
    )


def parse_constraint(text: str) -> VersionConstraint | None:
    """Parse ``>=1.0,<2`` (optionally parenthesized); ``None`` if empty.

    Raises ``ValueError`` when any clause is not ``<operator><version>``.
    """
    text = text.strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1].strip()
    if not text:
        return None
    clauses = []
    for piece in text.split(","):
        m = _CLAUSE_RE.match(piece)
        if not m:
            raise ValueError(f"invalid version clause {piece!r}")
        clauses.append(Clause(m.group("op"), m.group("version")))
    return VersionConstraint(tuple(clauses))


def _parse_extras(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(e.strip() for e in raw.split(",") if e.strip())


def _url_spec(
    name: str,
    raw_url: str,
    *,
    extras: tuple[str, ...] = (),
    marker: str | None = None,
    line_number: int,
    source: SharedPath | str | None,
) -> DepSpec:
    url = strip_credentials(raw_url)
    scheme = urlsplit(url).scheme
    revision: str | None = None
    if "+" in scheme:
        # vcs+transport://host/path@rev is the only form that carries a revision
        url, revision = split_vcs_revision(url)
    else:
        url = url.split("#", 1)[0]

    commit_id = None
    requested_revision = revision
    if revision and is_commit_id(revision):
        commit_id, requested_revision = revision, None

    return DepSpec(
        name=name,
        url=url,
        requested_revision=requested_revision,
        commit_id=commit_id,
        extras=extras,
        marker=marker,
        source_file=source,
        line_number=line_number,
    )


def _parse_bare_url(
    content: str,
    line_number: int,
    source: SharedPath | str | None,
) -> DepSpec | None:
    """``git+https://host/repo.git@v1#egg=name``: the name comes from ``egg=``."""
    url_text, *marker = _URL_MARKER_RE.split(content, maxsplit=1)
    fragment = urlsplit(url_text).fragment
    egg = parse_qs(fragment).get("egg", [""])[0]
    m = _REQ_RE.match(egg)
    if not egg or not m or m.group("rest"):
        return None
    return _url_spec(
        m.group("name"),
        url_text,
        extras=_parse_extras(m.group("extras")),
        marker=marker[0].strip() if marker else None,
        line_number=line_number,
        source=source,
    )
