"""Name and URL normalization shared by scanning, parsing and matching."""

from __future__ import annotations

import re

_SEPARATOR_RUN = re.compile(r"[-_.]+")

# A full git/hg commit hash (sha1 or sha256)
_COMMIT_RE = re.compile(r"^(?:[0-9a-fA-F]{40}|[0-9a-fA-F]{64})$")

# scheme:// then user[:password]@; the authority ends at the first / ? # or space
_USERINFO_RE = re.compile(r"(?P<scheme>[A-Za-z][A-Za-z0-9+.-]*://)[^/?#\s]*@")

_AUTHORITY_RE = re.compile(r"^(?P<head>[A-Za-z][A-Za-z0-9+.-]*://[^/?#]*)(?P<tail>.*)$")


def normalize_name(name: str) -> str:
    """PEP 503 key: lowercase, with runs of ``-``, ``_`` and ``.`` collapsed to ``-``."""
    return _SEPARATOR_RUN.sub("-", name.strip()).lower()


def is_commit_id(value: str) -> bool:
    return bool(_COMMIT_RE.match(value))


def strip_credentials(text: str) -> str:
    """Remove ``user[:password]@`` from every ``scheme://`` authority in *text*.

    Works on a single URL or on a whole requirement line, and never fails on
    malformed URLs.  Text without ``scheme://`` is returned unchanged.
    """
    if "://" not in text:
        return text
    return _USERINFO_RE.sub(r"\g<scheme>", text)


def is_vcs_url(url: str) -> bool:
    """``git+https://...`` style: the scheme names a VCS and a transport."""
    scheme, sep, _ = url.partition("://")
    return bool(sep) and "+" in scheme


def split_vcs_revision(url: str) -> tuple[str, str | None]:
    """Split ``vcs+scheme://host/path@rev`` into ``(url_without_rev, rev)``.

    Only an ``@`` inside the path counts as a revision marker; user-info in the
    authority is left alone.  Fragments are dropped.
    """
    url = url.split("#", 1)[0]
    m = _AUTHORITY_RE.match(url)
    head, tail = (m.group("head"), m.group("tail")) if m else ("", url)
    path, sep, query = tail.partition("?")
    revision: str | None = None
    if "@" in path:
        path, revision = path.rsplit("@", 1)
        revision = revision or None
    return head + path + sep + query, revision


def canonical_url(url: str) -> str:
    """Comparison form of a URL: credentials and fragment removed.

    The ``@rev`` suffix is removed from VCS URLs only; in an archive URL an
    ``@`` is an ordinary path character.
    """
    base = strip_credentials(url.strip())
    if is_vcs_url(base):
        base, _ = split_vcs_revision(base)
    else:
        base = base.split("#", 1)[0]
    return base.rstrip("/")
