"""Locate Python interpreters and the site directories they install into."""

from __future__ import annotations

import os
import re
import subprocess
from pathlib import Path

import structlog

log = structlog.get_logger("sitewarden.engine")

# python, python3, python3.12 but not python3-config or pythonw helpers
_EXE_NAME_RE = re.compile(r"^python(\d+(\.\d+)*)?$")

_STANDARD_BIN_DIRS = (
    "/bin",
    "/sbin",
    "/usr/bin",
    "/usr/sbin",
    "/usr/local/bin",
    "/usr/local/sbin",
    "/opt/homebrew/bin",
)

# Prints ENABLE_USER_SITE, then one site dir per line, with the user site last
_SITE_PROBE = (
    "import site;"
    "print(site.ENABLE_USER_SITE);"
    "print('\\n'.join(site.getsitepackages()));"
    "print(site.getusersitepackages())"
)

_PROBE_TIMEOUT = 15.0


def is_interpreter(path: Path) -> bool:
    if not _EXE_NAME_RE.match(path.name):
        return False
    try:
        return path.is_file() and os.access(path, os.X_OK)
    except OSError:
        return False


def search_dirs() -> list[Path]:
    """``PATH`` entries followed by the standard bin directories, de-duplicated."""
    dirs: list[Path] = []
    for entry in os.environ.get("PATH", "").split(os.pathsep):
        if entry:
            dirs.append(Path(entry))
    dirs.extend(Path(d) for d in _STANDARD_BIN_DIRS)
    seen: set[Path] = set()
    unique = []
    for d in dirs:
        if d not in seen:
            seen.add(d)
            unique.append(d)
    return unique


def find_interpreters(dirs: list[Path] | None = None) -> list[Path]:
    """Return resolved interpreter paths found directly in *dirs* (non-recursive)."""
    found: dict[Path, None] = {}
    for directory in dirs if dirs is not None else search_dirs():
        try:
            children = sorted(directory.iterdir())
        except OSError:
            continue
        for child in children:
            if is_interpreter(child):
                found.setdefault(child.resolve(), None)
    return list(found)


def site_dirs_for(exe: Path, force_user_site: bool = False) -> list[Path]:
    """Ask *exe* for its site directories.

    The user site is kept only when the interpreter enables it or
    *force_user_site* is set.  A failing interpreter yields an empty list.
    """
    try:
        proc = subprocess.run(
            [str(exe), "-c", _SITE_PROBE],
            capture_output=True,
            text=True,
            timeout=_PROBE_TIMEOUT,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        log.warning("roots.probe_failed", exe=str(exe), error=str(exc))
        return []

    lines = [line.strip() for line in proc.stdout.strip().splitlines()]
    if not lines:
        return []
    user_site_enabled = lines[0] == "True"
    dirs = [Path(line) for line in lines[1:] if line]
    if dirs and not (force_user_site or user_site_enabled):
        dirs.pop()
    return dirs


def expand_root(root: Path) -> list[Path]:
    """Turn an environment prefix (venv, conda env) into its site-packages dirs.

    Anything that does not look like a prefix is returned as-is so it can be
    scanned directly as a site directory.
    """
    candidates = sorted(root.glob("lib/python*/site-packages"))
    candidates += sorted(root.glob("lib64/python*/site-packages"))
    windows = root / "Lib" / "site-packages"
    if windows.is_dir():
        candidates.append(windows)
    dirs = [c for c in candidates if c.is_dir()]
    return dirs or [root]


def discover_sites(
    exes: list[Path] | None = None,
    force_user_site: bool = False,
) -> dict[Path, list[Path]]:
    """Map each interpreter (given, or every one discovered) to its site directories.

    A site directory shared by several interpreters is listed under the first
    one only, so the values never overlap.
    """
    interpreters = exes if exes else find_interpreters()
    seen: set[Path] = set()
    sites: dict[Path, list[Path]] = {}
    for exe in interpreters:
        if exe in sites:
            continue
        own = [d for d in site_dirs_for(exe, force_user_site) if d not in seen]
        seen.update(own)
        sites[exe] = own
    log.info("roots.discovered", interpreters=len(sites), roots=len(seen))
    return sites
