"""Shared pytest fixtures for sitewarden tests: on-disk site-packages builders."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


def make_dist(
    site: Path,
    name: str,
    version: str | None = None,
    *,
    fmt: str = "dist-info",
    entry_name: str | None = None,
    metadata_name: str | None = None,
    direct_url: dict | None = None,
) -> Path:
    """Create one ``*.dist-info`` / ``*.egg-info`` directory under *site*.

    *metadata_name* overrides the ``Name:`` header (``""`` omits it).
    """
    if entry_name is None:
        stem = name.replace("-", "_")
        entry_name = f"{stem}-{version}.{fmt}" if version else f"{stem}.{fmt}"
    entry = site / entry_name
    entry.mkdir(parents=True)

    header_name = name if metadata_name is None else metadata_name
    lines = ["Metadata-Version: 2.1"]
    if header_name:
        lines.append(f"Name: {header_name}")
    if version:
        lines.append(f"Version: {version}")
    filename = "METADATA" if fmt == "dist-info" else "PKG-INFO"
    (entry / filename).write_text("\n".join(lines) + "\n\nLong description.\nName: ignored\n")

    if direct_url is not None:
        (entry / "direct_url.json").write_text(json.dumps(direct_url))
    return entry


@pytest.fixture
def site(tmp_path):
    """An empty site-packages directory."""
    path = tmp_path / "site-packages"
    path.mkdir()
    return path


@pytest.fixture
def populated_site(site):
    """numpy, numba and requests installed as wheels."""
    make_dist(site, "numpy", "1.26.4")
    make_dist(site, "numba", "0.59.0")
    make_dist(site, "requests", "2.31.0")
    return site
