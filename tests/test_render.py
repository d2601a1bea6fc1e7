"""Tests for table, delimited and JSON-lines output."""

from __future__ import annotations

import io
import json

from sitewarden.engines.depspec.grammar import parse_line
from sitewarden.engines.depspec.models import DepSpecSet
from sitewarden.engines.scanner import Scanner
from sitewarden.engines.validation import ValidationConfig, ValidationMode, Validator
from sitewarden.render import (
    PACKAGE_COLUMNS,
    OutputFormat,
    render_packages,
    render_report,
)


def _packages(site):
    return Scanner(workers=1).scan([site]).packages.sorted()


class _FlushCounter(io.StringIO):
    def __init__(self):
        super().__init__()
        self.flushes = 0

    def flush(self):
        self.flushes += 1
        super().flush()


class TestRenderPackages:
    def test_table(self, populated_site):
        out = io.StringIO()
        render_packages(_packages(populated_site), OutputFormat.TABLE, file=out)
        lines = out.getvalue().splitlines()
        assert lines[0].split() == [c.upper() for c in PACKAGE_COLUMNS]
        assert lines[2].split()[:2] == ["numba", "0.59.0"]
        assert len(lines) == 5

    def test_delimited(self, populated_site):
        out = io.StringIO()
        render_packages(_packages(populated_site), OutputFormat.DELIMITED, delimiter=";", file=out)
        lines = out.getvalue().splitlines()
        assert lines[0] == "name;version;location;site;url"
        assert lines[1].startswith("numba;0.59.0;")

    def test_json_lines_flushed(self, populated_site):
        out = _FlushCounter()
        render_packages(_packages(populated_site), OutputFormat.JSON, file=out)
        records = [json.loads(line) for line in out.getvalue().splitlines()]
        assert [r["name"] for r in records] == ["numba", "numpy", "requests"]
        assert out.getvalue().endswith("\n")
        assert out.flushes >= 3


class TestRenderReport:
    def _report(self, site):
        specs = DepSpecSet([parse_line("numpy>=2", 1, "req.txt"), parse_line("scipy", 2, "req.txt")])
        packages = Scanner(workers=1).scan([site]).packages
        return Validator(ValidationConfig(ValidationMode.SUBSET)).validate(packages, specs)

    def test_json(self, populated_site):
        out = io.StringIO()
        render_report(self._report(populated_site), OutputFormat.JSON, file=out)
        records = [json.loads(line) for line in out.getvalue().splitlines()]
        assert [(r["key"], r["explain"]) for r in records] == [
            ("numpy", "version_mismatch"),
            ("scipy", "missing"),
        ]
        assert records[0]["declared"] == "numpy>=2"
        assert records[0]["source"] == "req.txt:1"
        assert records[1]["installed"] == ""

    def test_table_summary(self, populated_site):
        out = io.StringIO()
        render_report(self._report(populated_site), OutputFormat.TABLE, file=out)
        assert out.getvalue().rstrip().endswith("2 record(s): missing=1, version_mismatch=1")
