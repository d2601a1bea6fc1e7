"""Presentation of packages and validation reports: table, delimited text, JSON lines."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable
from enum import Enum
from typing import IO, Any

import click

from sitewarden.engines.scanner.artifacts import PackageArtifacts
from sitewarden.engines.scanner.models import Package
from sitewarden.engines.validation.models import ValidationRecord, ValidationReport


class OutputFormat(Enum):
    TABLE = "table"
    DELIMITED = "delimited"
    JSON = "json"


PACKAGE_COLUMNS = ("name", "version", "location", "site", "url")
RECORD_COLUMNS = ("key", "explain", "installed", "declared", "site", "source")
COUNT_COLUMNS = ("name", "count")
ARTIFACT_COLUMNS = ("package", "site", "exists", "path")
ARTIFACT_COUNT_COLUMNS = ("package", "site", "files", "missing")


def package_row(package: Package) -> dict[str, Any]:
    return {
        "name": package.name,
        "version": package.version_text,
        "location": str(package.location),
        "site": str(package.site_path),
        "url": str(package.direct_url) if package.direct_url is not None else "",
    }


def record_row(record: ValidationRecord) -> dict[str, Any]:
    package, spec = record.package, record.dep_spec
    return {
        "key": record.key,
        "explain": record.explain.value,
        "installed": str(package) if package is not None else "",
        "declared": str(spec) if spec is not None else "",
        "site": str(package.site_path) if package is not None else "",
        "source": spec.provenance if spec is not None else "",
    }


def artifact_rows(item: PackageArtifacts) -> list[dict[str, Any]]:
    return [
        {
            "package": str(item.package),
            "site": str(item.package.site_path),
            "exists": artifact.exists,
            "path": str(artifact.path),
        }
        for artifact in item.artifacts
    ]


def artifact_count_row(item: PackageArtifacts) -> dict[str, Any]:
    return {
        "package": str(item.package),
        "site": str(item.package.site_path),
        "files": item.count,
        "missing": item.missing,
    }


def emit_rows(
    rows: Iterable[dict[str, Any]],
    columns: tuple[str, ...],
    fmt: OutputFormat,
    *,
    delimiter: str = ",",
    file: IO[str] | None = None,
) -> None:
    """Write *rows* to *file* (stdout by default) in the chosen format."""
    if fmt is OutputFormat.JSON:
        _emit_json(rows, file)
    elif fmt is OutputFormat.DELIMITED:
        _emit_delimited(rows, columns, delimiter, file)
    else:
        _emit_table(list(rows), columns, file)


def _emit_json(rows: Iterable[dict[str, Any]], file: IO[str] | None) -> None:
    for row in rows:
        # click.echo terminates and flushes each record
        click.echo(json.dumps(row, sort_keys=True), file=file)


def _emit_delimited(
    rows: Iterable[dict[str, Any]],
    columns: tuple[str, ...],
    delimiter: str,
    file: IO[str] | None,
) -> None:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, delimiter=delimiter, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    click.echo(buffer.getvalue(), file=file, nl=False)


def _emit_table(rows: list[dict[str, Any]], columns: tuple[str, ...], file: IO[str] | None) -> None:
    widths = {c: len(c) for c in columns}
    for row in rows:
        for c in columns:
            widths[c] = max(widths[c], len(str(row[c])))
    header = "  ".join(c.upper().ljust(widths[c]) for c in columns).rstrip()
    click.echo(header, file=file)
    click.echo("  ".join("-" * widths[c] for c in columns), file=file)
    for row in rows:
        click.echo("  ".join(str(row[c]).ljust(widths[c]) for c in columns).rstrip(), file=file)


def render_packages(
    packages: Iterable[Package],
    fmt: OutputFormat = OutputFormat.TABLE,
    *,
    delimiter: str = ",",
    file: IO[str] | None = None,
) -> None:
    emit_rows(
        (package_row(p) for p in packages),
        PACKAGE_COLUMNS,
        fmt,
        delimiter=delimiter,
        file=file,
    )


def render_report(
    report: ValidationReport,
    fmt: OutputFormat = OutputFormat.TABLE,
    *,
    delimiter: str = ",",
    file: IO[str] | None = None,
) -> None:
    emit_rows(
        (record_row(r) for r in report.records),
        RECORD_COLUMNS,
        fmt,
        delimiter=delimiter,
        file=file,
    )
    if fmt is OutputFormat.TABLE:
        counts = report.counts()
        summary = ", ".join(f"{code.value}={n}" for code, n in counts.items() if n)
        click.echo(f"\n{len(report)} record(s): {summary or 'none'}", file=file)


def render_counts(
    counts: dict[str, int],
    fmt: OutputFormat = OutputFormat.TABLE,
    *,
    delimiter: str = ",",
    file: IO[str] | None = None,
) -> None:
    emit_rows(
        ({"name": name, "count": n} for name, n in counts.items()),
        COUNT_COLUMNS,
        fmt,
        delimiter=delimiter,
        file=file,
    )


def render_artifacts(
    items: Iterable[PackageArtifacts],
    fmt: OutputFormat = OutputFormat.TABLE,
    *,
    count: bool = False,
    delimiter: str = ",",
    file: IO[str] | None = None,
) -> None:
    """One row per listed file, or with *count* one summary row per package."""
    if count:
        rows: Iterable[dict[str, Any]] = (artifact_count_row(i) for i in items)
        columns = ARTIFACT_COUNT_COLUMNS
    else:
        rows = (row for i in items for row in artifact_rows(i))
        columns = ARTIFACT_COLUMNS
    emit_rows(rows, columns, fmt, delimiter=delimiter, file=file)
