"""CLI entry point: sitewarden.

Subcommands:
    sitewarden scan                         # List installed packages
    sitewarden search 'num*'                # Wildcard search over installed packages
    sitewarden validate -b requirements.txt # Compare installed packages to a spec file
    sitewarden derive -o requirements.txt   # Write requirements from what is installed
    sitewarden count                        # Count interpreters, sites and packages
    sitewarden unpack -p 'requests'         # List files installed by matching packages

Exit codes: 0 success, 1 validation found error-class records, 2 scan/load failure.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import NoReturn

import click

from sitewarden.core.config import Settings
from sitewarden.core.logging import level_for_verbosity, setup_logging
from sitewarden.engines.depspec import Anchor, HttpFetcher, LinePolicy, SpecLoader, derive_specs
from sitewarden.engines.scanner import Scanner, ScanResult, unpack as unpack_packages
from sitewarden.engines.scanner.roots import discover_sites, expand_root
from sitewarden.engines.scanner.search import search as search_packages
from sitewarden.engines.validation import (
    Strictness,
    ValidationConfig,
    ValidationMode,
    Validator,
    digest,
)
from sitewarden.exceptions import ConfigError, LoadError, ParseError, ScanError
from sitewarden.render import (
    OutputFormat,
    render_artifacts,
    render_counts,
    render_packages,
    render_report,
)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2

_FORMAT_OPTION = click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TABLE.value,
    show_default=True,
    help="Output format",
)


@dataclass
class _State:
    settings: Settings
    roots: list[Path] = field(default_factory=list)
    exes: list[Path] = field(default_factory=list)
    # filled by _scan when interpreters were probed
    interpreters: list[Path] = field(default_factory=list)


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(EXIT_ERROR)


def _scan(state: _State) -> ScanResult:
    roots: list[Path] = []
    for root in state.roots:
        roots.extend(expand_root(root))
    if state.exes or not roots:
        sites = discover_sites(state.exes or None, state.settings.user_site)
        state.interpreters = list(sites)
        for site_dirs in sites.values():
            roots.extend(site_dirs)
    if not roots:
        _fail("no site directories found; pass --root or --exe")

    try:
        result = Scanner(workers=state.settings.workers).scan(roots)
    except ScanError as e:
        _fail(str(e))
    for warning in result.warnings:
        click.echo(f"warning: {warning.path}: {warning.reason}", err=True)
    return result


@click.group()
@click.option(
    "--root",
    "roots",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Site directory or environment prefix to scan (repeatable)",
)
@click.option(
    "--exe",
    "exes",
    multiple=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Scan the site directories of this interpreter (repeatable)",
)
@click.option("--user-site", is_flag=True, help="Include user site directories")
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Scanner pool size")
@click.option("-v", "--verbose", count=True, help="Verbose logging (-vv for debug)")
@click.pass_context
def main(
    ctx: click.Context,
    roots: tuple[Path, ...],
    exes: tuple[Path, ...],
    user_site: bool,
    workers: int | None,
    verbose: int,
) -> None:
    """sitewarden: discover installed Python packages and validate them against requirements."""
    try:
        setup_logging(level_for_verbosity(verbose))
        settings = Settings.from_env()
    except ConfigError as e:
        _fail(str(e))
    settings = Settings(
        workers=workers or settings.workers,
        fetch_timeout=settings.fetch_timeout,
        user_site=user_site or settings.user_site,
    )
    ctx.obj = _State(settings=settings, roots=list(roots), exes=list(exes))


@main.command("scan")
@_FORMAT_OPTION
@click.option("--delimiter", default=",", show_default=True, help="Delimiter for --format delimited")
@click.pass_obj
def scan(state: _State, output_format: str, delimiter: str) -> None:
    """List installed packages."""
    result = _scan(state)
    render_packages(result.packages.sorted(), OutputFormat(output_format), delimiter=delimiter)


@main.command("search")
@click.argument("pattern")
@click.option("--path", "match_path", is_flag=True, help="Also match against the install location")
@click.option("--case", "case_sensitive", is_flag=True, help="Case-sensitive matching")
@_FORMAT_OPTION
@click.option("--delimiter", default=",", show_default=True, help="Delimiter for --format delimited")
@click.pass_obj
def search(
    state: _State,
    pattern: str,
    match_path: bool,
    case_sensitive: bool,
    output_format: str,
    delimiter: str,
) -> None:
    """Search installed packages by wildcard pattern (e.g. 'num*')."""
    result = _scan(state)
    matches = search_packages(
        result.packages, pattern, match_path=match_path, case_sensitive=case_sensitive
    )
    render_packages(matches, OutputFormat(output_format), delimiter=delimiter)


@main.command("validate")
@click.option("-b", "--bound", required=True, help="Requirements file path or http(s) URL")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in ValidationMode]),
    default=ValidationMode.SUBSET.value,
    show_default=True,
    help="subset: declared must be installed; superset: installed must be declared; exact: both",
)
@click.option(
    "--strictness",
    type=click.Choice([s.value for s in Strictness]),
    default=Strictness.VERSION_AND_URL.value,
    show_default=True,
    help="Compare versions only, or versions plus direct/VCS URLs",
)
@click.option("--skip-invalid", is_flag=True, help="Skip unparsable lines instead of failing")
@click.option("--timeout", type=float, default=None, help="Remote fetch timeout in seconds")
@_FORMAT_OPTION
@click.option("--delimiter", default=",", show_default=True, help="Delimiter for --format delimited")
@click.option("--digest", "digest_only", is_flag=True, help="Print only the report digest")
@click.pass_obj
def validate(
    state: _State,
    bound: str,
    mode: str,
    strictness: str,
    skip_invalid: bool,
    timeout: float | None,
    output_format: str,
    delimiter: str,
    digest_only: bool,
) -> None:
    """Validate installed packages against a requirements file."""
    policy = LinePolicy.SKIP if skip_invalid else LinePolicy.ABORT
    with HttpFetcher(timeout=timeout or state.settings.fetch_timeout) as fetcher:
        try:
            loaded = SpecLoader(fetcher=fetcher, on_invalid=policy).load(bound)
        except (LoadError, ParseError) as e:
            _fail(str(e))
    for warning in loaded.warnings:
        click.echo(f"warning: skipped {warning}", err=True)

    result = _scan(state)
    config = ValidationConfig(mode=ValidationMode(mode), strictness=Strictness(strictness))
    report = Validator(config).validate(result.packages, loaded.specs)

    if digest_only:
        click.echo(digest(report))
    else:
        render_report(report, OutputFormat(output_format), delimiter=delimiter)
    sys.exit(EXIT_INVALID if report.has_errors else EXIT_OK)


@main.command("derive")
@click.option(
    "--anchor",
    type=click.Choice([a.value for a in Anchor]),
    default=Anchor.LOWER.value,
    show_default=True,
    help="lower: >=installed; upper: <=installed; exact: ==installed",
)
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_obj
def derive(state: _State, anchor: str, output: Path | None) -> None:
    """Write requirements derived from the installed packages."""
    result = _scan(state)
    text = derive_specs(result.packages, Anchor(anchor)).to_requirements_text()
    if output is None:
        click.echo(text, nl=False)
        return
    output.write_text(text)
    click.echo(f"Requirements written to {output}", err=True)


@main.command("count")
@_FORMAT_OPTION
@click.option("--delimiter", default=",", show_default=True, help="Delimiter for --format delimited")
@click.pass_obj
def count(state: _State, output_format: str, delimiter: str) -> None:
    """Count discovered interpreters, site directories and packages."""
    result = _scan(state)
    counts = {
        "interpreters": len(state.interpreters),
        "sites": len(result.roots),
        "packages": len(result.packages),
    }
    render_counts(counts, OutputFormat(output_format), delimiter=delimiter)


@main.command("unpack")
@click.option(
    "-p", "--pattern", default="*", show_default=True, help="Wildcard pattern selecting packages"
)
@click.option("--case", "case_sensitive", is_flag=True, help="Case-sensitive matching")
@click.option("--count", "count_only", is_flag=True, help="One row per package with file counts")
@_FORMAT_OPTION
@click.option("--delimiter", default=",", show_default=True, help="Delimiter for --format delimited")
@click.pass_obj
def unpack(
    state: _State,
    pattern: str,
    case_sensitive: bool,
    count_only: bool,
    output_format: str,
    delimiter: str,
) -> None:
    """List the files installed by packages, from their install records."""
    result = _scan(state)
    selected = search_packages(result.packages, pattern, case_sensitive=case_sensitive)
    found, warnings = unpack_packages(selected, workers=state.settings.workers)
    for warning in warnings:
        click.echo(f"warning: {warning.path}: {warning.reason}", err=True)
    render_artifacts(found, OutputFormat(output_format), count=count_only, delimiter=delimiter)


if __name__ == "__main__":
    main()
