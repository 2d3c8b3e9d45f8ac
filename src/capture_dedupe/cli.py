"""Command-line interface for capture-dedupe."""

import json
import logging
import os
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from capture_dedupe import __version__
from capture_dedupe.core.detector import DuplicateScanner
from capture_dedupe.core.models import KeepStrategy
from capture_dedupe.ui.report import render_report
from capture_dedupe.utils.config import Config
from capture_dedupe.utils.logger import set_log_level, setup_logger

console = Console()
logger = setup_logger(__name__)

EXIT_OK = 0
EXIT_SCAN_ERRORS = 2


def normalize_root(root: str) -> str:
    """Trim whitespace, a trailing ``*`` and trailing path separators."""
    trimmed = root.strip().rstrip("*")
    stripped = trimmed.rstrip("/\\" if os.sep == "\\" else "/")
    return stripped or trimmed


def parse_extensions(value: Optional[str]) -> Optional[tuple]:
    """Split a comma-separated extension list; None when not given."""
    if value is None:
        return None
    parts = [p.strip() for p in value.split(",") if p.strip()]
    return tuple(p if p.startswith(".") else f".{p}" for p in parts)


@click.group()
@click.version_option(version=__version__, prog_name="capture-dedupe")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write debug logs to this file",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ~/.capture-dedupe/config.json)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_file: Optional[Path], config_file: Optional[Path]) -> None:
    """
    capture-dedupe - Find pixel-identical screenshots across display folders.

    Groups screenshots whose decoded pixels match exactly and can remove the
    redundant copies, always keeping one file per display.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file

    if verbose or log_file:
        set_log_level(logging.DEBUG if verbose else logging.INFO, log_file=log_file)


@cli.command()
@click.option("--root", "-r", required=True, help="Root folder containing Display_* subfolders")
@click.option("--pattern", "-p", help="Display folder pattern (default: from config)")
@click.option(
    "--include-ext",
    "-e",
    help="Comma-separated extensions to scan (default: from config)",
)
@click.option(
    "--manifest",
    "manifest_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Enable the hash cache, stored at this path",
)
@click.option(
    "--use-manifest",
    is_flag=True,
    help="Enable the hash cache at its default location inside the root",
)
@click.option(
    "--max-parallel",
    type=click.IntRange(min=1),
    help="Limit hashing concurrency (default: CPU count)",
)
@click.option("--delete-duplicates", is_flag=True, help="Delete duplicates, keeping one per display")
@click.option(
    "--keep",
    type=click.Choice(["newest", "oldest"], case_sensitive=False),
    help="Which file to keep per display (default: from config)",
)
@click.option("--dry-run", is_flag=True, help="Show planned deletions without deleting")
@click.option(
    "--recycle-bin/--permanent",
    default=None,
    help="Move deleted files to the recycle bin (default: from config)",
)
@click.option("--json", "output_json", is_flag=True, help="Output the full report as JSON")
@click.option(
    "--verbosity",
    "-V",
    type=click.IntRange(min=0, max=2),
    help="Report detail: 0=errors only, 1=summary, 2=full",
)
@click.option(
    "--show-progress/--no-progress",
    default=True,
    help="Show progress bars",
)
@click.pass_context
def scan(
    ctx: click.Context,
    root: str,
    pattern: Optional[str],
    include_ext: Optional[str],
    manifest_path: Optional[Path],
    use_manifest: bool,
    max_parallel: Optional[int],
    delete_duplicates: bool,
    keep: Optional[str],
    dry_run: bool,
    recycle_bin: Optional[bool],
    output_json: bool,
    verbosity: Optional[int],
    show_progress: bool,
) -> None:
    """
    Scan display folders for pixel-identical images.

    Exits with status 2 when the report contains errors.

    Example:
        capture-dedupe scan --root "D:\\Captures" --delete-duplicates --dry-run
    """
    config = Config(ctx.obj.get("config_file"))

    options = config.scan_options(
        normalize_root(root),
        display_pattern=pattern,
        extensions=parse_extensions(include_ext),
        use_manifest=bool(manifest_path) or use_manifest,
        manifest_path=manifest_path,
        max_parallelism=max_parallel,
        delete_duplicates=delete_duplicates,
        keep_strategy=keep,
        dry_run=dry_run,
        use_recycle_bin=recycle_bin,
    )

    logger.debug(f"Scan options: {options}")

    scanner = DuplicateScanner(show_progress=show_progress and not output_json)
    report = scanner.scan(options)

    if output_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        if verbosity is None:
            verbosity = int(config.get("report.verbosity", 1))
        render_report(report, options, verbosity=verbosity, console=console)

    ctx.exit(EXIT_OK if not report.errors else EXIT_SCAN_ERRORS)


@cli.group(name="config")
def config_group() -> None:
    """View or change stored defaults."""


@config_group.command(name="show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the current configuration."""
    config = Config(ctx.obj.get("config_file"))

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in sorted(config.settings.items()):
        table.add_row(key, escape(json.dumps(value)))

    console.print(f"[dim]{escape(str(config.config_file))}[/dim]")
    console.print(table)


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """
    Store a setting. VALUE is parsed as JSON when possible.

    Example:
        capture-dedupe config set keep_strategy oldest
    """
    config = Config(ctx.obj.get("config_file"))

    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value

    if key == "keep_strategy":
        try:
            parsed = KeepStrategy.parse(parsed).value
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="VALUE")

    config.set(key, parsed)
    console.print(f"[green]✓ {escape(key)} = {escape(json.dumps(parsed))}[/green]")


def main() -> None:
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
