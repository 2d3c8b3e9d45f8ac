"""
Human-readable rendering of scan reports.

Verbosity levels:
    0: errors only
    1: summary counts and errors
    2: summary, every duplicate group, deletions and errors
"""

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from capture_dedupe.core.models import DuplicateGroup, ScanOptions, ScanReport


def render_report(
    report: ScanReport,
    options: ScanOptions,
    verbosity: int = 1,
    console: Optional[Console] = None,
) -> None:
    """
    Print a scan report to the console.

    Args:
        report: Report to render
        options: Options the scan ran with (deletion and dry-run flags)
        verbosity: Output detail level (0-2)
        console: Rich console (default: a new stdout console)
    """
    console = console or Console()

    if verbosity >= 1:
        console.print(_summary_table(report, options))
        console.print()

    if verbosity >= 2:
        if not report.groups:
            console.print("[green]✓ No duplicates detected.[/green]")
        for group in report.groups:
            console.print(_group_panel(group))

        if options.delete_duplicates:
            title = "Planned deletions" if options.dry_run else "Deleted files"
            paths = report.planned_deletions if options.dry_run else report.deleted_files
            _print_path_list(console, title, paths)

    if report.errors:
        _print_path_list(console, "Errors", report.errors, style="red")


def _summary_table(report: ScanReport, options: ScanOptions) -> Table:
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", justify="right")

    stats = report.stats
    table.add_row("Scanned files", str(stats.total_files))
    table.add_row("Hashed files", str(stats.hashed_files))
    table.add_row("Duplicate groups", str(stats.duplicate_groups))
    table.add_row("Files in groups", str(stats.duplicate_files))

    if options.delete_duplicates:
        if options.dry_run:
            table.add_row("Planned deletions", str(len(report.planned_deletions)))
        else:
            table.add_row("Deletions executed", str(stats.deleted_files))

    return table


def _group_panel(group: DuplicateGroup) -> Panel:
    table = Table(show_header=True, header_style="bold cyan", box=box.SIMPLE)
    table.add_column("Display")
    table.add_column("Modified (UTC)")
    table.add_column("Path", overflow="fold")

    for info in group.files:
        table.add_row(
            escape(info.display_id),
            info.timestamp_utc.strftime("%Y-%m-%d %H:%M:%SZ"),
            escape(str(info.path)),
        )

    title = (
        f"Hash {group.hash[:16]}…  "
        f"{group.dimensions.width}x{group.dimensions.height}  "
        f"Count: {len(group.files)}"
    )
    return Panel(table, title=title, title_align="left", border_style="blue")


def _print_path_list(console: Console, title: str, items: List[str], style: str = "yellow") -> None:
    console.print(f"[bold {style}]{title}:[/bold {style}]")
    if not items:
        console.print("  [dim](none)[/dim]")
    for item in items:
        console.print(f"  {item}", markup=False, highlight=False)
    console.print()
