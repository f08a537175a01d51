# app/cli.py
"""
jarscope command line front end.

Examples:
    jarscope -c Util -d /opt/app
    jarscope -C Exception --mini
    jarscope -p com.example -e /test/ -e /build/
    jarscope -s "jdbc:[a-z]+" -j 16
    jarscope -m password --export hits.csv --json report.json
    jarscope --list -d /opt/app/lib

Exit codes:
    0  search completed (with or without hits)
    2  usage error / no operation selected
    3  invalid pattern
    4  search root missing or unreadable
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from core.errors import InvalidPattern, PathAccessError
from core.models import ArchiveSummary, ScanReport, SearchMode
from infra.config_loader import load_config
from infra.exporters import HitsCsvWriter, JsonScanReportWriter
from infra.logging_config import configure_logging
from matchers.patterns import build_search_spec
from services.inventory import list_archives
from services.orchestrator import Orchestrator

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_INVALID_PATTERN = 3
EXIT_ROOT_INACCESSIBLE = 4

_logger = logging.getLogger("app.cli")

# flag dest -> search mode
_MODE_FLAGS = {
    "exact_class": SearchMode.EXACT,
    "class_contains": SearchMode.SUBSTRING,
    "package": SearchMode.PACKAGE,
    "search": SearchMode.CONTENT,
    "master": SearchMode.MASTER,
}


def build_parser(cfg: dict) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="jarscope",
        description="Parallel search through jar/zip/war/ear archives, class files and text files.",
    )
    ops = p.add_mutually_exclusive_group()
    ops.add_argument("-c", "--class", dest="exact_class", metavar="CLASS_NAME",
                     help="Find a class by exact simple or fully qualified name")
    ops.add_argument("-C", "--class-contains", dest="class_contains", metavar="PATTERN",
                     help="Find classes whose name contains PATTERN (regex if it looks like one)")
    ops.add_argument("-p", "--package", dest="package", metavar="PACKAGE",
                     help="Find classes under a package prefix (dots or slashes)")
    ops.add_argument("-s", "--search", dest="search", metavar="REGEX",
                     help="Regex over strings carved from class bytecode")
    ops.add_argument("-m", "--master", dest="master", metavar="REGEX",
                     help="Regex over everything: file names, text lines and binary strings")
    ops.add_argument("--list", action="store_true", help="List archives with class/java/file counts")

    p.add_argument("-d", "--dir", default=".", help="Directory to search (default: current)")
    p.add_argument("-e", "--exclude", action="append", default=None, metavar="SUBSTRING",
                   help="Skip paths containing SUBSTRING (repeatable)")
    p.add_argument("--mini", action="store_true", help="Only list the files that have matches")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("--min-size", type=int, default=cfg.get("min_size", 0), metavar="BYTES",
                   help="Skip filesystem files smaller than BYTES")
    p.add_argument("-j", "--jobs", type=int, default=cfg.get("jobs", 0),
                   help="Worker threads (0 = one per CPU)")
    p.add_argument("--max-depth", type=int, default=cfg.get("max_depth", 8),
                   help="Maximum nested archive depth")
    p.add_argument("--export", metavar="FILE", help="Write hits to a CSV file")
    p.add_argument("--json", metavar="FILE", help="Write the full report as JSON")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    cfg = load_config()
    parser = build_parser(cfg)
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        # argparse exits 2 on usage errors and 0 on --help
        return int(exc.code or 0)

    configure_logging("DEBUG" if args.verbose else cfg.get("log_level", "INFO"), cfg.get("log_dir") or None)
    console = Console(highlight=False)
    exclusions = args.exclude if args.exclude is not None else cfg.get("exclusions", [])

    if args.list:
        try:
            summaries = list_archives(args.dir, exclusions=exclusions, min_size=max(0, args.min_size))
        except PathAccessError as exc:
            console.print(f"[red]ERROR[/red] {escape(str(exc))}")
            return EXIT_ROOT_INACCESSIBLE
        print_inventory(console, summaries, args.dir)
        return EXIT_OK

    selected = [(dest, mode) for dest, mode in _MODE_FLAGS.items() if getattr(args, dest) is not None]
    if not selected:
        parser.print_usage(sys.stderr)
        console.print("[red]ERROR[/red] No operation selected; use one of -c, -C, -p, -s, -m or --list")
        return EXIT_USAGE
    dest, mode = selected[0]
    _logger.debug("Parsed arguments: %s", vars(args))

    try:
        spec = build_search_spec(
            mode,
            getattr(args, dest),
            exclusions=exclusions,
            min_size=args.min_size,
            mini=args.mini,
            job_count=args.jobs,
            max_depth=args.max_depth,
            min_string_length=cfg.get("min_string_length", 4),
            carve_include_tab=cfg.get("carve_include_tab", True),
        )
    except InvalidPattern as exc:
        console.print(f"[red]ERROR[/red] {escape(str(exc))}")
        return EXIT_INVALID_PATTERN
    except ValueError as exc:
        console.print(f"[red]ERROR[/red] {escape(str(exc))}")
        return EXIT_USAGE

    console.print(f"[blue]INFO[/blue] Searching {escape(args.dir)} ({mode.value} mode, {spec.job_count} jobs)")
    try:
        report = Orchestrator(spec, batch_size=cfg.get("batch_size", 256)).run_scan(args.dir)
    except PathAccessError as exc:
        console.print(f"[red]ERROR[/red] {escape(str(exc))}")
        return EXIT_ROOT_INACCESSIBLE

    print_results(console, report)
    print_stats(console, report)

    if args.export:
        HitsCsvWriter(args.export).write(report)
        console.print(f"[green]SUCCESS[/green] Results exported to {escape(args.export)}")
    if args.json:
        JsonScanReportWriter(args.json).write(report)
        console.print(f"[green]SUCCESS[/green] Report written to {escape(args.json)}")
    return EXIT_OK


# ----------------- rendering -----------------

def print_results(console: Console, report: ScanReport) -> None:
    hits = report.hits
    mini = bool(report.header.config_snapshot.get("mini"))
    if not hits:
        console.print("[yellow]RESULT[/yellow] No matches found")
        return

    label = "unique files with matches" if mini else "matches"
    console.print(f"\n[bold green]RESULTS[/bold green] Found {len(hits)} {label}")
    console.rule(style="cyan")
    for i, h in enumerate(hits, 1):
        path = escape(h.display_path)
        if mini:
            console.print(f"{i:>3}. [green]{path}[/green]", soft_wrap=True)
        elif h.line_number is not None:
            console.print(f"{i:>3}. [green]{path}[/green] [cyan]line[/cyan] [yellow]{h.line_number}[/yellow]", soft_wrap=True)
            console.print(f"     [magenta]{escape(h.kind_tag)}[/magenta]: {escape(h.excerpt)}", soft_wrap=True)
        else:
            console.print(f"{i:>3}. [green]{path}[/green] [magenta]{escape(h.kind_tag)}[/magenta]: {escape(h.excerpt)}", soft_wrap=True)


def print_stats(console: Console, report: ScanReport) -> None:
    s = report.stats
    snap = report.header.config_snapshot
    mini = bool(snap.get("mini"))

    table = Table(title="Search statistics", box=box.SIMPLE, show_header=False)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")
    table.add_row("JAR files scanned", str(s.jar_files))
    table.add_row("ZIP files scanned", str(s.zip_files))
    table.add_row("Class files found", str(s.class_files))
    table.add_row("Java files found", str(s.java_files))
    table.add_row("Other files found", str(s.config_files + s.script_files + s.markup_files + s.text_files + s.other_files))
    table.add_row("Total files processed", str(s.total_files))
    if mini:
        table.add_row("Unique files w/ matches", f"[green]{s.unique_files}[/green]")
        table.add_row("Total matches found", f"[yellow]{s.total_hits}[/yellow]")
    else:
        table.add_row("Matches found", f"[green]{s.total_hits}[/green]")
    table.add_row("Skipped", f"[red]{s.skipped}[/red]" if s.skipped else "0")
    table.add_row("Elapsed time", f"{s.elapsed_seconds:.2f}s")
    if s.elapsed_seconds > 0:
        table.add_row("Files/second", f"{s.total_files / s.elapsed_seconds:.2f}")
        table.add_row("Classes/second", f"{s.class_files / s.elapsed_seconds:.2f}")
    table.add_row("Parallel jobs", str(s.jobs))
    table.add_row("Mode", "Mini (unique files)" if mini else "Full")
    exclusions: List[str] = snap.get("exclusions", [])
    if exclusions:
        table.add_row("Exclusions", f"[red]{len(exclusions)}[/red]")
        for e in exclusions:
            table.add_row("", f"[red]{escape(e)}[/red]")
    console.print(table)


def print_inventory(console: Console, summaries: List[ArchiveSummary], root: str) -> None:
    if not summaries:
        console.print(f"[red]ERROR[/red] No archives found in {escape(str(root))}")
        return

    console.print(f"[blue]INFO[/blue] Found {len(summaries)} archive(s)")
    table = Table(title="Archive report", box=box.SIMPLE)
    table.add_column("Archive", style="white", overflow="fold")
    table.add_column("Classes", justify="right")
    table.add_column("Java", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Size (MB)", justify="right")

    classes = java = files = size = 0
    for s in summaries:
        name = escape(s.path.name)
        if s.error:
            table.add_row(name, "-", "-", "-", f"{s.size_bytes / (1024 * 1024):.2f}")
        else:
            table.add_row(name, str(s.class_count), str(s.java_count), str(s.file_count),
                          f"{s.size_bytes / (1024 * 1024):.2f}")
        classes += s.class_count
        java += s.java_count
        files += s.file_count
        size += s.size_bytes
    table.add_section()
    table.add_row("TOTAL", str(classes), str(java), str(files), f"{size / (1024 * 1024):.2f}", style="bold")
    console.print(table)


if __name__ == "__main__":
    sys.exit(main())
