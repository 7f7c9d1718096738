"""``reloadforge scan`` — report whether a tree changed recently.

Runs one change-detection pass with a watermark of ``--since`` seconds ago
and prints ``changed`` or ``unchanged``.  Handy for checking which files a
watch would react to, and for spotting unreadable entries.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from reloadforge.config import Settings
from reloadforge.core.change_detector import ChangeDetector

console = Console()


def scan_cmd(
    directory: Path = typer.Option(
        None,
        "--dir",
        "-d",
        help="Directory to scan (default: RELOADFORGE_WATCH_DIR or '.').",
    ),
    since: float = typer.Option(
        2.0,
        "--since",
        "-s",
        min=0.0,
        help="Look for modifications within this many seconds.",
    ),
) -> None:
    """Check once whether any file under a directory changed recently."""
    root = directory if directory is not None else Settings().watch_dir
    if not root.is_dir():
        console.print(f"[bold red]Not a directory:[/bold red] {escape(str(root))}")
        raise typer.Exit(code=1)

    detector = ChangeDetector(root)
    watermark = datetime.now(timezone.utc) - timedelta(seconds=since)
    changed = detector.has_changed(watermark)

    console.print("[bold yellow]changed[/bold yellow]" if changed else "[green]unchanged[/green]")
    if detector.last_errors:
        console.print(f"[dim]{len(detector.last_errors)} entries could not be read:[/dim]")
        for err in detector.last_errors:
            console.print(f"  {escape(str(err))}", style="dim", highlight=False)
