"""``reloadforge watch`` — rebuild and restart an app whenever files change.

Scans the watch directory every interval.  On a change the running app is
killed, the pre steps run, the app is relaunched, and the post steps run.
A failing build is reported and the loop keeps going; the next save
triggers the next attempt.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from reloadforge.cli.commands._options import build_watch_config
from reloadforge.cli.render import render_config, render_snapshot
from reloadforge.config import Settings
from reloadforge.core.change_detector import ChangeDetector
from reloadforge.core.pipeline import Pipeline
from reloadforge.core.supervisor import Supervisor
from reloadforge.logging_setup import configure_logging

console = Console()


def watch_cmd(
    directory: Path = typer.Option(
        None,
        "--dir",
        "-d",
        help="Directory to watch (default: RELOADFORGE_WATCH_DIR or '.').",
    ),
    interval_ms: int = typer.Option(
        None,
        "--interval",
        "-i",
        help="Scan interval in milliseconds (default: 500).",
    ),
    pre: list[str] = typer.Option(
        None,
        "--pre",
        help="Build step run before the app starts. Repeatable, runs in order.",
    ),
    run: str = typer.Option(
        None,
        "--run",
        "-r",
        help="Command that starts the app, e.g. './server -port 8080'.",
    ),
    post: list[str] = typer.Option(
        None,
        "--post",
        help="Step run after the app has started. Repeatable, runs in order.",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (default: RELOADFORGE_LOG_LEVEL or INFO).",
    ),
    max_scans: int = typer.Option(
        None,
        "--max-scans",
        hidden=True,
        help="Stop after this many scans.",
    ),
) -> None:
    """Watch a directory and rebuild/restart the app on every change."""
    settings = Settings()
    config = build_watch_config(
        settings,
        directory=directory,
        interval_ms=interval_ms,
        pre=pre,
        run=run,
        post=post,
    )
    configure_logging(log_level or settings.effective_log_level, console=console)

    if not config.directory.is_dir():
        console.print(f"[bold red]Not a directory:[/bold red] {escape(str(config.directory))}")
        raise typer.Exit(code=1)

    if not (config.pre or config.run or config.post):
        console.print("[bold red]Nothing to do:[/bold red] give at least one --pre, --run or --post.")
        raise typer.Exit(code=1)

    console.print()
    console.print(render_config(config))
    console.print()

    supervisor = Supervisor(
        ChangeDetector(config.directory),
        Pipeline.from_config(config),
        interval=config.interval_seconds,
    )
    try:
        supervisor.run(max_iterations=max_scans)
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted, app stopped.[/dim]")

    console.print(render_snapshot(supervisor.snapshot()))
