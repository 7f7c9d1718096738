"""``reloadforge once`` — run the pipeline a single time.

Useful as a "does it build and launch" check, e.g. in CI: the pre steps
run, the app is launched, the post steps run, and the app is then stopped
(after ``--hold`` seconds).  Exits non-zero if any phase failed.
"""

from __future__ import annotations

import time

import typer
from rich.console import Console

from reloadforge.cli.commands._options import build_watch_config
from reloadforge.cli.render import render_result
from reloadforge.config import Settings
from reloadforge.core.pipeline import Pipeline
from reloadforge.logging_setup import configure_logging

console = Console()


def once_cmd(
    pre: list[str] = typer.Option(
        None,
        "--pre",
        help="Build step run before the app starts. Repeatable, runs in order.",
    ),
    run: str = typer.Option(
        None,
        "--run",
        "-r",
        help="Command that starts the app.",
    ),
    post: list[str] = typer.Option(
        None,
        "--post",
        help="Step run after the app has started. Repeatable, runs in order.",
    ),
    hold: float = typer.Option(
        0.0,
        "--hold",
        min=0.0,
        help="Seconds to keep the app running before stopping it.",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (default: RELOADFORGE_LOG_LEVEL or INFO).",
    ),
) -> None:
    """Run pre steps, start the app, run post steps, then stop the app."""
    settings = Settings()
    config = build_watch_config(
        settings,
        directory=None,
        interval_ms=None,
        pre=pre,
        run=run,
        post=post,
    )
    configure_logging(log_level or settings.effective_log_level, console=console)

    result = Pipeline.from_config(config).execute()
    console.print(render_result(result))

    if not result.ok:
        raise typer.Exit(code=1)

    if result.stop is not None:
        try:
            if hold:
                time.sleep(hold)
        finally:
            result.stop.stop()
