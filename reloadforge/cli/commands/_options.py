"""Shared option handling for CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from reloadforge.config import Settings
from reloadforge.models.commands import CommandSpec
from reloadforge.models.config import WatchConfig


def parse_command(command_line: str, option: str) -> CommandSpec:
    """Parse one ``--pre/--run/--post`` value, mapping errors to BadParameter."""
    try:
        return CommandSpec.parse(command_line)
    except ValueError as exc:
        raise typer.BadParameter(f"{command_line!r}: {exc}", param_hint=option) from exc


def build_watch_config(
    settings: Settings,
    *,
    directory: Path | None,
    interval_ms: int | None,
    pre: list[str] | None,
    run: str | None,
    post: list[str] | None,
) -> WatchConfig:
    """Merge CLI options over environment settings into a ``WatchConfig``."""
    try:
        return WatchConfig(
            directory=directory if directory is not None else settings.watch_dir,
            interval_ms=interval_ms if interval_ms is not None else settings.interval_ms,
            pre=[parse_command(c, "--pre") for c in pre or []],
            run=parse_command(run, "--run") if run else None,
            post=[parse_command(c, "--post") for c in post or []],
        )
    except ValidationError as exc:
        raise typer.BadParameter(
            "; ".join(err["msg"] for err in exc.errors())
        ) from exc
