"""Rich renderables for the CLI.

Color scheme
------------
- green : pipeline succeeded / app running
- red   : pipeline failed
- dim   : idle, nothing configured
"""

from __future__ import annotations

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from reloadforge.core.pipeline import PipelineResult
from reloadforge.models.commands import CommandSpec
from reloadforge.models.config import WatchConfig
from reloadforge.models.supervisor import SupervisorPhase, SupervisorSnapshot

_PHASE_STYLES: dict[SupervisorPhase, str] = {
    SupervisorPhase.RUNNING: "[green]RUNNING[/green]",
    SupervisorPhase.IDLE: "[dim]IDLE[/dim]",
}


def _steps(specs: list[CommandSpec]) -> str:
    if not specs:
        return "[dim](none)[/dim]"
    return "\n".join(f"{i}. {escape(spec.display)}" for i, spec in enumerate(specs, start=1))


def render_config(config: WatchConfig, *, title: str = "reloadforge") -> Panel:
    """Panel describing what is watched and what runs on change."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Watching", str(config.directory.resolve()))
    table.add_row("Interval", f"{config.interval_ms} ms")
    table.add_row("Pre", _steps(config.pre))
    table.add_row("Run", escape(config.run.display) if config.run else "[dim](none)[/dim]")
    table.add_row("Post", _steps(config.post))

    return Panel(
        table,
        title=f"[bold]{title}[/bold]",
        subtitle="[dim]Ctrl+C to stop[/dim]",
        border_style="cyan",
        padding=(1, 2),
    )


def render_result(result: PipelineResult) -> Panel:
    """Panel summarizing one pipeline execution."""
    if result.ok:
        body = "[bold green]Pipeline succeeded.[/bold green]"
        if result.stop is None:
            body += "\n[dim]No run action configured; nothing left running.[/dim]"
        return Panel(body, border_style="green", padding=(0, 2))

    error = result.error
    phase = getattr(error, "phase", None) or "unknown"
    lines = [
        "[bold red]Pipeline failed.[/bold red]",
        "",
        f"[bold]Phase:[/bold]  {phase}",
        f"[bold]Error:[/bold]  {escape(str(error))}",
    ]
    return Panel("\n".join(lines), border_style="red", padding=(0, 2))


def render_snapshot(snapshot: SupervisorSnapshot) -> Table:
    """One-row status table for a supervisor snapshot."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("State", justify="center")
    table.add_column("Builds", justify="right")
    table.add_column("Failures", justify="right")
    table.add_column("Last build")
    table.add_column("Last error")

    last_build = (
        snapshot.watermark.astimezone().strftime("%H:%M:%S") if snapshot.has_built else "-"
    )
    table.add_row(
        _PHASE_STYLES[snapshot.phase],
        str(snapshot.build_count),
        str(snapshot.failure_count),
        last_build,
        escape(snapshot.last_error or "-"),
    )
    return table
