"""Main Typer application — imports and registers all CLI commands.

Entry point: ``reloadforge`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import typer

from reloadforge import __description__, __version__
from reloadforge.cli.commands.once import once_cmd
from reloadforge.cli.commands.scan import scan_cmd
from reloadforge.cli.commands.watch import watch_cmd

app = typer.Typer(
    name="reloadforge",
    help=__description__,
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="watch", help="Watch a directory and rebuild/restart on change.")(watch_cmd)
app.command(name="once", help="Run the build/run pipeline a single time.")(once_cmd)
app.command(name="scan", help="Report whether a directory changed recently.")(scan_cmd)


@app.command(name="version", help="Show the reloadforge version.")
def version_cmd() -> None:
    """Print the installed version."""
    typer.echo(f"reloadforge {__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
