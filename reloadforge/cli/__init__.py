"""reloadforge CLI — Typer-based command-line interface.

Provides the ``reloadforge`` command with subcommands for watching a tree
and restarting an app on change, running the pipeline once, and checking
a tree for recent changes.

All output uses Rich for formatted terminal display.
"""
