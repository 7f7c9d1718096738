"""Command specification models — the external commands a pipeline runs."""

from __future__ import annotations

import shlex
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CommandSpec(BaseModel):
    """An external command: program name plus argument list.

    Build steps and the run action are both described by a ``CommandSpec``.
    ``timeout_seconds`` only applies to build steps; a run action is
    long-lived by definition and is ended by its stop handle.
    """

    model_config = ConfigDict(frozen=True)

    command: str
    args: list[str] = Field(default_factory=list)
    cwd: Path | None = None
    env: dict[str, str] = Field(default_factory=dict)  # overrides on top of os.environ
    timeout_seconds: float | None = None

    @field_validator("command")
    @classmethod
    def _command_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("command must not be empty")
        return value

    @field_validator("timeout_seconds")
    @classmethod
    def _timeout_positive(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("timeout_seconds must be positive")
        return value

    @classmethod
    def parse(cls, command_line: str, **kwargs) -> CommandSpec:
        """Build a spec from a shell-style string, e.g. ``"go build -o app ."``.

        Quoting follows POSIX shell rules (``shlex.split``); no shell is
        involved when the command later runs.
        """
        parts = shlex.split(command_line)
        if not parts:
            raise ValueError("command line must not be empty")
        return cls(command=parts[0], args=parts[1:], **kwargs)

    @property
    def argv(self) -> list[str]:
        """Full argument vector handed to ``subprocess``."""
        return [self.command, *self.args]

    @property
    def display(self) -> str:
        """Human-readable command line used in logs and error messages."""
        return " ".join([self.command, *self.args])
