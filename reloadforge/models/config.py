"""Watch configuration model — the fully resolved input of the engine."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from reloadforge.models.commands import CommandSpec

DEFAULT_INTERVAL_MS = 500


class WatchConfig(BaseModel):
    """What to watch and what to do when it changes.

    ``pre`` steps run in order before ``run`` is launched, ``post`` steps
    run in order after it.  ``run`` may be omitted for build-only setups.
    """

    model_config = ConfigDict(frozen=True)

    directory: Path = Path(".")
    interval_ms: int = Field(default=DEFAULT_INTERVAL_MS, gt=0)
    pre: list[CommandSpec] = Field(default_factory=list)
    run: CommandSpec | None = None
    post: list[CommandSpec] = Field(default_factory=list)

    @property
    def interval_seconds(self) -> float:
        """Scan interval expressed in seconds, as ``time.sleep`` expects."""
        return self.interval_ms / 1000.0
