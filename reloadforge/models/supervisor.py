"""Supervisor state models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict

# Watermark before the first build; every real file postdates it, so the
# first scan of a non-empty tree triggers an initial build.
EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class SupervisorPhase(str, Enum):
    """The two states of the watch loop."""

    IDLE = "idle"  # nothing running: never started, or last attempt failed
    RUNNING = "running"  # a stop handle is held


class SupervisorSnapshot(BaseModel):
    """Read-only view of the supervisor, for display."""

    model_config = ConfigDict(frozen=True)

    phase: SupervisorPhase
    watermark: datetime
    build_count: int = 0
    failure_count: int = 0
    last_error: str | None = None

    @property
    def has_built(self) -> bool:
        return self.build_count > 0
