"""reloadforge data models — all Pydantic v2, all frozen (immutable)."""

from reloadforge.models.commands import CommandSpec
from reloadforge.models.config import DEFAULT_INTERVAL_MS, WatchConfig
from reloadforge.models.supervisor import EPOCH, SupervisorPhase, SupervisorSnapshot

__all__ = [
    # commands
    "CommandSpec",
    # config
    "DEFAULT_INTERVAL_MS",
    "WatchConfig",
    # supervisor
    "EPOCH",
    "SupervisorPhase",
    "SupervisorSnapshot",
]
