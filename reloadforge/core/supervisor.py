"""Supervisor — the polling control loop.

The Supervisor owns the only mutable state of a watch session: the
watermark of the last pipeline attempt and the stop handle of the running
app.  It is driven by a single thread, either one ``step()`` at a time
(tests, ``reloadforge once``) or by ``run()``, which alternates ``step()``
and a sleep of one scan interval.

State machine
-------------
IDLE     no app running (never built, or the last attempt failed)
RUNNING  a stop handle is held

On a detected change the running app (if any) is stopped, the pipeline is
executed, and the watermark moves to the time the pipeline finished,
whatever the outcome.  A failing build is therefore not retried on every
tick; the next edit is the retry.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from reloadforge.core.actions import StopHandle
from reloadforge.core.pipeline import PipelineResult
from reloadforge.models.supervisor import EPOCH, SupervisorPhase, SupervisorSnapshot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Clock(Protocol):
    """Time source and sleeper, injectable so tests never wait."""

    def now(self) -> datetime:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Wall-clock time in UTC and a real ``time.sleep``."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class Detector(Protocol):
    def has_changed(self, since: datetime) -> bool:
        ...


class Executable(Protocol):
    def execute(self) -> PipelineResult:
        ...


# ---------------------------------------------------------------------------
# Supervisor
# ---------------------------------------------------------------------------


class Supervisor:
    """Watches for changes and rebuilds/restarts the app.

    Parameters
    ----------
    detector:
        Answers "did anything change since <watermark>?".
    pipeline:
        Executed once per detected change.
    interval:
        Seconds to sleep between scans in ``run()``.
    clock:
        Time source; defaults to ``SystemClock``.
    """

    def __init__(
        self,
        detector: Detector,
        pipeline: Executable,
        *,
        interval: float = 0.5,
        clock: Clock | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._detector = detector
        self._pipeline = pipeline
        self._interval = interval
        self._clock = clock or SystemClock()

        self._watermark: datetime = EPOCH
        self._stop: StopHandle | None = None

        self._build_count = 0
        self._failure_count = 0
        self._last_error: str | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SupervisorPhase:
        return SupervisorPhase.RUNNING if self._stop is not None else SupervisorPhase.IDLE

    @property
    def watermark(self) -> datetime:
        return self._watermark

    def snapshot(self) -> SupervisorSnapshot:
        """Return an immutable view of the current state."""
        return SupervisorSnapshot(
            phase=self.phase,
            watermark=self._watermark,
            build_count=self._build_count,
            failure_count=self._failure_count,
            last_error=self._last_error,
        )

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def step(self) -> PipelineResult | None:
        """Perform one scan, rebuilding if anything changed.

        Returns the pipeline result, or ``None`` when nothing changed.
        Pipeline failures are logged and returned, never raised.
        """
        if not self._detector.has_changed(self._watermark):
            return None

        self._stop_running()

        logger.info("building & running app")
        result = self._pipeline.execute()
        self._watermark = self._clock.now()
        self._build_count += 1

        if result.ok:
            self._stop = result.stop
            self._last_error = None
        else:
            self._failure_count += 1
            self._last_error = str(result.error)
            logger.error("error running: %s", result.error)

        return result

    def run(self, max_iterations: int | None = None) -> None:
        """Poll forever, or for *max_iterations* scans.

        The running app is stopped when the loop exits for any reason,
        including ``KeyboardInterrupt``.
        """
        iterations = 0
        try:
            while max_iterations is None or iterations < max_iterations:
                self.step()
                iterations += 1
                self._clock.sleep(self._interval)
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Stop the running app, if any, and return to IDLE."""
        self._stop_running()

    def _stop_running(self) -> None:
        if self._stop is None:
            return
        logger.info("stopping running app")
        stop, self._stop = self._stop, None
        stop.stop()

    def __repr__(self) -> str:
        return f"<Supervisor phase={self.phase.value} builds={self._build_count}>"
