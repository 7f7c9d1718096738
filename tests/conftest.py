"""Shared test fixtures for reloadforge."""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from reloadforge.core.actions import BuildStepError, RunStartError

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class RecordingStopHandle:
    """Stop handle that logs each stop() call."""

    def __init__(self, name: str, log: list[tuple[str, str]]) -> None:
        self.name = name
        self._log = log
        self.stop_calls = 0

    def stop(self) -> None:
        self.stop_calls += 1
        self._log.append(("stop", self.name))


class RecordingBuildStep:
    """Build step that logs execution and optionally fails."""

    def __init__(self, name: str, log: list[tuple[str, str]], fail: bool = False) -> None:
        self.name = name
        self._log = log
        self.fail = fail
        self.calls = 0

    def execute(self) -> None:
        self.calls += 1
        self._log.append(("execute", self.name))
        if self.fail:
            raise BuildStepError(self.name, "exit status 1")


class RecordingRunAction:
    """Run action that logs starts and hands out recording stop handles."""

    def __init__(self, name: str, log: list[tuple[str, str]], fail: bool = False) -> None:
        self.name = name
        self._log = log
        self.fail = fail
        self.handles: list[RecordingStopHandle] = []

    def start(self) -> RecordingStopHandle:
        self._log.append(("start", self.name))
        if self.fail:
            raise RunStartError(self.name, "executable file not found")
        handle = RecordingStopHandle(self.name, self._log)
        self.handles.append(handle)
        return handle

    @property
    def calls(self) -> int:
        return sum(1 for event, name in self._log if event == "start" and name == self.name)


class FakeClock:
    """Deterministic clock: ``sleep`` advances time instantly."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class ScriptedDetector:
    """Detector returning pre-scripted answers, recording each watermark."""

    def __init__(self, answers: list[bool]) -> None:
        self._answers = list(answers)
        self.queries: list[datetime] = []

    def has_changed(self, since: datetime) -> bool:
        self.queries.append(since)
        return self._answers.pop(0) if self._answers else False


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def event_log() -> list[tuple[str, str]]:
    """Ordered record of every execute/start/stop performed by test doubles."""
    return []


@pytest.fixture
def make_step(event_log: list[tuple[str, str]]) -> Callable[..., RecordingBuildStep]:
    """Factory fixture: build a RecordingBuildStep sharing the event log."""

    def _factory(name: str, fail: bool = False) -> RecordingBuildStep:
        return RecordingBuildStep(name, event_log, fail=fail)

    return _factory


@pytest.fixture
def make_run(event_log: list[tuple[str, str]]) -> Callable[..., RecordingRunAction]:
    """Factory fixture: build a RecordingRunAction sharing the event log."""

    def _factory(name: str = "app", fail: bool = False) -> RecordingRunAction:
        return RecordingRunAction(name, event_log, fail=fail)

    return _factory


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_detector() -> Callable[[list[bool]], ScriptedDetector]:
    return ScriptedDetector


@pytest.fixture
def set_mtime() -> Callable[[Path, datetime], None]:
    """Pin a path's mtime so tests never race the filesystem clock."""

    def _set(path: Path, when: datetime) -> None:
        ts = when.timestamp()
        os.utime(path, (ts, ts))

    return _set


@pytest.fixture
def base_time() -> datetime:
    """A fixed reference instant comfortably in the past."""
    return datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)
