"""Adversarial tests — no orphaned processes, ever.

These tests verify with real subprocesses that:
1. A post-step failure kills the app that was just started
2. A run-start failure leaves nothing behind
3. A restart kills the previous app before the new one is launched
4. Stopping the app also kills processes it spawned (POSIX)
5. Interrupting the watch loop kills the app
"""

from __future__ import annotations

import os
import sys
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest

from reloadforge.core.actions import (
    CommandBuildAction,
    CommandRunAction,
    ProcessStopHandle,
    RunStartError,
)
from reloadforge.core.pipeline import Pipeline, PipelinePostFailure, run_pipeline
from reloadforge.core.supervisor import Supervisor
from reloadforge.models.commands import CommandSpec

PY = sys.executable
SLEEPER = CommandSpec(command=PY, args=["-c", "import time; time.sleep(60)"])
FAILING = CommandSpec(command=PY, args=["-c", "import sys; sys.exit(1)"])
OK = CommandSpec(command=PY, args=["-c", "pass"])


class CapturingRun:
    """Wraps a CommandRunAction and keeps every handle it hands out."""

    def __init__(self, spec: CommandSpec) -> None:
        self._inner = CommandRunAction(spec)
        self.handles: list[ProcessStopHandle] = []

    def start(self) -> ProcessStopHandle:
        handle = self._inner.start()
        self.handles.append(handle)
        return handle


def _alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    stat = Path(f"/proc/{pid}/stat")
    if stat.exists():
        # Zombies awaiting reaping by init count as dead.
        state = stat.read_text().rsplit(")", 1)[1].split()[0]
        return state not in ("Z", "X")
    return True


def _wait_until(predicate, timeout: float = 10.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


class TestPipelineNeverOrphans:
    """A failing pipeline must never leave its app running."""

    def test_post_failure_kills_started_app(self):
        run = CapturingRun(SLEEPER)
        with pytest.raises(PipelinePostFailure):
            run_pipeline([CommandBuildAction(OK)], run, [CommandBuildAction(FAILING)])

        assert len(run.handles) == 1
        assert run.handles[0].stopped is True
        assert run.handles[0].running is False

    def test_post_failure_result_carries_no_handle(self):
        run = CapturingRun(SLEEPER)
        result = Pipeline([], run, [CommandBuildAction(OK), CommandBuildAction(FAILING)]).execute()
        assert result.stop is None
        assert run.handles[0].running is False

    def test_pre_failure_never_launches(self):
        run = CapturingRun(SLEEPER)
        result = Pipeline([CommandBuildAction(FAILING)], run, []).execute()
        assert not result.ok
        assert run.handles == []

    def test_run_start_failure_leaves_nothing(self):
        run = CapturingRun(CommandSpec(command="reloadforge-no-such-binary-4f1c"))
        with pytest.raises(RunStartError):
            run_pipeline([], run, [CommandBuildAction(OK)])
        assert run.handles == []


class TestSupervisorNeverOrphans:
    """Restarts, failures and interrupts must never leave an app running."""

    class _Always:
        def has_changed(self, since) -> bool:
            return True

    def test_restart_kills_previous_app(self):
        """The previous app must be dead before the next one runs."""
        run = CapturingRun(SLEEPER)
        sup = Supervisor(self._Always(), Pipeline(run=run), interval=0.01)
        try:
            sup.step()
            sup.step()
            first, second = run.handles
            assert first.running is False
            assert second.running is True
        finally:
            sup.shutdown()
        assert run.handles[1].running is False

    def test_failed_rebuild_leaves_nothing_running(self, tmp_path: Path):
        flag = tmp_path / "broken"
        build = CommandSpec(
            command=PY,
            args=["-c", "import os, sys; sys.exit(1 if os.path.exists(sys.argv[1]) else 0)", str(flag)],
        )
        run = CapturingRun(SLEEPER)
        sup = Supervisor(self._Always(), Pipeline([CommandBuildAction(build)], run, []), interval=0.01)
        try:
            sup.step()
            flag.touch()
            result = sup.step()
            assert result is not None and not result.ok
            assert all(not h.running for h in run.handles)
        finally:
            sup.shutdown()

    def test_interrupt_kills_app(self):
        class InterruptAfterFirstScan:
            def now(self):
                return datetime.now(timezone.utc)

            def sleep(self, seconds: float) -> None:
                raise KeyboardInterrupt

        run = CapturingRun(SLEEPER)
        sup = Supervisor(self._Always(), Pipeline(run=run), interval=0.01, clock=InterruptAfterFirstScan())
        with pytest.raises(KeyboardInterrupt):
            sup.run()
        assert run.handles[0].running is False


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="process groups + /proc")
class TestProcessGroupKill:
    """stop() must kill the app's children too."""

    def test_stop_kills_grandchildren(self, tmp_path: Path):
        pid_file = tmp_path / "child.pid"
        wrapper = (
            "import subprocess, sys, time\n"
            "child = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(60)'])\n"
            "open(sys.argv[1], 'w').write(str(child.pid))\n"
            "time.sleep(60)\n"
        )
        handle = CommandRunAction(CommandSpec(command=PY, args=["-c", wrapper, str(pid_file)])).start()
        try:
            assert _wait_until(lambda: pid_file.exists() and pid_file.read_text().strip() != "")
            child_pid = int(pid_file.read_text())
            assert _alive(child_pid)
        finally:
            handle.stop()

        assert _wait_until(lambda: not _alive(child_pid))
