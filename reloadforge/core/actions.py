"""Build and run actions — the units of work a pipeline sequences.

Defines the ``BuildAction``, ``RunAction`` and ``StopHandle`` Protocols that
pipeline steps must satisfy, plus the concrete adapters shipped with
reloadforge:

1. **CommandBuildAction** — run an external command to completion.
2. **CommandRunAction** — launch an external command in the background and
   hand back a ``ProcessStopHandle`` that kills it.
3. **CallableBuildAction** — wrap an in-process callable (copying assets,
   rendering templates, ...) as a build step.

Any object with the right method satisfies the Protocols, which is how the
tests plug in recording doubles.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from reloadforge.models.commands import CommandSpec

logger = logging.getLogger(__name__)

# Upper bound on waiting for a killed process to be reaped.
REAP_TIMEOUT_SECONDS = 5.0


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class PipelineError(RuntimeError):
    """Base class for failures of a single pipeline execution.

    ``phase`` is one of ``"pre"``, ``"run"`` or ``"post"`` once the pipeline
    has seen the error; ``index`` is the position of the failing step
    within its phase (``None`` for the run action).
    """

    phase: str | None = None
    index: int | None = None


class BuildStepError(PipelineError):
    """A build step failed: nonzero exit, launch failure, or timeout."""

    def __init__(self, command: str, cause: BaseException | str) -> None:
        self.command = command
        self.cause = cause
        super().__init__(f'error building: "{command}": {cause}')


class RunStartError(PipelineError):
    """The run action could not be launched.  Nothing is left running."""

    phase = "run"

    def __init__(self, command: str, cause: BaseException | str) -> None:
        self.command = command
        self.cause = cause
        super().__init__(f'error running: "{command}": {cause}')


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class StopHandle(Protocol):
    """Single-use capability that terminates a started process."""

    def stop(self) -> None:
        """Forcibly terminate the process.  Call at most once."""
        ...


@runtime_checkable
class BuildAction(Protocol):
    """Protocol for synchronous build steps.

    ``execute()`` blocks until the step completes and raises
    ``BuildStepError`` on failure.  Steps are stateless between calls and
    may be executed any number of times.
    """

    def execute(self) -> None:
        ...


@runtime_checkable
class RunAction(Protocol):
    """Protocol for long-running processes.

    ``start()`` returns as soon as the process is launched, not when it
    exits, and raises ``RunStartError`` if it could not be launched.
    """

    def start(self) -> StopHandle:
        ...


# ---------------------------------------------------------------------------
# Command adapters
# ---------------------------------------------------------------------------


def _child_env(spec: CommandSpec) -> dict[str, str] | None:
    if not spec.env:
        return None
    return {**os.environ, **spec.env}


class CommandBuildAction:
    """Runs an external command to completion.

    stdout and stderr are inherited so build output lands on the
    developer's terminal.  Reusable: every ``execute()`` spawns a fresh
    process.
    """

    def __init__(self, spec: CommandSpec) -> None:
        self.spec = spec

    @classmethod
    def from_command(cls, command: str, *args: str) -> CommandBuildAction:
        return cls(CommandSpec(command=command, args=list(args)))

    def execute(self) -> None:
        logger.debug("Building: %s", self.spec.display)
        try:
            subprocess.run(
                self.spec.argv,
                cwd=self.spec.cwd,
                env=_child_env(self.spec),
                timeout=self.spec.timeout_seconds,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            raise BuildStepError(self.spec.display, f"exit status {exc.returncode}") from exc
        except subprocess.TimeoutExpired as exc:
            raise BuildStepError(
                self.spec.display, f"timed out after {exc.timeout:g}s"
            ) from exc
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            raise BuildStepError(self.spec.display, exc) from exc

    def __repr__(self) -> str:
        return f"<CommandBuildAction {self.spec.display!r}>"


class ProcessStopHandle:
    """Stop handle owning one ``subprocess.Popen``.

    On POSIX the child is started in its own session, so ``stop()`` kills
    the whole process group; wrappers such as ``go run`` or ``npm start``
    do not leave their real server behind.  Repeated ``stop()`` calls are
    no-ops.
    """

    def __init__(self, process: subprocess.Popen, command: str) -> None:
        self._process = process
        self._command = command
        self._stopped = False

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def running(self) -> bool:
        return self._process.poll() is None

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        logger.debug("Killing %s (pid %d)", self._command, self._process.pid)
        try:
            if os.name == "posix":
                os.killpg(self._process.pid, signal.SIGKILL)
            else:
                self._process.kill()
        except ProcessLookupError:
            pass  # already gone
        except OSError as exc:
            logger.warning("Could not kill %s (pid %d): %s", self._command, self._process.pid, exc)
            try:
                self._process.kill()
            except OSError as kill_exc:
                logger.warning("Fallback kill of pid %d failed: %s", self._process.pid, kill_exc)
        try:
            self._process.wait(timeout=REAP_TIMEOUT_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning(
                "%s (pid %d) still running %gs after kill; giving up",
                self._command,
                self._process.pid,
                REAP_TIMEOUT_SECONDS,
            )

    def __repr__(self) -> str:
        state = "stopped" if self._stopped else "live"
        return f"<ProcessStopHandle pid={self._process.pid} {state}>"


class CommandRunAction:
    """Launches an external command in the background."""

    def __init__(self, spec: CommandSpec) -> None:
        self.spec = spec

    @classmethod
    def from_command(cls, command: str, *args: str) -> CommandRunAction:
        return cls(CommandSpec(command=command, args=list(args)))

    def start(self) -> ProcessStopHandle:
        try:
            process = subprocess.Popen(
                self.spec.argv,
                cwd=self.spec.cwd,
                env=_child_env(self.spec),
                start_new_session=os.name == "posix",
            )
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            raise RunStartError(self.spec.display, exc) from exc
        logger.debug("Started %s (pid %d)", self.spec.display, process.pid)
        return ProcessStopHandle(process, self.spec.display)

    def __repr__(self) -> str:
        return f"<CommandRunAction {self.spec.display!r}>"


# ---------------------------------------------------------------------------
# In-process adapter
# ---------------------------------------------------------------------------


class CallableBuildAction:
    """Adapts a zero-argument callable into a build step.

    Whatever the callable raises is reported as a ``BuildStepError`` named
    after the step.
    """

    def __init__(self, fn: Callable[[], object], name: str | None = None) -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__name__", repr(fn))

    def execute(self) -> None:
        try:
            self._fn()
        except BuildStepError:
            raise
        except Exception as exc:
            raise BuildStepError(self.name, exc) from exc

    def __repr__(self) -> str:
        return f"<CallableBuildAction {self.name!r}>"
