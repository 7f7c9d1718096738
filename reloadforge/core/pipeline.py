"""Build/run/stop pipeline with strict phase ordering.

Phases, in order:

    pre steps -> start run action -> post steps

The first failure halts everything after it.  The pipeline never reports
success while something unintended is running, and never leaves the
process it just started behind when a post step fails:

- pre failure:  nothing started, nothing to stop.
- run failure:  the launch itself failed, nothing to stop.
- post failure: the started process is stopped, then the error is raised.

An action that raises something other than its own error type is reported
as a failure of its phase all the same.  Only ``BaseException``s such as
``KeyboardInterrupt`` escape as-is, after the started process is stopped.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from reloadforge.core.actions import (
    BuildAction,
    BuildStepError,
    CommandBuildAction,
    CommandRunAction,
    PipelineError,
    RunAction,
    RunStartError,
    StopHandle,
)
from reloadforge.models.config import WatchConfig

logger = logging.getLogger(__name__)


class PipelinePostFailure(PipelineError):
    """A post step failed after the run action started.

    The started process has already been stopped when this is raised.
    The underlying ``BuildStepError`` is available as ``step_error`` and
    as ``__cause__``.
    """

    phase = "post"

    def __init__(self, step_error: BuildStepError, index: int | None) -> None:
        self.step_error = step_error
        self.index = index
        super().__init__(str(step_error))


class PipelineResult(BaseModel):
    """Outcome of one pipeline execution, returned as data.

    Exactly one of the two shapes holds:

    - success: ``error`` is ``None``; ``stop`` is the live process handle,
      or ``None`` when the pipeline has no run action.
    - failure: ``error`` is set and ``stop`` is ``None``; nothing started by
      this execution is still running.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    stop: StopHandle | None = None
    error: PipelineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _describe(action: object) -> str:
    spec = getattr(action, "spec", None)
    if spec is not None and hasattr(spec, "display"):
        return spec.display
    return getattr(action, "name", None) or type(action).__name__


def _tag(error: BuildStepError, phase: str, index: int) -> BuildStepError:
    error.phase = phase
    error.index = index
    return error


def _run_steps(steps: Sequence[BuildAction], phase: str) -> None:
    for index, step in enumerate(steps):
        try:
            step.execute()
        except BuildStepError as exc:
            _tag(exc, phase, index)
            raise
        except Exception as exc:
            raise _tag(BuildStepError(_describe(step), exc), phase, index) from exc


def _start(run: RunAction) -> StopHandle:
    try:
        return run.start()
    except RunStartError:
        raise
    except Exception as exc:
        raise RunStartError(_describe(run), exc) from exc


def run_pipeline(
    pre: Sequence[BuildAction],
    run: RunAction | None,
    post: Sequence[BuildAction],
) -> StopHandle | None:
    """Run all pre steps, start *run*, then run all post steps.

    Returns the live stop handle (``None`` when *run* is ``None``).

    Raises
    ------
    BuildStepError
        A pre step failed.  *run* was never started.
    RunStartError
        *run* failed to launch.  No post step ran.
    PipelinePostFailure
        A post step failed.  The started process was stopped first.
    """
    _run_steps(pre, "pre")

    stop = _start(run) if run is not None else None

    try:
        _run_steps(post, "post")
    except BuildStepError as exc:
        if stop is not None:
            stop.stop()
        raise PipelinePostFailure(exc, exc.index) from exc
    except BaseException:
        # Not a build failure, but the process must not outlive the pipeline.
        if stop is not None:
            stop.stop()
        raise

    return stop


class Pipeline:
    """An ordered pre/run/post execution unit.

    Parameters
    ----------
    pre:
        Build steps executed before the run action, in order.
    run:
        The long-running action, or ``None`` for build-only pipelines.
    post:
        Build steps executed after the run action has started, in order.
    """

    def __init__(
        self,
        pre: Sequence[BuildAction] = (),
        run: RunAction | None = None,
        post: Sequence[BuildAction] = (),
    ) -> None:
        self.pre = list(pre)
        self.run = run
        self.post = list(post)

    @classmethod
    def from_config(cls, config: WatchConfig) -> Pipeline:
        """Build a command pipeline from a ``WatchConfig``."""
        return cls(
            pre=[CommandBuildAction(spec) for spec in config.pre],
            run=CommandRunAction(config.run) if config.run is not None else None,
            post=[CommandBuildAction(spec) for spec in config.post],
        )

    def execute(self) -> PipelineResult:
        """Run the pipeline once, returning failures as data."""
        try:
            stop = run_pipeline(self.pre, self.run, self.post)
        except PipelineError as exc:
            logger.debug("Pipeline failed in %s phase: %s", exc.phase, exc)
            return PipelineResult(error=exc)
        return PipelineResult(stop=stop)

    def __repr__(self) -> str:
        return f"<Pipeline pre={len(self.pre)} run={self.run is not None} post={len(self.post)}>"
