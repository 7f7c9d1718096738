"""reloadforge: polling live-reload orchestrator for local development.

Watches a source tree and, whenever a file changes, stops the running app,
re-runs the build pipeline, and launches a fresh instance:

  - Polling change detection over the whole tree (no OS event APIs)
  - Ordered pre steps -> run action -> post steps, first failure halts
  - A post-step failure kills the freshly started app before reporting
  - Failed builds never stop the watch loop; the next save is the retry
"""

__version__ = "0.1.0"
__description__ = "Polling live-reload orchestrator: rebuild and restart on change"

from reloadforge.core.change_detector import ChangeDetector, has_changed
from reloadforge.core.pipeline import Pipeline, PipelineResult, run_pipeline
from reloadforge.core.supervisor import Supervisor

__all__ = [
    "ChangeDetector",
    "Pipeline",
    "PipelineResult",
    "Supervisor",
    "has_changed",
    "run_pipeline",
    "__version__",
]
