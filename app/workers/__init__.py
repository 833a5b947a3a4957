"""Background workers.

- PendingEventWorker: retries and expires events the post projection deferred

Workers can be started via:
- run_worker_loop(): Continuous processing with interval
- start_worker(): The same loop as an asyncio task
"""

from app.workers.base import (
    WorkerBase,
    WorkerResult,
    WorkerStatus,
)
from app.workers.pending_worker import PendingEventWorker
from app.workers.runner import (
    configure_logging,
    run_worker_loop,
    start_worker,
)

__all__ = [
    # Base classes
    "WorkerBase",
    "WorkerResult",
    "WorkerStatus",
    # Workers
    "PendingEventWorker",
    # Runner
    "run_worker_loop",
    "start_worker",
    "configure_logging",
]
