"""Worker runner.

Provides entry points for running workers inside a service:
- run_worker_loop(): Continuous processing with interval, until stopped
- start_worker(): Same loop as an asyncio task

Design Principles:
- Structured logging for observability
- A failing cycle is logged and never ends the loop
- Clean shutdown through an asyncio.Event
"""

import asyncio
import logging

from app.workers.base import WorkerBase

logger = logging.getLogger(__name__)


async def run_worker_loop(
    worker: WorkerBase,
    interval_seconds: float,
    stop_event: asyncio.Event | None = None,
    max_iterations: int | None = None,
) -> int:
    """Run a worker until stop_event is set or max_iterations is reached.

    Args:
        worker: The worker to run
        interval_seconds: Seconds between cycles
        stop_event: Set to request shutdown
        max_iterations: Max cycles to run (None for infinite)

    Returns:
        Number of cycles run
    """
    stop_event = stop_event or asyncio.Event()
    iterations = 0

    logger.info(
        "Starting worker loop",
        extra={
            "worker": worker.worker_name,
            "interval_seconds": interval_seconds,
            "max_iterations": max_iterations,
        },
    )

    while not stop_event.is_set():
        if max_iterations is not None and iterations >= max_iterations:
            break

        try:
            await worker.run()
        except Exception as e:
            logger.error(
                f"{worker.worker_name} cycle failed",
                extra={"worker": worker.worker_name, "error": str(e)},
                exc_info=True,
            )
        iterations += 1

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            pass

    logger.info(
        "Worker loop stopped",
        extra={"worker": worker.worker_name, "total_iterations": iterations},
    )
    return iterations


def start_worker(
    worker: WorkerBase,
    interval_seconds: float,
    stop_event: asyncio.Event,
) -> asyncio.Task:
    """Schedule run_worker_loop on the running event loop."""
    return asyncio.create_task(
        run_worker_loop(worker, interval_seconds, stop_event),
        name=worker.worker_name,
    )


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure logging for service processes.

    Args:
        level: Logging level (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("app").setLevel(level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
