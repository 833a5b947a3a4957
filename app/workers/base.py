"""Base worker abstraction.

Provides a clean interface for background workers that:
1. Collect pending work items
2. Process items one at a time, isolating failures
3. Decide per item whether a failure is retryable
4. Report each cycle as a WorkerResult for logging
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)


class WorkerStatus(str, Enum):
    """Status of a worker run."""

    SUCCESS = "success"
    PARTIAL = "partial"  # Some items processed, some failed
    FAILED = "failed"
    NO_WORK = "no_work"


@dataclass
class WorkerResult:
    """Result of a worker processing cycle.

    Attributes:
        status: Overall status of the worker run
        processed_count: Number of items successfully processed
        failed_count: Number of items that failed
        duration_ms: Time taken for the processing cycle
        errors: List of error details for failed items
    """

    status: WorkerStatus
    processed_count: int = 0
    failed_count: int = 0
    duration_ms: float = 0.0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "status": self.status.value,
            "processed_count": self.processed_count,
            "failed_count": self.failed_count,
            "duration_ms": self.duration_ms,
            "errors": self.errors,
        }


T = TypeVar("T")


class WorkerBase(ABC, Generic[T]):
    """Abstract base class for background workers.

    Workers follow this lifecycle per item:
    1. is_pending() - Skip items already handled elsewhere
    2. process_item() - Do the actual work
    3. mark_completed() or mark_failed() - Record the final status
    """

    def __init__(self, batch_size: int = 50) -> None:
        self.batch_size = batch_size
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    @abstractmethod
    def worker_name(self) -> str:
        """Return the worker name for logging."""
        pass

    @abstractmethod
    def fetch_pending(self) -> list[T]:
        """Fetch up to batch_size items to process."""
        pass

    def is_pending(self, item: T) -> bool:
        """Check the item still needs processing."""
        return True

    @abstractmethod
    async def process_item(self, item: T) -> None:
        """Process a single item.

        Raises:
            Exception: If processing fails
        """
        pass

    def mark_completed(self, item: T) -> None:
        """Record that an item was processed."""
        return None

    @abstractmethod
    def mark_failed(self, item: T, error: str, can_retry: bool) -> None:
        """Record a failed item.

        Args:
            item: The failed item
            error: Error message
            can_retry: Whether the item stays eligible for another cycle
        """
        pass

    @abstractmethod
    def get_item_id(self, item: T) -> Any:
        pass

    def should_retry(self, item: T) -> bool:
        return False

    async def run(self) -> WorkerResult:
        """Execute one processing cycle."""
        start_time = datetime.now(timezone.utc)
        processed = 0
        failed = 0
        errors: list[dict[str, Any]] = []

        items = self.fetch_pending()
        if not items:
            return WorkerResult(
                status=WorkerStatus.NO_WORK,
                duration_ms=self._elapsed_ms(start_time),
            )

        self._logger.debug(f"[{self.worker_name}] Found {len(items)} items to process")

        for item in items:
            item_id = self.get_item_id(item)
            if not self.is_pending(item):
                continue

            try:
                await self.process_item(item)
            except Exception as e:
                failed += 1
                error_msg = str(e)[:500]
                can_retry = self.should_retry(item)
                self.mark_failed(item, error_msg, can_retry)
                errors.append({
                    "item_id": str(item_id),
                    "error": error_msg,
                    "can_retry": can_retry,
                })
                continue

            self.mark_completed(item)
            processed += 1

        if failed == 0 and processed > 0:
            status = WorkerStatus.SUCCESS
        elif processed > 0 and failed > 0:
            status = WorkerStatus.PARTIAL
        elif failed > 0:
            status = WorkerStatus.FAILED
        else:
            status = WorkerStatus.NO_WORK

        result = WorkerResult(
            status=status,
            processed_count=processed,
            failed_count=failed,
            duration_ms=self._elapsed_ms(start_time),
            errors=errors,
        )

        self._logger.info(
            f"[{self.worker_name}] Cycle complete",
            extra={"result": result.to_dict()},
        )

        return result

    def _elapsed_ms(self, start: datetime) -> float:
        """Calculate elapsed time in milliseconds."""
        return (datetime.now(timezone.utc) - start).total_seconds() * 1000
