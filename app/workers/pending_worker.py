"""Worker that retries or expires events parked by the post projection.

Each cycle:
1. Re-applies every parked event
2. Leaves events whose parent is still missing in the buffer
3. Drops events older than the buffer's TTL, logging them as lost
"""

from app.services.pending import PendingEvent
from app.services.projection import PostProjection
from app.workers.base import WorkerBase


class PendingEventWorker(WorkerBase[PendingEvent]):
    """Retry loop for deferred projection events."""

    def __init__(self, projection: PostProjection, batch_size: int = 500) -> None:
        super().__init__(batch_size=batch_size)
        self.projection = projection

    @property
    def worker_name(self) -> str:
        return "PendingEventWorker"

    def fetch_pending(self) -> list[PendingEvent]:
        return self.projection.pending.snapshot()[: self.batch_size]

    def is_pending(self, item: PendingEvent) -> bool:
        # Replays triggered by earlier items may already have applied it
        return item in self.projection.pending

    async def process_item(self, item: PendingEvent) -> None:
        await self.projection.retry(item)

    def mark_failed(self, item: PendingEvent, error: str, can_retry: bool) -> None:
        item.attempts += 1
        item.last_error = error
        if not can_retry:
            self.projection.discard(item, reason=f"Retry window expired: {error}")

    def get_item_id(self, item: PendingEvent) -> int:
        return item.id

    def should_retry(self, item: PendingEvent) -> bool:
        return not self.projection.pending.is_expired(item)
