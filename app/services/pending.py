"""Bounded holding area for events that arrived ahead of their parent.

Entries are grouped by post id and kept in arrival order. When the buffer
is full the oldest entry is evicted and logged as dropped.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from itertools import count
from typing import Any

from app.events.types import BaseEvent
from app.models.post import entity_key

logger = logging.getLogger(__name__)


@dataclass
class PendingEvent:
    """An event waiting for the aggregate it depends on."""

    id: int
    event: BaseEvent
    post_key: str
    enqueued_at: float
    attempts: int = 1
    last_error: str | None = None

    def age(self, now: float) -> float:
        return now - self.enqueued_at

    def to_dict(self, now: float | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "event": self.event.to_wire(),
            "attempts": self.attempts,
            "last_error": self.last_error,
        }
        if now is not None:
            data["age_seconds"] = round(self.age(now), 3)
        return data


class PendingEventBuffer:
    """Events deferred because of a dependent-aggregate violation."""

    def __init__(
        self,
        capacity: int = 1000,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the buffer.

        Args:
            capacity: Maximum number of events held at once
            ttl_seconds: Age after which an event is considered expired
            clock: Monotonic time source
        """
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.dropped_count = 0
        self._entries: dict[int, PendingEvent] = {}
        self._ids = count(1)
        # Projection writes may run on an executor thread
        self._guard = threading.Lock()

    def add(self, event: BaseEvent, error: Exception | str) -> PendingEvent:
        """Park an event, evicting the oldest one if the buffer is full."""
        with self._guard:
            while len(self._entries) >= self.capacity:
                evicted = self._entries.pop(min(self._entries))
                self.dropped_count += 1
                logger.error(
                    "Pending buffer full, dropping oldest event",
                    extra={"pending_event": evicted.to_dict(), "capacity": self.capacity},
                )

            entry = PendingEvent(
                id=next(self._ids),
                event=event,
                post_key=entity_key(event.aggregate_id),
                enqueued_at=self.clock(),
                last_error=str(error),
            )
            self._entries[entry.id] = entry
            return entry

    def restore(self, entry: PendingEvent, error: Exception | str) -> None:
        """Put back an entry that still cannot be applied, keeping its age."""
        entry.attempts += 1
        entry.last_error = str(error)
        with self._guard:
            self._entries[entry.id] = entry

    def take(self, post_id: Any) -> list[PendingEvent]:
        """Remove and return all entries for a post, oldest first."""
        key = entity_key(post_id)
        with self._guard:
            taken = sorted(
                (entry for entry in self._entries.values() if entry.post_key == key),
                key=lambda entry: entry.id,
            )
            for entry in taken:
                del self._entries[entry.id]
        return taken

    def remove(self, entry: PendingEvent) -> bool:
        with self._guard:
            return self._entries.pop(entry.id, None) is not None

    def discard(self, entry: PendingEvent) -> bool:
        """Remove an entry and count it as dropped."""
        with self._guard:
            if self._entries.pop(entry.id, None) is None:
                return False
            self.dropped_count += 1
            return True

    def is_expired(self, entry: PendingEvent) -> bool:
        return entry.age(self.clock()) >= self.ttl_seconds

    def snapshot(self) -> list[PendingEvent]:
        """All entries, oldest first."""
        with self._guard:
            return sorted(self._entries.values(), key=lambda entry: entry.id)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry: object) -> bool:
        return isinstance(entry, PendingEvent) and entry.id in self._entries
