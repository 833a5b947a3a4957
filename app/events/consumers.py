"""Subscriber-side consumer contract.

Every service that receives events from the bus exposes one inbound entry
point, ``EventConsumer.process``, invoked once per delivered event.

Event Flow:
    producer → EventDispatcher → [ModerationConsumer, ProjectionConsumer, ...]
                                          ↓
                     CommentModerated → EventDispatcher → ...
"""

from abc import ABC, abstractmethod
from typing import Any

from app.events.types import BaseEvent, EventType


class EventConsumer(ABC):
    """Abstract base class for event consumers.

    Consumers receive the full event stream and act only on the event
    types they handle; everything else is acknowledged and ignored.
    """

    #: Name used in logs and delivery reports
    name: str = "consumer"

    @abstractmethod
    def handles(self, event_type: EventType) -> bool:
        """Check if this consumer handles the given event type.

        Args:
            event_type: The type of event to check

        Returns:
            bool: True if this consumer handles this event type
        """
        pass

    @abstractmethod
    async def process(self, event: BaseEvent) -> Any:
        """Process one event.

        Args:
            event: The decoded event

        Note:
            Implementations log downstream failures instead of raising,
            so the delivering side only sees malformed-input errors.
        """
        pass

    async def receive(self, event: BaseEvent) -> Any:
        """Entry point used by transports: filter, then process."""
        if not self.handles(event.event_type):
            return None
        return await self.process(event)
