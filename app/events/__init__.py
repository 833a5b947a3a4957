"""Event distribution for the blog services.

Components:
- types.py: Event variants and wire decoding
- registry.py: Subscribers of the bus
- transport.py: Single-subscriber delivery (HTTP or in-process)
- dispatcher.py: Concurrent fan-out with delivery reports
- publisher.py: Publishing derived events back to the bus
- consumers.py: Subscriber-side consumer contract
"""

from app.events.consumers import EventConsumer
from app.events.dispatcher import (
    DeliveryOutcome,
    DeliveryReport,
    DeliveryResult,
    EventDispatcher,
    PublishAck,
)
from app.events.errors import (
    DependentAggregateError,
    MalformedEventError,
    MissingCommentError,
    MissingPostError,
    ModerationError,
)
from app.events.publisher import DispatcherPublisher, EventPublisher, HttpEventPublisher
from app.events.registry import Subscriber, SubscriberRegistry
from app.events.transport import (
    DeliveryError,
    DeliveryTimeout,
    EventTransport,
    HttpEventTransport,
    LocalEventTransport,
)
from app.events.types import BaseEvent, CommentStatus, EventType, parse_event

__all__ = [
    # Types
    "BaseEvent",
    "CommentStatus",
    "EventType",
    "parse_event",
    # Errors
    "DependentAggregateError",
    "MalformedEventError",
    "MissingCommentError",
    "MissingPostError",
    "ModerationError",
    # Bus
    "DeliveryOutcome",
    "DeliveryReport",
    "DeliveryResult",
    "EventDispatcher",
    "PublishAck",
    "Subscriber",
    "SubscriberRegistry",
    "DeliveryError",
    "DeliveryTimeout",
    "EventTransport",
    "HttpEventTransport",
    "LocalEventTransport",
    # Subscriber side
    "EventConsumer",
    "EventPublisher",
    "DispatcherPublisher",
    "HttpEventPublisher",
]
