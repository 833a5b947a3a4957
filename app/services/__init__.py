"""Subscriber services.

Services:
- moderation.py: Comment classification (event transformer)
- projection.py: Post read model built from the event stream
- pending.py: Holding area for events that arrive before their parent
"""

from app.services.moderation import ModerationService, classify
from app.services.pending import PendingEvent, PendingEventBuffer
from app.services.projection import ApplyOutcome, PostProjection, ProjectionConsumer

__all__ = [
    "ModerationService",
    "classify",
    "PendingEvent",
    "PendingEventBuffer",
    "ApplyOutcome",
    "PostProjection",
    "ProjectionConsumer",
]
