"""Event type definitions for the blog event pipeline.

Events travel as ``{"type": ..., "data": {...}}`` JSON objects. On the way
in they are decoded once into one of the frozen models below, discriminated
on ``type``; on the way out ``to_wire()`` restores the JSON shape, including
any extra fields the producer attached to ``data``.
"""

import json
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StringConstraints,
    TypeAdapter,
    ValidationError,
)

from app.events.errors import MalformedEventError

# Post and comment ids are opaque JSON scalars
EntityId = Union[StrictInt, Annotated[str, StringConstraints(strict=True, min_length=1)]]


class EventType(str, Enum):
    """Event kinds carried by the bus."""

    POST_CREATED = "PostCreated"
    COMMENT_SUBMITTED = "CommentSubmitted"
    COMMENT_MODERATED = "CommentModerated"
    COMMENT_CREATED = "CommentCreated"
    COMMENT_UPDATED = "CommentUpdated"


class CommentStatus(str, Enum):
    """Moderation status of a comment."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# -----------------------------------------------------------------------------
# Payloads
# -----------------------------------------------------------------------------


class EventPayload(BaseModel):
    """Base for event ``data`` objects."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


class PostCreatedData(EventPayload):
    id: EntityId
    title: str


class CommentSubmittedData(EventPayload):
    """Raw comment intent, before moderation."""

    id: EntityId
    post_id: EntityId = Field(alias="postId")
    content: str


class CommentData(CommentSubmittedData):
    """A classified comment."""

    status: CommentStatus


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------


class BaseEvent(BaseModel):
    """Common behavior of all event variants."""

    model_config = ConfigDict(frozen=True)

    type: str
    data: EventPayload

    @property
    def event_type(self) -> EventType:
        return EventType(self.type)

    @property
    def aggregate_id(self) -> Any:
        """Id of the post this event belongs to."""
        return self.data.post_id

    def to_wire(self) -> dict[str, Any]:
        """Convert to the JSON body posted between services."""
        return self.model_dump(mode="json", by_alias=True)


class PostCreated(BaseEvent):
    type: Literal["PostCreated"] = "PostCreated"
    data: PostCreatedData

    @property
    def aggregate_id(self) -> Any:
        return self.data.id


class CommentSubmitted(BaseEvent):
    type: Literal["CommentSubmitted"] = "CommentSubmitted"
    data: CommentSubmittedData


class CommentModerated(BaseEvent):
    type: Literal["CommentModerated"] = "CommentModerated"
    data: CommentData


class CommentCreated(BaseEvent):
    type: Literal["CommentCreated"] = "CommentCreated"
    data: CommentData


class CommentUpdated(BaseEvent):
    type: Literal["CommentUpdated"] = "CommentUpdated"
    data: CommentData


Event = Annotated[
    Union[PostCreated, CommentSubmitted, CommentModerated, CommentCreated, CommentUpdated],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[BaseEvent] = TypeAdapter(Event)


def parse_event(payload: Any) -> BaseEvent:
    """Decode a wire payload into its event variant.

    Raises:
        MalformedEventError: If ``type`` is missing or unknown, or a
            required field is missing or of the wrong type.
    """
    try:
        return _event_adapter.validate_python(payload)
    except ValidationError as e:
        errors = json.loads(e.json(include_url=False))
        raise MalformedEventError(
            f"Malformed event: {e.error_count()} validation error(s)",
            errors=errors,
        ) from e
