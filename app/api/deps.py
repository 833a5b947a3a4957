"""API dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from app.events.dispatcher import EventDispatcher
from app.events.errors import MalformedEventError
from app.events.types import BaseEvent, parse_event
from app.services.moderation import ModerationService
from app.services.projection import PostProjection


def get_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.dispatcher


def get_moderation_service(request: Request) -> ModerationService:
    return request.app.state.moderation


def get_projection(request: Request) -> PostProjection:
    return request.app.state.projection


Dispatcher = Annotated[EventDispatcher, Depends(get_dispatcher)]
Moderation = Annotated[ModerationService, Depends(get_moderation_service)]
Projection = Annotated[PostProjection, Depends(get_projection)]


async def read_event(request: Request) -> BaseEvent:
    """Decode the request body as an event, rejecting malformed input with 400."""
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be a JSON object",
        )

    try:
        return parse_event(payload)
    except MalformedEventError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(e), "errors": e.errors},
        )


InboundEvent = Annotated[BaseEvent, Depends(read_event)]
