"""Moderation service API endpoints."""

from typing import Any

from fastapi import APIRouter

from app.api.deps import InboundEvent, Moderation

router = APIRouter(tags=["Moderation"])


@router.post("/events")
async def receive_event_endpoint(
    service: Moderation,
    event: InboundEvent,
) -> dict[str, Any]:
    """Moderate comment submissions; other events are acknowledged and ignored."""
    moderated = await service.receive(event)
    return {
        "status": "OK",
        "moderation": moderated.data.status.value if moderated is not None else None,
    }
