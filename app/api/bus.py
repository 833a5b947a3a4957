"""Event bus API endpoints."""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import Dispatcher, InboundEvent
from app.events.registry import Subscriber
from app.models.subscriber import (
    SubscriberCreate,
    SubscriberListResponse,
    SubscriberResponse,
)

router = APIRouter(tags=["Event Bus"])


@router.post("/events")
async def publish_event_endpoint(
    dispatcher: Dispatcher,
    event: InboundEvent,
) -> dict[str, Any]:
    """Accept an event and fan it out to every subscriber."""
    ack = await dispatcher.publish(event)
    return ack.to_dict()


@router.get("/events/deliveries")
def list_deliveries_endpoint(
    dispatcher: Dispatcher,
    limit: int = Query(default=50, ge=1, le=1000, description="Most recent reports to return"),
) -> dict[str, Any]:
    """Recent delivery reports and bus counters."""
    reports = dispatcher.get_reports()[-limit:]
    return {
        "stats": dispatcher.get_stats(),
        "reports": [report.to_dict() for report in reports],
    }


@router.get("/subscribers", response_model=SubscriberListResponse)
def list_subscribers_endpoint(dispatcher: Dispatcher) -> SubscriberListResponse:
    """List registered subscribers."""
    subscribers = dispatcher.registry.all()
    return SubscriberListResponse(
        subscribers=[SubscriberResponse(name=s.name, url=s.url) for s in subscribers],
        total=len(subscribers),
    )


@router.post(
    "/subscribers",
    response_model=SubscriberResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_subscriber_endpoint(
    dispatcher: Dispatcher,
    subscriber_data: SubscriberCreate,
) -> SubscriberResponse:
    """Register a subscriber for all subsequent events."""
    if subscriber_data.name:
        subscriber = Subscriber(name=subscriber_data.name, url=subscriber_data.url)
    else:
        subscriber = Subscriber.from_url(subscriber_data.url)

    if not dispatcher.registry.register(subscriber):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Subscriber already registered",
        )
    return SubscriberResponse(name=subscriber.name, url=subscriber.url)


@router.delete("/subscribers", status_code=status.HTTP_204_NO_CONTENT)
def unregister_subscriber_endpoint(
    dispatcher: Dispatcher,
    url: str = Query(description="URL of the subscriber to remove"),
) -> None:
    """Remove a subscriber."""
    if not dispatcher.registry.unregister(url):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Subscriber not found",
        )
