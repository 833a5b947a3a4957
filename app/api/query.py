"""Query service API endpoints."""

from typing import Any

from fastapi import APIRouter, HTTPException, status

from app.api.deps import InboundEvent, Projection

router = APIRouter(tags=["Query"])


@router.get("/posts")
def list_posts_endpoint(projection: Projection) -> dict[str, Any]:
    """All posts with their comments, keyed by post id."""
    return {key: post.to_dict() for key, post in projection.get_all().items()}


@router.get("/posts/{post_id}")
def get_post_endpoint(projection: Projection, post_id: str) -> dict[str, Any]:
    """Get a single post by id."""
    post = projection.get_by_id(post_id)
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    return post.to_dict()


@router.get("/pending")
def list_pending_events_endpoint(projection: Projection) -> dict[str, Any]:
    """Events waiting for a post or comment that has not arrived yet."""
    pending = projection.pending
    now = pending.clock()
    return {
        "pending": [entry.to_dict(now) for entry in pending.snapshot()],
        "total": len(pending),
        "dropped": pending.dropped_count,
    }


@router.post("/events")
async def receive_event_endpoint(
    projection: Projection,
    event: InboundEvent,
) -> dict[str, Any]:
    """Fold an event into the projection."""
    outcome = await projection.apply(event)
    return {"status": "OK", "outcome": outcome.value}
