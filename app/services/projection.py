"""Post projection: the query service's read model, folded from events.

Events are applied one at a time under a lock, in the order they were
delivered. A comment event whose post (or target comment) is unknown is
parked in the pending buffer instead of failing; it is re-applied as soon
as a later event for the same post lands, or by the pending worker.
"""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from app.db.store import InMemoryPostStore, PostStore
from app.events.consumers import EventConsumer
from app.events.errors import DependentAggregateError, MissingCommentError, MissingPostError
from app.events.types import (
    BaseEvent,
    CommentData,
    EventType,
    PostCreatedData,
)
from app.models.post import Comment, Post, entity_key
from app.services.pending import PendingEvent, PendingEventBuffer

logger = logging.getLogger(__name__)


class ApplyOutcome(str, Enum):
    """What happened to an inbound event."""

    APPLIED = "applied"
    DEFERRED = "deferred"
    IGNORED = "ignored"


class PostProjection:
    """Single-writer projection of posts and their comments.

    Policies:
    - PostCreated for a known id replaces the title and keeps comments,
      so a repeated create is a no-op
    - CommentCreated/CommentModerated insert the comment, or overwrite
      content and status if the id is already present
    - CommentUpdated overwrites content and status of an existing comment
    """

    def __init__(
        self,
        store: PostStore | None = None,
        pending: PendingEventBuffer | None = None,
    ) -> None:
        self.store = store if store is not None else InMemoryPostStore()
        self.pending = pending if pending is not None else PendingEventBuffer()
        self._lock = asyncio.Lock()
        self._handlers: dict[EventType, Callable[[Any], None]] = {
            EventType.POST_CREATED: self._create_post,
            EventType.COMMENT_CREATED: self._upsert_comment,
            EventType.COMMENT_MODERATED: self._upsert_comment,
            EventType.COMMENT_UPDATED: self._update_comment,
        }

    def handles(self, event_type: EventType) -> bool:
        return event_type in self._handlers

    # -------------------------------------------------------------------------
    # Write side
    # -------------------------------------------------------------------------

    async def apply(self, event: BaseEvent) -> ApplyOutcome:
        """Apply one event, deferring it if it depends on an unseen aggregate."""
        if not self.handles(event.event_type):
            return ApplyOutcome.IGNORED

        async with self._lock:
            return await self._call_store(self._apply_or_defer, event)

    async def retry(self, entry: PendingEvent) -> bool:
        """Re-attempt a parked event.

        Returns:
            bool: False if the entry is no longer parked

        Raises:
            DependentAggregateError: If the event still cannot be applied
        """
        async with self._lock:
            return await self._call_store(self._retry_entry, entry)

    def discard(self, entry: PendingEvent, reason: str) -> None:
        """Give up on a parked event."""
        if self.pending.discard(entry):
            logger.error(
                "Dropping deferred event",
                extra={"pending_event": entry.to_dict(), "reason": reason},
            )

    async def _call_store(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a write step, off the event loop when the store blocks on I/O."""
        if not self.store.blocking:
            return func(*args)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    def _apply_or_defer(self, event: BaseEvent) -> ApplyOutcome:
        try:
            self._apply(event)
        except DependentAggregateError as e:
            entry = self.pending.add(event, e)
            logger.warning(
                "Event deferred until its parent arrives",
                extra={
                    "event_type": event.type,
                    "post_id": event.aggregate_id,
                    "pending_id": entry.id,
                    "reason": str(e),
                },
            )
            return ApplyOutcome.DEFERRED

        self._replay_pending(event.aggregate_id)
        return ApplyOutcome.APPLIED

    def _retry_entry(self, entry: PendingEvent) -> bool:
        if entry not in self.pending:
            return False
        self._apply(entry.event)
        self.pending.remove(entry)
        logger.info(
            "Deferred event applied",
            extra={"event_type": entry.event.type, "pending_id": entry.id},
        )
        self._replay_pending(entry.event.aggregate_id)
        return True

    def _apply(self, event: BaseEvent) -> None:
        self._handlers[event.event_type](event.data)

    def _replay_pending(self, post_id: Any) -> None:
        """Apply parked events for a post until no more of them succeed."""
        progress = True
        while progress:
            progress = False
            for entry in self.pending.take(post_id):
                try:
                    self._apply(entry.event)
                except DependentAggregateError as e:
                    self.pending.restore(entry, e)
                else:
                    progress = True
                    logger.info(
                        "Deferred event applied",
                        extra={"event_type": entry.event.type, "pending_id": entry.id},
                    )

    def _create_post(self, data: PostCreatedData) -> None:
        post = self.store.get(data.id)
        if post is None:
            post = Post(id=data.id, title=data.title)
        else:
            logger.info("Post already exists, updating title", extra={"post_id": data.id})
            post.title = data.title
        self.store.set(post)

    def _upsert_comment(self, data: CommentData) -> None:
        post = self.store.get(data.post_id)
        if post is None:
            raise MissingPostError(data.post_id)

        comment = post.find_comment(data.id)
        if comment is None:
            post.comments.append(
                Comment(
                    id=data.id,
                    post_id=data.post_id,
                    content=data.content,
                    status=data.status,
                )
            )
        else:
            comment.content = data.content
            comment.status = data.status
        self.store.set(post)

    def _update_comment(self, data: CommentData) -> None:
        post = self.store.get(data.post_id)
        if post is None:
            raise MissingPostError(data.post_id)

        comment = post.find_comment(data.id)
        if comment is None:
            raise MissingCommentError(data.post_id, data.id)
        comment.status = data.status
        comment.content = data.content
        self.store.set(post)

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    def get_all(self) -> dict[str, Post]:
        """Snapshot of every post, keyed by id."""
        return {entity_key(post.id): post for post in self.store.all()}

    def get_by_id(self, post_id: Any) -> Post | None:
        return self.store.get(post_id)


class ProjectionConsumer(EventConsumer):
    """Feeds delivered events into a PostProjection."""

    name = "query"

    def __init__(self, projection: PostProjection) -> None:
        self.projection = projection

    def handles(self, event_type: EventType) -> bool:
        return self.projection.handles(event_type)

    async def process(self, event: BaseEvent) -> ApplyOutcome:
        return await self.projection.apply(event)
