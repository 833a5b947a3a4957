"""Comment moderation: turns CommentSubmitted into CommentModerated.

The decision is a pure function of the content and the disallowed word
list. The service holds no state beyond its configuration.
"""

import logging
from collections.abc import Iterable

from app.events.consumers import EventConsumer
from app.events.errors import ModerationError
from app.events.publisher import EventPublisher
from app.events.types import (
    BaseEvent,
    CommentData,
    CommentModerated,
    CommentStatus,
    EventType,
)

logger = logging.getLogger(__name__)

DEFAULT_DISALLOWED_WORDS = ("badword",)


def classify(
    content: str,
    disallowed_words: Iterable[str] = DEFAULT_DISALLOWED_WORDS,
) -> CommentStatus:
    """Reject content containing any disallowed word, approve the rest.

    Raises:
        ModerationError: If the content is not a non-blank string
    """
    if not isinstance(content, str) or not content.strip():
        raise ModerationError("Comment content is empty")

    if any(word and word in content for word in disallowed_words):
        return CommentStatus.REJECTED
    return CommentStatus.APPROVED


class ModerationService(EventConsumer):
    """Classifies submitted comments and publishes the result to the bus."""

    name = "moderation"

    def __init__(
        self,
        publisher: EventPublisher,
        disallowed_words: Iterable[str] = DEFAULT_DISALLOWED_WORDS,
    ) -> None:
        self.publisher = publisher
        self.disallowed_words = tuple(disallowed_words)

    def handles(self, event_type: EventType) -> bool:
        """Handle only raw comment submissions."""
        return event_type == EventType.COMMENT_SUBMITTED

    def moderate(self, event: BaseEvent) -> CommentModerated:
        """Build the derived event for a submission."""
        data = event.data
        status = classify(data.content, self.disallowed_words)
        return CommentModerated(
            data=CommentData(
                id=data.id,
                post_id=data.post_id,
                content=data.content,
                status=status,
            )
        )

    async def process(self, event: BaseEvent) -> CommentModerated | None:
        """Moderate one submission and publish the outcome.

        Returns:
            The published event, or None if the content could not be
            classified
        """
        try:
            moderated = self.moderate(event)
        except ModerationError as e:
            logger.warning(
                "Comment rejected by moderation",
                extra={
                    "comment_id": event.data.id,
                    "post_id": event.data.post_id,
                    "error": str(e),
                },
            )
            return None

        logger.info(
            "Comment moderated",
            extra={
                "comment_id": moderated.data.id,
                "post_id": moderated.data.post_id,
                "status": moderated.data.status.value,
            },
        )

        if not await self.publisher.publish(moderated):
            logger.error(
                "Moderation result not published",
                extra={"comment_id": moderated.data.id, "post_id": moderated.data.post_id},
            )
        return moderated
