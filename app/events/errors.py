"""Error types raised across the event pipeline."""

from typing import Any


class MalformedEventError(ValueError):
    """Inbound payload is not a recognized, well-formed event."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class DependentAggregateError(Exception):
    """Event references an aggregate the projection has not seen yet.

    Retryable: the event may apply cleanly once the missing parent arrives.
    """

    def __init__(self, message: str, post_id: Any) -> None:
        super().__init__(message)
        self.post_id = post_id


class MissingPostError(DependentAggregateError):
    """Comment event arrived before its parent post."""

    def __init__(self, post_id: Any) -> None:
        super().__init__(f"Post {post_id!r} not found", post_id)


class MissingCommentError(DependentAggregateError):
    """Comment update arrived before the comment itself."""

    def __init__(self, post_id: Any, comment_id: Any) -> None:
        super().__init__(
            f"Comment {comment_id!r} not found on post {post_id!r}", post_id
        )
        self.comment_id = comment_id


class ModerationError(ValueError):
    """Content could not be classified."""
