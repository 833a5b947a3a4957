"""Read-model entities for the query service."""

from app.models.post import Comment, Post, PostRecord, entity_key

__all__ = [
    "Comment",
    "Post",
    "PostRecord",
    "entity_key",
]
