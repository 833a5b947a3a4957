"""Post read model and its persisted record."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlalchemy import JSON, DateTime
from sqlmodel import Column, Field, SQLModel

from app.events.types import CommentStatus, EntityId


def entity_key(entity_id: Any) -> str:
    """Normalize an id for lookups (``1`` and ``"1"`` address the same post)."""
    return str(entity_id)


class Comment(BaseModel):
    """A comment, owned by its parent post."""

    model_config = ConfigDict(populate_by_name=True)

    id: EntityId
    post_id: EntityId = PydanticField(alias="postId")
    content: str
    status: CommentStatus = CommentStatus.PENDING


class Post(BaseModel):
    """Post aggregate as seen by the query service."""

    id: EntityId
    title: str
    comments: list[Comment] = PydanticField(default_factory=list)

    def find_comment(self, comment_id: Any) -> Comment | None:
        key = entity_key(comment_id)
        for comment in self.comments:
            if entity_key(comment.id) == key:
                return comment
        return None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class PostRecord(SQLModel, table=True):
    """A post stored as a JSON document, keyed by normalized id."""

    __tablename__ = "posts"

    key: str = Field(primary_key=True, max_length=255)
    document: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
