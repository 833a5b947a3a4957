"""Key-value stores behind the post projection.

The projection only needs get/set by id plus a full scan for reads.
Stores hand out copies; a change is visible only after ``set``.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from app.models.post import Post, PostRecord, entity_key


class PostStore(ABC):
    """Posts keyed by id."""

    # True when calls do I/O and should run off the event loop
    blocking = False

    @abstractmethod
    def get(self, post_id: Any) -> Post | None:
        pass

    @abstractmethod
    def set(self, post: Post) -> None:
        pass

    @abstractmethod
    def all(self) -> list[Post]:
        pass


class InMemoryPostStore(PostStore):
    """Dict-backed store; contents are lost on restart."""

    def __init__(self) -> None:
        self._posts: dict[str, Post] = {}

    def get(self, post_id: Any) -> Post | None:
        post = self._posts.get(entity_key(post_id))
        return post.model_copy(deep=True) if post is not None else None

    def set(self, post: Post) -> None:
        self._posts[entity_key(post.id)] = post.model_copy(deep=True)

    def all(self) -> list[Post]:
        return [post.model_copy(deep=True) for post in self._posts.values()]


class SqlPostStore(PostStore):
    """Stores each post as a JSON document row."""

    blocking = True

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def get(self, post_id: Any) -> Post | None:
        with Session(self.engine) as session:
            record = session.get(PostRecord, entity_key(post_id))
            if record is None:
                return None
            return Post.model_validate(record.document)

    def set(self, post: Post) -> None:
        key = entity_key(post.id)
        with Session(self.engine) as session:
            record = session.get(PostRecord, key)
            if record is None:
                record = PostRecord(key=key)
            record.document = post.to_dict()
            record.updated_at = datetime.now(timezone.utc)
            session.add(record)
            session.commit()

    def all(self) -> list[Post]:
        with Session(self.engine) as session:
            records = session.exec(select(PostRecord)).all()
            return [Post.model_validate(record.document) for record in records]
