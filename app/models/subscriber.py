"""Request and response schemas for bus subscriber management."""

from typing import Annotated

from pydantic import StringConstraints
from sqlmodel import Field, SQLModel

# Absolute http(s) URL
EndpointUrl = Annotated[str, StringConstraints(max_length=2048, pattern=r"^https?://\S+$")]


class SubscriberCreate(SQLModel):
    """Schema for subscriber registration."""

    url: EndpointUrl
    name: str | None = Field(default=None, min_length=1, max_length=100)


class SubscriberResponse(SQLModel):
    """Schema for subscriber response."""

    name: str
    url: str


class SubscriberListResponse(SQLModel):
    """Schema for subscriber list response."""

    subscribers: list[SubscriberResponse]
    total: int
