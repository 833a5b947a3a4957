"""Shared fixtures for the blog event services test suite."""

import asyncio
from typing import Any

import pytest

from app.config import Settings
from app.events.consumers import EventConsumer
from app.events.publisher import EventPublisher
from app.events.types import BaseEvent, EventType, parse_event
from app.services.pending import PendingEventBuffer
from app.services.projection import PostProjection


def make_event(event_type: str, **data: Any) -> BaseEvent:
    """Build an event from wire-style field names."""
    return parse_event({"type": event_type, "data": data})


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingConsumer(EventConsumer):
    """Accepts every event and remembers its wire form."""

    def __init__(self, name: str = "recorder") -> None:
        self.name = name
        self.received: list[dict[str, Any]] = []

    def handles(self, event_type: EventType) -> bool:
        return True

    async def process(self, event: BaseEvent) -> None:
        self.received.append(event.to_wire())


class HangingConsumer(EventConsumer):
    """Never finishes processing."""

    name = "hanging"

    def handles(self, event_type: EventType) -> bool:
        return True

    async def process(self, event: BaseEvent) -> None:
        await asyncio.Event().wait()


class FailingConsumer(EventConsumer):
    """Raises on every event."""

    name = "failing"

    def handles(self, event_type: EventType) -> bool:
        return True

    async def process(self, event: BaseEvent) -> None:
        raise RuntimeError("subscriber crashed")


class RecordingPublisher(EventPublisher):
    """Collects published events instead of sending them."""

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.published: list[BaseEvent] = []

    async def publish(self, event: BaseEvent) -> bool:
        self.published.append(event)
        return self.succeed


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def pending(clock: FakeClock) -> PendingEventBuffer:
    return PendingEventBuffer(capacity=10, ttl_seconds=30.0, clock=clock)


@pytest.fixture
def projection(pending: PendingEventBuffer) -> PostProjection:
    return PostProjection(pending=pending)


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings isolated from the developer's environment."""
    for name in (
        "SUBSCRIBER_URLS",
        "DISALLOWED_WORDS",
        "QUERY_DATABASE_URL",
        "PENDING_SWEEP_INTERVAL_SECONDS",
        "PENDING_EVENT_CAPACITY",
        "PENDING_EVENT_TTL_SECONDS",
        "DELIVERY_TIMEOUT_SECONDS",
        "DELIVERY_REPORT_HISTORY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SUBSCRIBER_URLS", "")
    return Settings()
