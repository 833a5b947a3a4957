"""Event bus dispatcher: fan one inbound event out to every subscriber.

The dispatcher:
1. Decodes and validates the event (malformed input is the only failure
   a producer can observe)
2. Logs the event and acknowledges the producer immediately
3. Delivers a copy to every registered subscriber concurrently, each
   attempt bounded by a timeout and never retried
4. Aggregates the per-subscriber results into a DeliveryReport
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from app.events.registry import Subscriber, SubscriberRegistry
from app.events.transport import DeliveryTimeout, EventTransport
from app.events.types import BaseEvent, parse_event

logger = logging.getLogger(__name__)


class DeliveryOutcome(str, Enum):
    """Result of one delivery attempt."""

    DELIVERED = "delivered"
    FAILED = "failed"
    TIMEOUT = "timeout"


@dataclass
class DeliveryResult:
    """Outcome of delivering one event to one subscriber."""

    subscriber: Subscriber
    outcome: DeliveryOutcome
    status_code: int | None = None
    error: str | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome == DeliveryOutcome.DELIVERED

    def to_dict(self) -> dict[str, Any]:
        return {
            "subscriber": self.subscriber.name,
            "url": self.subscriber.url,
            "outcome": self.outcome.value,
            "status_code": self.status_code,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass
class DeliveryReport:
    """All delivery results for one published event.

    Attributes:
        event_type: Type tag of the event
        aggregate_id: Post the event belongs to
        started_at: When fan-out started
        completed_at: When the last delivery attempt finished
        results: One entry per subscriber
    """

    event_type: str
    aggregate_id: Any
    started_at: datetime
    completed_at: datetime | None = None
    results: list[DeliveryResult] = field(default_factory=list)

    @property
    def delivered_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "delivered_count": self.delivered_count,
            "failed_count": self.failed_count,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class PublishAck:
    """Acknowledgement returned to the producer."""

    event_type: str
    subscriber_count: int
    status: str = "OK"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "event_type": self.event_type,
            "subscriber_count": self.subscriber_count,
        }


class EventDispatcher:
    """Relay with no storage: every event is attempted once per subscriber.

    Usage:
        dispatcher = EventDispatcher(registry, HttpEventTransport())
        ack = await dispatcher.publish({"type": "PostCreated", "data": {...}})
    """

    def __init__(
        self,
        registry: SubscriberRegistry,
        transport: EventTransport,
        timeout_seconds: float = 5.0,
        history_size: int = 100,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Subscribers receiving every event
            transport: How a single delivery is made
            timeout_seconds: Upper bound for one delivery attempt
            history_size: Number of delivery reports kept for inspection
        """
        self.registry = registry
        self.transport = transport
        self.timeout_seconds = timeout_seconds
        self._reports: deque[DeliveryReport] = deque(maxlen=history_size)
        self._tasks: set[asyncio.Task] = set()

        self.events_received = 0
        self.deliveries_succeeded = 0
        self.deliveries_failed = 0

    async def publish(self, event: BaseEvent | Mapping[str, Any]) -> PublishAck:
        """Accept an event for fan-out and acknowledge it.

        Does not wait for any subscriber.

        Raises:
            MalformedEventError: If a raw payload does not decode
        """
        if not isinstance(event, BaseEvent):
            event = parse_event(event)

        subscribers = self.registry.all()
        self.events_received += 1

        logger.info(
            "Event received",
            extra={
                "event_type": event.type,
                "payload": event.to_wire(),
                "subscriber_count": len(subscribers),
            },
        )

        task = asyncio.create_task(self._fan_out(event, subscribers))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        return PublishAck(event_type=event.type, subscriber_count=len(subscribers))

    async def _fan_out(
        self, event: BaseEvent, subscribers: list[Subscriber]
    ) -> DeliveryReport:
        report = DeliveryReport(
            event_type=event.type,
            aggregate_id=event.aggregate_id,
            started_at=datetime.now(timezone.utc),
        )
        results = await asyncio.gather(
            *(self._deliver(subscriber, event) for subscriber in subscribers)
        )
        report.results = list(results)
        report.completed_at = datetime.now(timezone.utc)

        self.deliveries_succeeded += report.delivered_count
        self.deliveries_failed += report.failed_count
        self._reports.append(report)

        log = logger.warning if report.failed_count else logger.debug
        log("Fan-out complete", extra={"report": report.to_dict()})
        return report

    async def _deliver(self, subscriber: Subscriber, event: BaseEvent) -> DeliveryResult:
        """Make one bounded delivery attempt. Never raises."""
        started = time.monotonic()
        try:
            status_code = await asyncio.wait_for(
                self.transport.send(subscriber, event),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, DeliveryTimeout):
            outcome = DeliveryOutcome.TIMEOUT
            error = f"No response within {self.timeout_seconds}s"
        except Exception as e:
            outcome = DeliveryOutcome.FAILED
            error = str(e) or repr(e)
        else:
            return DeliveryResult(
                subscriber=subscriber,
                outcome=DeliveryOutcome.DELIVERED,
                status_code=status_code,
                duration_ms=_elapsed_ms(started),
            )

        logger.warning(
            "Event delivery failed",
            extra={
                "subscriber": subscriber.name,
                "url": subscriber.url,
                "event_type": event.type,
                "outcome": outcome.value,
                "error": error,
            },
        )
        return DeliveryResult(
            subscriber=subscriber,
            outcome=outcome,
            error=error,
            duration_ms=_elapsed_ms(started),
        )

    @property
    def in_flight(self) -> int:
        """Number of fan-outs still running."""
        return sum(1 for task in self._tasks if not task.done())

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight fan-outs, including any they trigger.

        Raises:
            asyncio.TimeoutError: If fan-outs are still running after timeout
        """

        async def _wait_idle() -> None:
            while True:
                pending = [task for task in self._tasks if not task.done()]
                if not pending:
                    return
                await asyncio.wait(pending)

        await asyncio.wait_for(_wait_idle(), timeout=timeout)

    def get_reports(self) -> list[DeliveryReport]:
        """Most recent delivery reports, oldest first."""
        return list(self._reports)

    def get_stats(self) -> dict[str, int]:
        return {
            "events_received": self.events_received,
            "deliveries_succeeded": self.deliveries_succeeded,
            "deliveries_failed": self.deliveries_failed,
            "in_flight": self.in_flight,
            "subscribers": len(self.registry),
        }

    async def close(self, timeout: float | None = None) -> None:
        """Let in-flight deliveries finish, then release the transport.

        Fan-outs still running after the timeout are cancelled before the
        transport closes, so they are not reported as failed deliveries.
        """
        try:
            await self.drain(timeout=timeout)
        except asyncio.TimeoutError:
            unfinished = [task for task in self._tasks if not task.done()]
            logger.warning(
                "Dispatcher closed with deliveries in flight",
                extra={"in_flight": len(unfinished)},
            )
            for task in unfinished:
                task.cancel()
            await asyncio.gather(*unfinished, return_exceptions=True)
        await self.transport.aclose()


def _elapsed_ms(started: float) -> float:
    return (time.monotonic() - started) * 1000
