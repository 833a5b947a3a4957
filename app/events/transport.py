"""Delivery transports: how the bus hands one event to one subscriber.

- HttpEventTransport: POST the event JSON to the subscriber URL (httpx)
- LocalEventTransport: call an in-process EventConsumer mounted at the URL
"""

from abc import ABC, abstractmethod

import httpx

from app.events.consumers import EventConsumer
from app.events.registry import Subscriber
from app.events.types import BaseEvent, parse_event


class DeliveryError(Exception):
    """A subscriber could not be reached or rejected the event."""


class DeliveryTimeout(DeliveryError):
    """A subscriber did not answer in time."""


class EventTransport(ABC):
    """Sends a single event to a single subscriber.

    ``send`` raises on any failure; it never retries.
    """

    @abstractmethod
    async def send(self, subscriber: Subscriber, event: BaseEvent) -> int | None:
        """Deliver the event.

        Returns:
            The response status code, when the transport has one
        """
        pass

    async def aclose(self) -> None:
        """Release transport resources."""
        return None


class HttpEventTransport(EventTransport):
    """POSTs events to subscriber URLs."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
    ) -> None:
        self._client = client
        self._timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def send(self, subscriber: Subscriber, event: BaseEvent) -> int | None:
        try:
            response = await self.client.post(subscriber.url, json=event.to_wire())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DeliveryError(
                f"{subscriber.url} responded {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise DeliveryTimeout(f"{subscriber.url} timed out") from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"{subscriber.url} unreachable: {e!r}") from e
        return response.status_code

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class LocalEventTransport(EventTransport):
    """Delivers to consumers living in the same process.

    Each consumer receives its own copy decoded from the wire form, the
    same as it would over HTTP.
    """

    def __init__(self, consumers: dict[str, EventConsumer] | None = None) -> None:
        self._consumers: dict[str, EventConsumer] = dict(consumers or {})

    def mount(self, url: str, consumer: EventConsumer) -> None:
        self._consumers[url] = consumer

    async def send(self, subscriber: Subscriber, event: BaseEvent) -> int | None:
        consumer = self._consumers.get(subscriber.url)
        if consumer is None:
            raise DeliveryError(f"No consumer mounted at {subscriber.url}")
        await consumer.receive(parse_event(event.to_wire()))
        return 200
