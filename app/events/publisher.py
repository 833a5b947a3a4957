"""Event publisher used by services that emit events back onto the bus.

Publishing is best-effort:
1. The event is posted to the bus once
2. Failures are logged and reported as False, never raised
3. The caller's own inbound event stays acknowledged either way
"""

import logging
from abc import ABC, abstractmethod

import httpx

from app.events.dispatcher import EventDispatcher
from app.events.types import BaseEvent

logger = logging.getLogger(__name__)


class EventPublisher(ABC):
    """Sends an event to the bus."""

    @abstractmethod
    async def publish(self, event: BaseEvent) -> bool:
        """Publish an event.

        Returns:
            bool: True if the bus accepted the event, False otherwise
        """
        pass

    async def aclose(self) -> None:
        return None


class HttpEventPublisher(EventPublisher):
    """Publishes to a remote bus over HTTP."""

    def __init__(
        self,
        bus_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
    ) -> None:
        """Initialize the event publisher.

        Args:
            bus_url: The bus ``POST /events`` URL
            client: Optional preconfigured HTTP client
            timeout: Request timeout in seconds when creating a client
        """
        self.bus_url = bus_url
        self._client = client
        self._timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def publish(self, event: BaseEvent) -> bool:
        try:
            response = await self.client.post(self.bus_url, json=event.to_wire())
            response.raise_for_status()

            logger.info(
                "Event published successfully",
                extra={"event_type": event.type, "aggregate_id": event.aggregate_id},
            )
            return True

        except httpx.ConnectError:
            logger.warning(
                "Event bus not available, event dropped",
                extra={"event_type": event.type, "bus_url": self.bus_url},
            )
            return False

        except httpx.HTTPStatusError as e:
            logger.error(
                "Event bus rejected event",
                extra={
                    "event_type": event.type,
                    "status_code": e.response.status_code,
                    "response": e.response.text,
                },
            )
            return False

        except Exception as e:
            logger.error(
                "Unexpected error publishing event",
                extra={"event_type": event.type, "error": str(e)},
            )
            return False

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class DispatcherPublisher(EventPublisher):
    """Publishes straight into an in-process dispatcher."""

    def __init__(self, dispatcher: EventDispatcher) -> None:
        self.dispatcher = dispatcher

    async def publish(self, event: BaseEvent) -> bool:
        try:
            await self.dispatcher.publish(event)
        except Exception as e:
            logger.error(
                "Dispatcher rejected event",
                extra={"event_type": event.type, "error": str(e)},
            )
            return False
        return True
