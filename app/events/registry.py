"""Subscriber registry for the event bus."""

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subscriber:
    """An endpoint that receives every event published to the bus."""

    name: str
    url: str

    @classmethod
    def from_url(cls, url: str) -> "Subscriber":
        """Build a subscriber named after the host and port of its URL."""
        parsed = urlparse(url)
        return cls(name=parsed.netloc or url, url=url)

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "url": self.url}


class SubscriberRegistry:
    """Ordered set of subscribers, keyed by URL.

    Configured at process start and adjustable at runtime.
    """

    def __init__(self, subscribers: list[Subscriber] | None = None) -> None:
        self._subscribers: dict[str, Subscriber] = {}
        for subscriber in subscribers or []:
            self.register(subscriber)

    @classmethod
    def from_urls(cls, urls: list[str]) -> "SubscriberRegistry":
        return cls([Subscriber.from_url(url) for url in urls])

    def register(self, subscriber: Subscriber) -> bool:
        """Add a subscriber.

        Returns:
            bool: False if a subscriber with the same URL already exists
        """
        if subscriber.url in self._subscribers:
            return False
        self._subscribers[subscriber.url] = subscriber
        logger.info(
            "Subscriber registered",
            extra={"subscriber": subscriber.name, "url": subscriber.url},
        )
        return True

    def unregister(self, url: str) -> bool:
        """Remove the subscriber with the given URL, if present."""
        subscriber = self._subscribers.pop(url, None)
        if subscriber is None:
            return False
        logger.info(
            "Subscriber removed",
            extra={"subscriber": subscriber.name, "url": subscriber.url},
        )
        return True

    def all(self) -> list[Subscriber]:
        return list(self._subscribers.values())

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, url: object) -> bool:
        return url in self._subscribers
