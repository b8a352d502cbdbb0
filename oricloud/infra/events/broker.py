"""In-process topic broker for live updates.

Publishers push payloads onto string topics; every subscription registered on
a topic at publish time gets its own copy on a private queue. Nothing is
persisted or replayed, so a subscriber only sees what is published after it
registered. A broker instance is created per application and handed to
resolvers through the request context.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

COMPETITORS_BY_CLASS_UPDATED = "COMPETITORS_BY_CLASS_UPDATED"
COMPETITOR_UPDATED = "COMPETITOR_UPDATED"
WINNER_UPDATED = "WINNER_UPDATED"

_CLOSED = object()


def topic(kind: str, entity_id: Any) -> str:
    return f"{kind}_{entity_id}"


class Subscription:
    """A cancellable stream of payloads for one topic.

    Iterate with ``async for``; ``close()`` unregisters from the broker and
    ends the iteration once already-queued payloads are consumed.
    """

    def __init__(self, broker: "TopicBroker", topic_name: str, *, max_pending: int = 0):
        self.topic = topic_name
        self.overflowed = False
        self._broker = broker
        self._max_pending = max(0, int(max_pending))
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def offer(self, payload: Any) -> bool:
        if self._closed:
            return False
        if self._max_pending and self._queue.qsize() >= self._max_pending:
            self.overflowed = True
            logger.warning("Subscriber on {} fell {} messages behind; closing it", self.topic, self._queue.qsize())
            self.close()
            return False
        self._queue.put_nowait(payload)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broker._unregister(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Any:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *_exc) -> None:
        self.close()


class TopicBroker:
    def __init__(self, *, queue_size: int = 0):
        self._queue_size = max(0, int(queue_size))
        self._topics: dict[str, list[Subscription]] = {}

    def subscribe(self, topic_name: str) -> Subscription:
        sub = Subscription(self, topic_name, max_pending=self._queue_size)
        self._topics.setdefault(topic_name, []).append(sub)
        logger.debug("Subscribed to {} ({} listeners)", topic_name, len(self._topics[topic_name]))
        return sub

    def publish(self, topic_name: str, payload: Any) -> int:
        """Deliver payload to current subscribers of topic_name; returns the receiver count."""
        delivered = 0
        for sub in list(self._topics.get(topic_name, ())):
            if sub.offer(payload):
                delivered += 1
        logger.debug("Published to {} ({} receivers)", topic_name, delivered)
        return delivered

    def subscriber_count(self, topic_name: str) -> int:
        return len(self._topics.get(topic_name, ()))

    def topics(self) -> list[str]:
        return sorted(self._topics)

    def close(self) -> None:
        for subs in list(self._topics.values()):
            for sub in list(subs):
                sub.close()
        self._topics.clear()

    def _unregister(self, sub: Subscription) -> None:
        subs = self._topics.get(sub.topic)
        if not subs:
            return
        try:
            subs.remove(sub)
        except ValueError:
            pass
        if not subs:
            self._topics.pop(sub.topic, None)
        logger.debug("Unsubscribed from {}", sub.topic)
