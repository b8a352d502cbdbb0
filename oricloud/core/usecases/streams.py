"""Live update streams backing the GraphQL subscriptions."""

from __future__ import annotations

from typing import Any, AsyncGenerator, Awaitable, Callable

from oricloud.infra.events.broker import (
    COMPETITOR_UPDATED,
    COMPETITORS_BY_CLASS_UPDATED,
    WINNER_UPDATED,
    TopicBroker,
    topic,
)
from oricloud.infra.repos._common import translate_db_errors
from oricloud.infra.repos.competitors import list_competitors

SnapshotFetcher = Callable[[int], Awaitable[list[dict]]]


async def fetch_class_snapshot(class_id: int) -> list[dict]:
    with translate_db_errors("Failed to fetch competitors"):
        return await list_competitors(class_id=class_id)


async def competitors_by_class_stream(
    broker: TopicBroker,
    class_id: int,
    fetch_snapshot: SnapshotFetcher = fetch_class_snapshot,
) -> AsyncGenerator[dict[str, Any], None]:
    """Current class list first, then every published update for the class.

    The broker subscription is only created once the snapshot read succeeded,
    so only publishes made after that registration are relayed. A publish
    landing while the snapshot is still being read is not replayed.
    """
    snapshot = await fetch_snapshot(class_id)
    sub = broker.subscribe(topic(COMPETITORS_BY_CLASS_UPDATED, class_id))
    try:
        yield {"competitorsByClassUpdated": snapshot}
        async for payload in sub:
            yield payload
    finally:
        sub.close()


async def _relay(broker: TopicBroker, topic_name: str) -> AsyncGenerator[Any, None]:
    sub = broker.subscribe(topic_name)
    try:
        async for payload in sub:
            yield payload
    finally:
        sub.close()


def competitor_updated_stream(broker: TopicBroker, event_id: str) -> AsyncGenerator[Any, None]:
    # No initial snapshot here, unlike the class stream.
    return _relay(broker, topic(COMPETITOR_UPDATED, event_id))


def winner_updated_stream(broker: TopicBroker, event_id: str) -> AsyncGenerator[Any, None]:
    return _relay(broker, topic(WINNER_UPDATED, event_id))
