"""Class leader change detection."""

from __future__ import annotations

from loguru import logger

from oricloud.infra.events.broker import WINNER_UPDATED, TopicBroker, topic
from oricloud.infra.repos.competitors import list_class_leaders


class WinnerTracker:
    """Remembers the current leader of every class per event.

    The first refresh for an event only records the leaders; later refreshes
    publish one notification per class whose leader changed.
    """

    def __init__(self) -> None:
        self._leaders: dict[str, dict[int, int]] = {}

    async def refresh(self, broker: TopicBroker, event_id: str) -> list[dict]:
        try:
            leaders = await list_class_leaders(event_id)
        except Exception as exc:
            logger.error("Winner refresh failed for event {}: {}", event_id, exc)
            return []

        previous = self._leaders.get(event_id)
        if previous is None:
            self._leaders[event_id] = {int(row["class_id"]): int(row["id"]) for row in leaders}
            logger.info("Initialized winners cache for event {}", event_id)
            return []

        changes = []
        for row in leaders:
            class_id = int(row["class_id"])
            if previous.get(class_id) == int(row["id"]):
                continue
            previous[class_id] = int(row["id"])
            changes.append(
                {
                    "eventId": event_id,
                    "classId": class_id,
                    "className": row["class_name"],
                    "name": f"{row['lastname']} {row['firstname']}",
                }
            )

        for change in changes:
            logger.info("Publishing {} for class {}", topic(WINNER_UPDATED, event_id), change["className"])
            broker.publish(topic(WINNER_UPDATED, event_id), {"winnerUpdated": change})
        return changes
