import asyncio

from oricloud.core.errors import DatabaseError
from oricloud.core.usecases.competitors import update_competitor
from oricloud.core.usecases.streams import (
    competitor_updated_stream,
    competitors_by_class_stream,
    winner_updated_stream,
)
from oricloud.infra.events.broker import TopicBroker
from oricloud.infra.repos.competitors import list_competitors

from tests.support import EVENT_ID, DatabaseTestCase

CLASS_TOPIC = "COMPETITORS_BY_CLASS_UPDATED_7"


class ClassStreamTests(DatabaseTestCase):
    async def test_first_item_is_current_snapshot(self):
        broker = TopicBroker()
        expected = await list_competitors(class_id=7)

        stream = competitors_by_class_stream(broker, 7)
        first = await asyncio.wait_for(stream.__anext__(), 2)
        self.assertEqual(first, {"competitorsByClassUpdated": expected})
        self.assertEqual(broker.subscriber_count(CLASS_TOPIC), 1)
        await stream.aclose()

    async def test_updates_follow_snapshot_in_order(self):
        broker = TopicBroker()
        stream = competitors_by_class_stream(broker, 7)
        await stream.__anext__()

        for note in ("first", "second"):
            await update_competitor(
                broker,
                event_id=EVENT_ID,
                competitor_id=42,
                origin="OFFICE",
                changes={"note": note},
                author_id=1,
            )

        notes = []
        for _ in range(2):
            payload = await asyncio.wait_for(stream.__anext__(), 2)
            notes.append(payload["competitorsByClassUpdated"][0]["note"])
        self.assertEqual(notes, ["first", "second"])
        await stream.aclose()

    async def test_two_subscribers_receive_identical_sequences(self):
        broker = TopicBroker()
        streams = [competitors_by_class_stream(broker, 7) for _ in range(2)]
        for stream in streams:
            await stream.__anext__()

        for status in ("Active", "Finished", "OK"):
            broker.publish(CLASS_TOPIC, {"competitorsByClassUpdated": [{"status": status}]})

        for stream in streams:
            seen = [(await stream.__anext__())["competitorsByClassUpdated"][0]["status"] for _ in range(3)]
            self.assertEqual(seen, ["Active", "Finished", "OK"])
            await stream.aclose()

    async def test_failed_snapshot_leaves_no_subscription(self):
        broker = TopicBroker()

        async def broken_fetch(_class_id):
            raise DatabaseError("Failed to fetch competitors")

        stream = competitors_by_class_stream(broker, 7, fetch_snapshot=broken_fetch)
        with self.assertRaises(DatabaseError):
            await stream.__anext__()
        self.assertEqual(broker.subscriber_count(CLASS_TOPIC), 0)
        self.assertEqual(broker.topics(), [])

    async def test_cancel_unregisters_listener(self):
        broker = TopicBroker()
        stream = competitors_by_class_stream(broker, 7)
        await stream.__anext__()
        await stream.aclose()

        self.assertEqual(broker.subscriber_count(CLASS_TOPIC), 0)
        self.assertEqual(broker.publish(CLASS_TOPIC, {"competitorsByClassUpdated": []}), 0)


class EventStreamTests(DatabaseTestCase):
    async def test_competitor_updated_has_no_snapshot(self):
        broker = TopicBroker()
        stream = competitor_updated_stream(broker, EVENT_ID)
        pending = asyncio.create_task(stream.__anext__())
        await asyncio.sleep(0)
        self.assertFalse(pending.done())
        self.assertEqual(broker.subscriber_count(f"COMPETITOR_UPDATED_{EVENT_ID}"), 1)

        await update_competitor(
            broker,
            event_id=EVENT_ID,
            competitor_id=42,
            origin="OFFICE",
            changes={"bib_number": 12},
            author_id=1,
        )
        payload = await asyncio.wait_for(pending, 2)
        self.assertEqual(payload["competitorUpdated"]["id"], 42)
        self.assertEqual(payload["competitorUpdated"]["bib_number"], 12)

        await stream.aclose()
        self.assertEqual(broker.subscriber_count(f"COMPETITOR_UPDATED_{EVENT_ID}"), 0)

    async def test_winner_stream_relays_payloads(self):
        broker = TopicBroker()
        stream = winner_updated_stream(broker, EVENT_ID)
        pending = asyncio.create_task(stream.__anext__())
        await asyncio.sleep(0)

        message = {"winnerUpdated": {"eventId": EVENT_ID, "classId": 7, "className": "H21", "name": "Novak Jan"}}
        self.assertEqual(broker.publish(f"WINNER_UPDATED_{EVENT_ID}", message), 1)
        self.assertEqual(await asyncio.wait_for(pending, 2), message)
        await stream.aclose()
