import asyncio
import unittest

from oricloud.infra.events.broker import COMPETITORS_BY_CLASS_UPDATED, TopicBroker, topic


async def _collect(sub) -> list:
    items = []
    async for item in sub:
        items.append(item)
    return items


class TopicBrokerTests(unittest.IsolatedAsyncioTestCase):
    async def test_topic_name_is_kind_and_entity_id(self):
        self.assertEqual(topic(COMPETITORS_BY_CLASS_UPDATED, 7), "COMPETITORS_BY_CLASS_UPDATED_7")

    async def test_publish_without_subscribers_is_noop(self):
        broker = TopicBroker()
        self.assertEqual(broker.publish("COMPETITOR_UPDATED_evt", {"x": 1}), 0)
        self.assertEqual(broker.topics(), [])

    async def test_publish_reaches_only_subscribers_of_that_topic(self):
        broker = TopicBroker()
        a1 = broker.subscribe("A")
        a2 = broker.subscribe("A")
        b = broker.subscribe("B")

        self.assertEqual(broker.publish("A", "hello"), 2)
        self.assertEqual(await asyncio.wait_for(a1.__anext__(), 1), "hello")
        self.assertEqual(await asyncio.wait_for(a2.__anext__(), 1), "hello")
        self.assertEqual(b.pending, 0)

    async def test_late_subscriber_gets_no_replay(self):
        broker = TopicBroker()
        broker.publish("A", "early")
        sub = broker.subscribe("A")
        broker.publish("A", "late")
        self.assertEqual(await asyncio.wait_for(sub.__anext__(), 1), "late")
        self.assertEqual(sub.pending, 0)

    async def test_subscribers_see_same_order(self):
        broker = TopicBroker()
        first = broker.subscribe("COMPETITORS_BY_CLASS_UPDATED_7")
        second = broker.subscribe("COMPETITORS_BY_CLASS_UPDATED_7")
        for n in range(5):
            broker.publish("COMPETITORS_BY_CLASS_UPDATED_7", n)
        first.close()
        second.close()

        self.assertEqual(await _collect(first), [0, 1, 2, 3, 4])
        self.assertEqual(await _collect(second), [0, 1, 2, 3, 4])

    async def test_close_wakes_reader_and_unregisters(self):
        broker = TopicBroker()
        sub = broker.subscribe("A")
        reader = asyncio.create_task(_collect(sub))
        await asyncio.sleep(0)

        sub.close()
        self.assertEqual(await asyncio.wait_for(reader, 1), [])
        self.assertTrue(sub.closed)
        self.assertEqual(broker.subscriber_count("A"), 0)
        self.assertEqual(broker.topics(), [])
        self.assertEqual(broker.publish("A", "after"), 0)

        sub.close()

    async def test_context_manager_closes(self):
        broker = TopicBroker()
        async with broker.subscribe("A") as sub:
            self.assertEqual(broker.subscriber_count("A"), 1)
        self.assertTrue(sub.closed)
        self.assertEqual(broker.subscriber_count("A"), 0)

    async def test_slow_subscriber_is_dropped_when_bounded(self):
        broker = TopicBroker(queue_size=2)
        slow = broker.subscribe("A")
        fast = broker.subscribe("A")

        broker.publish("A", 1)
        self.assertEqual(await fast.__anext__(), 1)
        broker.publish("A", 2)
        self.assertEqual(await fast.__anext__(), 2)
        delivered = broker.publish("A", 3)

        self.assertEqual(delivered, 1)
        self.assertTrue(slow.overflowed)
        self.assertTrue(slow.closed)
        self.assertEqual(await _collect(slow), [1, 2])
        self.assertEqual(broker.subscriber_count("A"), 1)

    async def test_broker_close_ends_every_stream(self):
        broker = TopicBroker()
        readers = [asyncio.create_task(_collect(broker.subscribe(name))) for name in ("A", "A", "B")]
        await asyncio.sleep(0)

        broker.close()
        results = await asyncio.wait_for(asyncio.gather(*readers), 1)
        self.assertEqual(results, [[], [], []])
        self.assertEqual(broker.topics(), [])
