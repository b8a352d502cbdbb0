import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from oricloud.config import get_settings
from oricloud.infra.db.sqlite import init_db
from oricloud.infra.events.broker import TopicBroker
from oricloud.infra.repos import competitors as competitors_repo
from oricloud.infra.repos.classes import create_class
from oricloud.infra.repos.events import create_event

EVENT_ID = "evt_sprint"


class RecordingBroker(TopicBroker):
    def __init__(self):
        super().__init__()
        self.calls = []

    def publish(self, topic_name, payload):
        self.calls.append((topic_name, payload))
        return super().publish(topic_name, payload)

    def topics_published(self):
        return [name for name, _ in self.calls]


async def seed_sprint() -> None:
    await create_event(event_id=EVENT_ID, name="Sprint", date="2026-05-16", zero_time="10:00:00", author_id=1)
    await create_class(class_id=7, event_id=EVENT_ID, name="H21")
    await create_class(class_id=8, event_id=EVENT_ID, name="D21")
    await competitors_repo.create_competitor(
        {"class_id": 7, "firstname": "Jan", "lastname": "Novak", "card": 8100001, "status": "Active"},
        competitor_id=42,
    )
    await competitors_repo.create_competitor(
        {"class_id": 7, "firstname": "Petr", "lastname": "Svoboda", "status": "OK", "time": 600},
        competitor_id=43,
    )
    await competitors_repo.create_competitor(
        {"class_id": 8, "firstname": "Eva", "lastname": "Kralova", "status": "Inactive"},
        competitor_id=50,
    )


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self._env = patch.dict(
            os.environ,
            {"ORICLOUD_DATABASE_PATH": str(Path(self._tmpdir.name) / "oricloud_test.db")},
        )
        self._env.start()
        get_settings.cache_clear()
        await init_db()
        await seed_sprint()

    async def asyncTearDown(self):
        self._env.stop()
        get_settings.cache_clear()
        self._tmpdir.cleanup()
