#!/usr/bin/env python3
"""
Seed a demo event with two classes and a handful of competitors.

Writes into the database configured by ORICLOUD_DATABASE_PATH.
"""

from __future__ import annotations

import asyncio
import sys

from oricloud.infra.db.sqlite import init_db
from oricloud.infra.repos.classes import create_class
from oricloud.infra.repos.competitors import create_competitor
from oricloud.infra.repos.events import create_event

RUNNERS = {
    "H21": [("Jan", "Novak", 8100001), ("Petr", "Svoboda", 8100002), ("Tomas", "Dvorak", 8100003)],
    "D21": [("Eva", "Kralova", 8200001), ("Jana", "Horakova", 8200002)],
}


async def seed(author_id: int) -> dict:
    await init_db()
    event = await create_event(
        name="Demo Sprint",
        date="2026-05-16",
        zero_time="2026-05-16T10:00:00+02:00",
        author_id=author_id,
        organizer="OriCloud",
        published=True,
    )
    for class_name, runners in RUNNERS.items():
        row = await create_class(event_id=event["id"], name=class_name)
        for bib, (firstname, lastname, card) in enumerate(runners, start=1):
            await create_competitor(
                {
                    "class_id": row["id"],
                    "firstname": firstname,
                    "lastname": lastname,
                    "card": card,
                    "bib_number": bib,
                }
            )
    return event


def main() -> int:
    author_id = int(sys.argv[1]) if len(sys.argv) > 1 else 1
    event = asyncio.run(seed(author_id))
    print(f"Seeded event {event['id']} for author {author_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
