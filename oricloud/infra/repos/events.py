"""Event (meet) repository (SQLite)."""

from __future__ import annotations

from typing import Any

from oricloud.infra.db.sqlite import get_db
from oricloud.infra.repos._common import new_id, row_to_dict, utcnow_iso

_BOOL_FIELDS = ("relay", "ranking", "published")


def _row_to_dict(row) -> dict[str, Any]:
    return row_to_dict(row, bool_fields=_BOOL_FIELDS)


async def create_event(
    *,
    name: str,
    date: str,
    zero_time: str,
    author_id: int | None = None,
    organizer: str | None = None,
    location: str | None = None,
    relay: bool = False,
    ranking: bool = False,
    published: bool = False,
    event_id: str | None = None,
) -> dict:
    eid = event_id or new_id("evt")
    now = utcnow_iso()
    db = await get_db()
    try:
        await db.execute(
            "INSERT INTO events(id, name, organizer, location, date, zero_time, relay, ranking, published, "
            "author_id, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                eid,
                name.strip() or "Event",
                organizer,
                location,
                date,
                zero_time,
                int(bool(relay)),
                int(bool(ranking)),
                int(bool(published)),
                author_id,
                now,
                now,
            ),
        )
        await db.commit()
    finally:
        await db.close()
    return await get_event(eid) or {}


async def get_event(event_id: str) -> dict | None:
    db = await get_db()
    try:
        cur = await db.execute("SELECT * FROM events WHERE id = ? LIMIT 1", (event_id,))
        row = await cur.fetchone()
        return _row_to_dict(row) if row else None
    finally:
        await db.close()


async def list_events(*, published_only: bool = False, limit: int = 100, offset: int = 0) -> list[dict]:
    db = await get_db()
    try:
        where = "WHERE published = 1" if published_only else ""
        cur = await db.execute(
            f"SELECT * FROM events {where} ORDER BY date DESC, created_at DESC LIMIT ? OFFSET ?",
            (max(1, min(int(limit), 500)), max(0, int(offset))),
        )
        rows = await cur.fetchall()
        return [_row_to_dict(r) for r in rows]
    finally:
        await db.close()
