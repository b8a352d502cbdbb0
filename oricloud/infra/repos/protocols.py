"""Protocol (changelog) repository (SQLite, append-only)."""

from __future__ import annotations

import aiosqlite

from oricloud.infra.db.sqlite import get_db
from oricloud.infra.repos._common import row_to_dict, utcnow_iso


async def insert_protocol_record(
    db: aiosqlite.Connection,
    *,
    event_id: str,
    competitor_id: int,
    origin: str,
    change_type: str,
    previous_value: str | None,
    new_value: str | None,
    author_id: int | None,
) -> int:
    """Insert on the caller's connection; committing is left to the caller."""
    cur = await db.execute(
        "INSERT INTO protocols(event_id, competitor_id, origin, type, previous_value, new_value, author_id, "
        "created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        (event_id, int(competitor_id), origin, change_type, previous_value, new_value, author_id, utcnow_iso()),
    )
    return int(cur.lastrowid)


async def list_protocol_records(*, event_id: str, limit: int = 500, offset: int = 0) -> list[dict]:
    db = await get_db()
    try:
        cur = await db.execute(
            "SELECT * FROM protocols WHERE event_id = ? ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
            (event_id, max(1, min(int(limit), 5000)), max(0, int(offset))),
        )
        rows = await cur.fetchall()
        return [row_to_dict(r) for r in rows]
    finally:
        await db.close()
