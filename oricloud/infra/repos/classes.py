"""Class repository (SQLite)."""

from __future__ import annotations

from oricloud.infra.db.sqlite import get_db
from oricloud.infra.repos._common import row_to_dict


async def create_class(
    *,
    event_id: str,
    name: str,
    class_id: int | None = None,
    external_id: str | None = None,
    length: int | None = None,
    climb: int | None = None,
    controls_count: int | None = None,
    sex: str | None = None,
    status: str | None = None,
) -> dict:
    db = await get_db()
    try:
        cur = await db.execute(
            "INSERT INTO classes(id, event_id, external_id, name, length, climb, controls_count, sex, status) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (class_id, event_id, external_id, name.strip(), length, climb, controls_count, sex, status),
        )
        await db.commit()
        new_class_id = int(cur.lastrowid)
    finally:
        await db.close()
    return await get_class(new_class_id) or {}


async def get_class(class_id: int) -> dict | None:
    db = await get_db()
    try:
        cur = await db.execute("SELECT * FROM classes WHERE id = ? LIMIT 1", (int(class_id),))
        row = await cur.fetchone()
        return row_to_dict(row) if row else None
    finally:
        await db.close()


async def list_event_classes(event_id: str) -> list[dict]:
    db = await get_db()
    try:
        cur = await db.execute("SELECT * FROM classes WHERE event_id = ? ORDER BY name ASC, id ASC", (event_id,))
        rows = await cur.fetchall()
        return [row_to_dict(r) for r in rows]
    finally:
        await db.close()
