"""Competitor repository (SQLite)."""

from __future__ import annotations

from typing import Any

from oricloud.core.errors import NotFoundError
from oricloud.infra.db.sqlite import get_db
from oricloud.infra.repos._common import row_to_dict, utcnow_iso
from oricloud.infra.repos.protocols import insert_protocol_record

COMPETITOR_COLUMNS = (
    "class_id",
    "team_id",
    "leg",
    "firstname",
    "lastname",
    "bib_number",
    "nationality",
    "registration",
    "license",
    "ranking",
    "rank_points_avg",
    "organisation",
    "short_name",
    "card",
    "start_time",
    "finish_time",
    "time",
    "status",
    "late_start",
    "note",
    "external_id",
)

_SELECT = "SELECT c.*, cl.event_id AS event_id FROM competitors c JOIN classes cl ON cl.id = c.class_id"


def _row_to_dict(row) -> dict[str, Any]:
    return row_to_dict(row, bool_fields=("late_start",))


def _db_value(value: Any) -> Any:
    return int(value) if isinstance(value, bool) else value


async def create_competitor(
    data: dict,
    *,
    competitor_id: int | None = None,
    protocol: dict | None = None,
) -> dict:
    """Insert a competitor, plus its protocol record in the same transaction when given."""
    fields = {k: v for k, v in data.items() if k in COMPETITOR_COLUMNS and v is not None}
    fields.setdefault("registration", "")
    fields.setdefault("status", "Inactive")
    fields.setdefault("late_start", False)
    fields["updated_at"] = utcnow_iso()
    if competitor_id is not None:
        fields["id"] = int(competitor_id)

    columns = list(fields.keys())
    placeholders = ", ".join("?" for _ in columns)
    db = await get_db()
    try:
        await db.execute("BEGIN IMMEDIATE")
        cur = await db.execute(
            f"INSERT INTO competitors({', '.join(columns)}) VALUES ({placeholders})",
            tuple(_db_value(fields[c]) for c in columns),
        )
        new_competitor_id = int(cur.lastrowid)
        if protocol is not None:
            await insert_protocol_record(db, competitor_id=new_competitor_id, **protocol)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    finally:
        await db.close()
    return await get_competitor(new_competitor_id) or {}


async def get_competitor(competitor_id: int) -> dict | None:
    db = await get_db()
    try:
        cur = await db.execute(f"{_SELECT} WHERE c.id = ? LIMIT 1", (int(competitor_id),))
        row = await cur.fetchone()
        return _row_to_dict(row) if row else None
    finally:
        await db.close()


async def list_competitors(*, class_id: int | None = None, team_id: int | None = None) -> list[dict]:
    """Competitors matching the filter, ordered by id."""
    clauses = []
    params: list[Any] = []
    if class_id is not None:
        clauses.append("c.class_id = ?")
        params.append(int(class_id))
    if team_id is not None:
        clauses.append("c.team_id = ?")
        params.append(int(team_id))
    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""

    db = await get_db()
    try:
        cur = await db.execute(f"{_SELECT} {where} ORDER BY c.id ASC", tuple(params))
        rows = await cur.fetchall()
        return [_row_to_dict(r) for r in rows]
    finally:
        await db.close()


async def update_competitor(competitor_id: int, data: dict, *, protocol: dict | None = None) -> dict:
    """Apply field changes; the protocol record, when given, commits or rolls back with them."""
    fields = {k: v for k, v in data.items() if k in COMPETITOR_COLUMNS}
    fields["updated_at"] = utcnow_iso()
    assignments = ", ".join(f"{name} = ?" for name in fields)

    db = await get_db()
    try:
        await db.execute("BEGIN IMMEDIATE")
        cur = await db.execute(
            f"UPDATE competitors SET {assignments} WHERE id = ?",
            (*(_db_value(v) for v in fields.values()), int(competitor_id)),
        )
        if cur.rowcount == 0:
            raise NotFoundError(f"Competitor with ID {competitor_id} does not exist")
        if protocol is not None:
            await insert_protocol_record(db, competitor_id=int(competitor_id), **protocol)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    finally:
        await db.close()
    return await get_competitor(competitor_id) or {}


async def list_class_leaders(event_id: str) -> list[dict]:
    """Fastest finished competitor per class of an event."""
    db = await get_db()
    try:
        cur = await db.execute(
            "SELECT id, class_id, class_name, firstname, lastname, time FROM ("
            "  SELECT c.id, c.class_id, cl.name AS class_name, c.firstname, c.lastname, c.time,"
            "         ROW_NUMBER() OVER (PARTITION BY c.class_id ORDER BY c.time ASC, c.id ASC) AS rn"
            "  FROM competitors c JOIN classes cl ON cl.id = c.class_id"
            "  WHERE cl.event_id = ? AND c.time IS NOT NULL AND c.status = 'OK'"
            ") WHERE rn = 1 ORDER BY class_id ASC",
            (event_id,),
        )
        rows = await cur.fetchall()
        return [row_to_dict(r) for r in rows]
    finally:
        await db.close()
