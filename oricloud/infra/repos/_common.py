"""Shared helpers for SQLite repositories."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator

import aiosqlite
from loguru import logger

from oricloud.core.errors import DatabaseError


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id(prefix: str | None = None) -> str:
    value = uuid.uuid4().hex
    return f"{prefix}_{value}" if prefix else value


def row_to_dict(row, *, bool_fields: Iterable[str] = ()) -> dict[str, Any]:
    out = dict(row) if row else {}
    for name in bool_fields:
        if name in out:
            out[name] = bool(out[name])
    return out


@contextmanager
def translate_db_errors(message: str) -> Iterator[None]:
    """Re-raise driver errors as DatabaseError."""
    try:
        yield
    except aiosqlite.Error as exc:
        logger.error("{}: {}", message, exc)
        raise DatabaseError(message, details={"reason": str(exc)}) from exc
