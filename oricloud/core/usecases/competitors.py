"""Competitor mutations.

Every mutation persists first and only then publishes: the class topic gets
the fresh class list, the event topic gets the changed record. The record
change and its protocol entry commit together, and a failed write raises
before anything is published.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from loguru import logger

from oricloud.core.errors import AuthorizationError, NotFoundError, ValidationError
from oricloud.core.usecases.winners import WinnerTracker
from oricloud.infra.events.broker import COMPETITOR_UPDATED, COMPETITORS_BY_CLASS_UPDATED, TopicBroker, topic
from oricloud.infra.repos import competitors as competitors_repo
from oricloud.infra.repos._common import translate_db_errors
from oricloud.infra.repos.classes import get_class
from oricloud.infra.repos.events import get_event

COMPETITOR_FIELD_TYPES = {
    "class_id": "int",
    "team_id": "int",
    "leg": "int",
    "firstname": "str",
    "lastname": "str",
    "bib_number": "int",
    "nationality": "str",
    "registration": "str",
    "license": "str",
    "ranking": "int",
    "rank_points_avg": "int",
    "organisation": "str",
    "short_name": "str",
    "card": "int",
    "start_time": "datetime",
    "finish_time": "datetime",
    "time": "int",
    "status": "str",
    "late_start": "bool",
    "note": "str",
    "external_id": "str",
}

UPDATE_ORIGINS = {"START", "FINISH", "IT", "OFFICE"}
STATUS_CHANGE_ORIGINS = {"START"}
STATUS_CHANGE_VALUES = {"Active", "Inactive", "DidNotStart", "LateStart"}
# A runner may only be touched from the start while not yet running to the finish.
PRE_FINISH_STATUSES = {"Inactive", "DidNotStart", "Active"}


def _coerce(name: str, kind: str, value: Any) -> Any:
    try:
        if kind == "int":
            return int(value)
        if kind == "bool":
            return bool(value)
        if kind == "datetime":
            raw = str(value).strip()
            if raw.endswith("Z"):
                raw = raw[:-1] + "+00:00"
            return datetime.fromisoformat(raw).isoformat()
        return str(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid value for {name}", details={"field": name}) from exc


def coerce_competitor_changes(raw: dict) -> dict:
    """Keep known competitor fields with a value, converted to their storage type."""
    changes = {}
    for name, value in (raw or {}).items():
        kind = COMPETITOR_FIELD_TYPES.get(name)
        if kind is None or value is None:
            continue
        changes[name] = _coerce(name, kind, value)
    return changes


async def ensure_event_author(event_id: str, author_id: int | None) -> dict:
    """Return the event; author_id None skips the ownership check."""
    with translate_db_errors("Failed to load event"):
        event = await get_event(event_id)
    if not event:
        raise NotFoundError("Event not found", details={"event_id": event_id})
    if author_id is not None and event.get("author_id") != author_id:
        raise AuthorizationError("Not authorized to change competitors of this event")
    return event


async def _load_competitor(event_id: str, competitor_id: int) -> dict:
    with translate_db_errors("Failed to load competitor"):
        competitor = await competitors_repo.get_competitor(competitor_id)
    if not competitor or competitor.get("event_id") != event_id:
        raise NotFoundError(
            f"Competitor with ID {competitor_id} does not exist in this event",
            details={"competitor_id": competitor_id},
        )
    return competitor


async def _ensure_class_in_event(event_id: str, class_id: int) -> dict:
    with translate_db_errors("Failed to load class"):
        row = await get_class(class_id)
    if not row or row.get("event_id") != event_id:
        raise ValidationError(f"Class {class_id} does not belong to this event", details={"class_id": class_id})
    return row


def _require_pre_finish(competitor: dict) -> None:
    if competitor.get("status") not in PRE_FINISH_STATUSES:
        raise ValidationError("Could not change status of runner that has already finished")


async def publish_competitor_change(
    broker: TopicBroker,
    event_id: str,
    competitor: dict,
    *,
    previous_class_id: int | None = None,
    winners: WinnerTracker | None = None,
) -> None:
    class_ids = [int(competitor["class_id"])]
    if previous_class_id is not None and int(previous_class_id) not in class_ids:
        class_ids.append(int(previous_class_id))

    for class_id in class_ids:
        with translate_db_errors("Error publishing subscription update"):
            class_list = await competitors_repo.list_competitors(class_id=class_id)
        broker.publish(topic(COMPETITORS_BY_CLASS_UPDATED, class_id), {"competitorsByClassUpdated": class_list})
    broker.publish(topic(COMPETITOR_UPDATED, event_id), {"competitorUpdated": competitor})

    if winners is not None:
        await winners.refresh(broker, event_id)


def _protocol_value(value: Any) -> str | None:
    return None if value is None else str(value)


async def update_competitor(
    broker: TopicBroker,
    *,
    event_id: str,
    competitor_id: int,
    origin: str,
    changes: dict,
    author_id: int | None,
    winners: WinnerTracker | None = None,
) -> dict:
    if origin not in UPDATE_ORIGINS:
        raise ValidationError(f"Unsupported origin {origin!r}", details={"origin": origin})
    data = coerce_competitor_changes(changes)
    if not data:
        raise ValidationError("Nothing to update")

    await ensure_event_author(event_id, author_id)
    current = await _load_competitor(event_id, competitor_id)
    if "class_id" in data and data["class_id"] != current["class_id"]:
        await _ensure_class_in_event(event_id, data["class_id"])

    if origin == "START":
        _require_pre_finish(current)
        change_type = "si_card_change"
        previous_value = _protocol_value(current.get("card"))
        new_value = _protocol_value(data.get("card", current.get("card")))
    else:
        change_type = "competitor_update"
        previous_value = json.dumps({k: current.get(k) for k in sorted(data)}, default=str)
        new_value = json.dumps({k: data[k] for k in sorted(data)}, default=str)

    protocol = {
        "event_id": event_id,
        "origin": origin,
        "change_type": change_type,
        "previous_value": previous_value,
        "new_value": new_value,
        "author_id": author_id,
    }
    with translate_db_errors("Error updating competitor"):
        updated = await competitors_repo.update_competitor(competitor_id, data, protocol=protocol)
    logger.info("Competitor {} updated from {} ({})", competitor_id, origin, ", ".join(sorted(data)))

    await publish_competitor_change(
        broker,
        event_id,
        updated,
        previous_class_id=current["class_id"],
        winners=winners,
    )
    return {"message": "Competitor has been successfully updated", "competitor": updated}


async def change_competitor_status(
    broker: TopicBroker,
    *,
    event_id: str,
    competitor_id: int,
    origin: str,
    status: str,
    author_id: int | None,
    winners: WinnerTracker | None = None,
) -> dict:
    if origin not in STATUS_CHANGE_ORIGINS:
        raise ValidationError(f"Unsupported origin {origin!r}", details={"origin": origin})
    if status not in STATUS_CHANGE_VALUES:
        raise ValidationError(f"Unsupported status {status!r}", details={"status": status})

    await ensure_event_author(event_id, author_id)
    current = await _load_competitor(event_id, competitor_id)

    new_status = status
    late_start = False
    if origin == "START":
        _require_pre_finish(current)
        if status == "LateStart":
            new_status = "Active"
            late_start = True

    protocol = {
        "event_id": event_id,
        "origin": origin,
        "change_type": "status_change",
        "previous_value": current.get("status"),
        "new_value": new_status,
        "author_id": author_id,
    }
    with translate_db_errors("Error updating competitor"):
        updated = await competitors_repo.update_competitor(
            competitor_id, {"status": new_status, "late_start": late_start}, protocol=protocol
        )
    logger.info("Competitor {} status {} -> {}", competitor_id, current.get("status"), new_status)

    await publish_competitor_change(broker, event_id, updated, winners=winners)
    return {"message": "Competitor status has been successfully changed", "competitor": updated}


async def create_competitor(
    broker: TopicBroker,
    *,
    event_id: str,
    origin: str,
    data: dict,
    author_id: int | None,
    winners: WinnerTracker | None = None,
) -> dict:
    fields = coerce_competitor_changes(data)
    for required in ("class_id", "firstname", "lastname"):
        if fields.get(required) in (None, ""):
            raise ValidationError(f"Missing required field {required}", details={"field": required})

    await ensure_event_author(event_id, author_id)
    await _ensure_class_in_event(event_id, fields["class_id"])

    protocol = {
        "event_id": event_id,
        "origin": origin,
        "change_type": "competitor_create",
        "previous_value": None,
        "new_value": f"{fields['lastname']} {fields['firstname']}",
        "author_id": author_id,
    }
    with translate_db_errors("Error storing competitor"):
        created = await competitors_repo.create_competitor(fields, protocol=protocol)
    logger.info("Competitor {} created in class {}", created["id"], created["class_id"])

    await publish_competitor_change(broker, event_id, created, winners=winners)
    return {"message": "Competitor successfully added", "competitor": created}
