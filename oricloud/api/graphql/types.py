"""GraphQL object and input types."""

from __future__ import annotations

from typing import Optional

import strawberry

from oricloud.core.errors import NotFoundError
from oricloud.infra.repos._common import translate_db_errors
from oricloud.infra.repos.classes import get_class, list_event_classes
from oricloud.infra.repos.competitors import list_competitors


COMPETITOR_FIELDS = (
    "id",
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
    "updated_at",
)
CLASS_FIELDS = ("id", "event_id", "external_id", "name", "length", "climb", "controls_count", "sex", "status")
EVENT_FIELDS = (
    "id",
    "name",
    "organizer",
    "location",
    "date",
    "zero_time",
    "relay",
    "ranking",
    "published",
    "author_id",
    "created_at",
    "updated_at",
)
CHANGELOG_FIELDS = (
    "id",
    "event_id",
    "competitor_id",
    "origin",
    "type",
    "previous_value",
    "new_value",
    "author_id",
    "created_at",
)


def _pick(cls, names: tuple[str, ...], row: dict):
    return cls(**{name: row.get(name) for name in names})


@strawberry.type
class Competitor:
    id: int
    class_id: int
    team_id: Optional[int]
    leg: Optional[int]
    firstname: str
    lastname: str
    bib_number: Optional[int]
    nationality: Optional[str]
    registration: str
    license: Optional[str]
    ranking: Optional[int]
    rank_points_avg: Optional[int]
    organisation: Optional[str]
    short_name: Optional[str]
    card: Optional[int]
    start_time: Optional[str]
    finish_time: Optional[str]
    time: Optional[int]
    status: Optional[str]
    late_start: bool
    note: Optional[str]
    external_id: Optional[str]
    updated_at: str

    @strawberry.field(name="class")
    async def class_(self) -> Class:
        with translate_db_errors("Failed to fetch class"):
            row = await get_class(self.class_id)
        if not row:
            raise NotFoundError("Class not found")
        return class_from_row(row)


@strawberry.type
class Class:
    id: int
    event_id: str
    external_id: Optional[str]
    name: str
    length: Optional[int]
    climb: Optional[int]
    controls_count: Optional[int]
    sex: Optional[str]
    status: Optional[str]

    @strawberry.field
    async def competitors(self) -> list[Competitor]:
        with translate_db_errors("Failed to fetch competitors"):
            rows = await list_competitors(class_id=self.id)
        return [competitor_from_row(r) for r in rows]


@strawberry.type
class Event:
    id: str
    name: str
    organizer: Optional[str]
    location: Optional[str]
    date: str
    zero_time: str
    relay: bool
    ranking: bool
    published: bool
    author_id: Optional[int]
    created_at: str
    updated_at: str

    @strawberry.field
    async def classes(self) -> list[Class]:
        with translate_db_errors("Failed to fetch classes"):
            rows = await list_event_classes(self.id)
        return [class_from_row(r) for r in rows]


@strawberry.type
class Changelog:
    id: int
    event_id: str
    competitor_id: int
    origin: str
    type: str
    previous_value: Optional[str]
    new_value: Optional[str]
    author_id: Optional[int]
    created_at: str


@strawberry.type
class WinnerNotification:
    event_id: str
    class_id: int
    class_name: str
    name: str


@strawberry.type
class ResponseMessage:
    message: str


@strawberry.type
class StoreCompetitorResponse:
    message: str
    competitor: Competitor


@strawberry.input
class StatusChange:
    event_id: strawberry.ID
    competitor_id: int
    origin: str
    status: str


@strawberry.input
class UpdateCompetitorInput:
    event_id: strawberry.ID
    competitor_id: int
    origin: str
    class_id: Optional[int] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    bib_number: Optional[int] = None
    nationality: Optional[str] = None
    registration: Optional[str] = None
    license: Optional[str] = None
    ranking: Optional[int] = None
    rank_points_avg: Optional[int] = None
    organisation: Optional[str] = None
    short_name: Optional[str] = None
    card: Optional[int] = None
    start_time: Optional[str] = None
    finish_time: Optional[str] = None
    time: Optional[int] = None
    team_id: Optional[int] = None
    leg: Optional[int] = None
    status: Optional[str] = None
    late_start: Optional[bool] = None
    note: Optional[str] = None
    external_id: Optional[str] = None


@strawberry.input
class StoreCompetitorInput:
    event_id: strawberry.ID
    class_id: int
    origin: str
    firstname: str
    lastname: str
    bib_number: Optional[int] = None
    nationality: Optional[str] = None
    registration: Optional[str] = None
    license: Optional[str] = None
    ranking: Optional[int] = None
    rank_points_avg: Optional[int] = None
    organisation: Optional[str] = None
    short_name: Optional[str] = None
    card: Optional[int] = None
    start_time: Optional[str] = None
    finish_time: Optional[str] = None
    time: Optional[int] = None
    team_id: Optional[int] = None
    leg: Optional[int] = None
    status: Optional[str] = None
    late_start: Optional[bool] = None
    note: Optional[str] = None
    external_id: Optional[str] = None


def competitor_from_row(row: dict) -> Competitor:
    return _pick(Competitor, COMPETITOR_FIELDS, row)


def class_from_row(row: dict) -> Class:
    return _pick(Class, CLASS_FIELDS, row)


def event_from_row(row: dict) -> Event:
    return _pick(Event, EVENT_FIELDS, row)


def changelog_from_row(row: dict) -> Changelog:
    return _pick(Changelog, CHANGELOG_FIELDS, row)


def winner_from_payload(payload: dict) -> WinnerNotification:
    return WinnerNotification(
        event_id=payload["eventId"],
        class_id=int(payload["classId"]),
        class_name=payload["className"],
        name=payload["name"],
    )
