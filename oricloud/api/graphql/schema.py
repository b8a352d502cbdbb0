"""GraphQL schema: queries, competitor mutations and live subscriptions."""

from __future__ import annotations

from typing import AsyncGenerator, Iterator, Optional

import strawberry
from strawberry.extensions import SchemaExtension
from strawberry.types import Info

from oricloud.api.graphql.context import broker_from, principal_from, winners_from
from oricloud.api.graphql.types import (
    Changelog,
    Class,
    Competitor,
    Event,
    ResponseMessage,
    StatusChange,
    StoreCompetitorInput,
    StoreCompetitorResponse,
    UpdateCompetitorInput,
    WinnerNotification,
    changelog_from_row,
    class_from_row,
    competitor_from_row,
    event_from_row,
    winner_from_payload,
)
from oricloud.core.errors import NotFoundError, OriCloudError
from oricloud.core.usecases import competitors as competitor_usecases
from oricloud.core.usecases.streams import (
    competitor_updated_stream,
    competitors_by_class_stream,
    winner_updated_stream,
)
from oricloud.infra.repos._common import translate_db_errors
from oricloud.infra.repos.classes import get_class, list_event_classes
from oricloud.infra.repos.competitors import get_competitor, list_competitors
from oricloud.infra.repos.events import get_event, list_events
from oricloud.infra.repos.protocols import list_protocol_records


class ErrorCodeExtension(SchemaExtension):
    """Expose the domain error code under ``extensions.code``."""

    def on_operation(self) -> Iterator[None]:
        yield
        result = getattr(self.execution_context, "result", None)
        for error in getattr(result, "errors", None) or []:
            original = getattr(error, "original_error", None)
            if isinstance(original, OriCloudError):
                error.extensions = {**(error.extensions or {}), "code": original.code}


def _input_fields(data) -> dict:
    return {
        name: getattr(data, name)
        for name in competitor_usecases.COMPETITOR_FIELD_TYPES
        if getattr(data, name, None) is not None
    }


@strawberry.type
class Query:
    @strawberry.field
    async def events(self) -> list[Event]:
        with translate_db_errors("Failed to fetch events"):
            rows = await list_events()
        return [event_from_row(r) for r in rows]

    @strawberry.field
    async def event(self, id: str) -> Optional[Event]:
        with translate_db_errors("Failed to fetch event"):
            row = await get_event(id)
        return event_from_row(row) if row else None

    @strawberry.field
    async def event_classes(self, event_id: str) -> list[Class]:
        with translate_db_errors("Failed to fetch classes"):
            rows = await list_event_classes(event_id)
        return [class_from_row(r) for r in rows]

    @strawberry.field
    async def class_by_id(self, id: int) -> Class:
        with translate_db_errors("Failed to fetch class"):
            row = await get_class(id)
        if not row:
            raise NotFoundError("Class not found")
        return class_from_row(row)

    @strawberry.field
    async def competitor_by_id(self, id: int) -> Competitor:
        with translate_db_errors("Failed to fetch competitor"):
            row = await get_competitor(id)
        if not row:
            raise NotFoundError("Competitor not found")
        return competitor_from_row(row)

    @strawberry.field
    async def competitors_by_class(self, id: int) -> list[Competitor]:
        with translate_db_errors("Failed to fetch competitors"):
            rows = await list_competitors(class_id=id)
        return [competitor_from_row(r) for r in rows]

    @strawberry.field
    async def competitors_by_team(self, id: int) -> list[Competitor]:
        with translate_db_errors("Failed to fetch competitors"):
            rows = await list_competitors(team_id=id)
        return [competitor_from_row(r) for r in rows]

    @strawberry.field
    async def changelog_by_event(self, event_id: str) -> list[Changelog]:
        with translate_db_errors("Failed to fetch changelog"):
            rows = await list_protocol_records(event_id=event_id)
        return [changelog_from_row(r) for r in rows]


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def competitor_status_change(self, info: Info, input: StatusChange) -> ResponseMessage:
        principal = principal_from(info.context)
        result = await competitor_usecases.change_competitor_status(
            broker_from(info.context),
            event_id=str(input.event_id),
            competitor_id=input.competitor_id,
            origin=input.origin,
            status=input.status,
            author_id=principal.user_id,
            winners=winners_from(info.context),
        )
        return ResponseMessage(message=result["message"])

    @strawberry.mutation
    async def competitor_update(self, info: Info, input: UpdateCompetitorInput) -> ResponseMessage:
        principal = principal_from(info.context)
        result = await competitor_usecases.update_competitor(
            broker_from(info.context),
            event_id=str(input.event_id),
            competitor_id=input.competitor_id,
            origin=input.origin,
            changes=_input_fields(input),
            author_id=principal.user_id,
            winners=winners_from(info.context),
        )
        return ResponseMessage(message=result["message"])

    @strawberry.mutation
    async def competitor_create(self, info: Info, input: StoreCompetitorInput) -> StoreCompetitorResponse:
        principal = principal_from(info.context)
        result = await competitor_usecases.create_competitor(
            broker_from(info.context),
            event_id=str(input.event_id),
            origin=input.origin,
            data=_input_fields(input),
            author_id=principal.user_id,
            winners=winners_from(info.context),
        )
        return StoreCompetitorResponse(
            message=result["message"],
            competitor=competitor_from_row(result["competitor"]),
        )


@strawberry.type
class Subscription:
    @strawberry.subscription
    async def competitors_by_class_updated(
        self, info: Info, class_id: int
    ) -> AsyncGenerator[Optional[list[Competitor]], None]:
        stream = competitors_by_class_stream(broker_from(info.context), class_id)
        try:
            async for payload in stream:
                yield [competitor_from_row(r) for r in payload["competitorsByClassUpdated"]]
        finally:
            await stream.aclose()

    @strawberry.subscription
    async def competitor_updated(self, info: Info, event_id: str) -> AsyncGenerator[Competitor, None]:
        stream = competitor_updated_stream(broker_from(info.context), event_id)
        try:
            async for payload in stream:
                yield competitor_from_row(payload["competitorUpdated"])
        finally:
            await stream.aclose()

    @strawberry.subscription
    async def winner_updated(self, info: Info, event_id: str) -> AsyncGenerator[Optional[WinnerNotification], None]:
        stream = winner_updated_stream(broker_from(info.context), event_id)
        try:
            async for payload in stream:
                yield winner_from_payload(payload["winnerUpdated"])
        finally:
            await stream.aclose()


schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
    subscription=Subscription,
    extensions=[ErrorCodeExtension],
)
