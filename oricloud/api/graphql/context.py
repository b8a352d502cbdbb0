"""Per-request GraphQL context."""

from __future__ import annotations

from typing import Any

from starlette.requests import HTTPConnection

from oricloud.api.auth import AuthPrincipal, principal_from_authorization
from oricloud.core.usecases.winners import WinnerTracker
from oricloud.infra.events.broker import TopicBroker


async def get_context(connection: HTTPConnection) -> dict[str, Any]:
    state = connection.app.state
    return {
        "broker": state.broker,
        "winners": state.winners,
        "authorization": connection.headers.get("authorization"),
    }


def broker_from(context: dict) -> TopicBroker:
    return context["broker"]


def winners_from(context: dict) -> WinnerTracker | None:
    return context.get("winners")


def principal_from(context: dict) -> AuthPrincipal:
    return principal_from_authorization(context.get("authorization"))
