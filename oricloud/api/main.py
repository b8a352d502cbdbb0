"""FastAPI entrypoint for OriCloud."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger
from strawberry.fastapi import GraphQLRouter

from oricloud.api.graphql.context import get_context
from oricloud.api.graphql.schema import schema
from oricloud.api.routes.system import router as system_router
from oricloud.config import get_settings
from oricloud.core.usecases.winners import WinnerTracker
from oricloud.infra.db.sqlite import init_db
from oricloud.infra.events.broker import TopicBroker
from oricloud.logging_setup import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    info = await init_db(settings=settings)
    logger.info("Database ready at {}", info["db_path"])

    app.state.broker = TopicBroker(queue_size=settings.subscription_queue_size)
    app.state.winners = WinnerTracker()
    try:
        yield
    finally:
        app.state.broker.close()
        logger.info("Live update broker closed")


settings = get_settings()

app = FastAPI(
    title="OriCloud",
    description="Orienteering event results with live competitor updates",
    version="1.0.0",
    lifespan=lifespan,
)

graphql_router = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql" if settings.graphql_ide else None,
)

app.include_router(graphql_router, prefix="/graphql")
app.include_router(system_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "oricloud"}
