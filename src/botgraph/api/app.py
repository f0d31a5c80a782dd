"""
botgraph.api.app

FastAPI app factory for the botgraph service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose process-scoped infrastructure (DB engine, shared HTTP
  client, platform client, bot service).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from botgraph import __version__
from botgraph.api.routers.deployments import router as deployments_router
from botgraph.api.routers.graphs import router as graphs_router
from botgraph.api.routers.guilds import router as guilds_router
from botgraph.api.routers.health import router as health_router
from botgraph.api.routers.interactions import router as interactions_router
from botgraph.api.routers.simulate import router as simulate_router
from botgraph.db.init_db import init_db
from botgraph.db.session import create_engine, create_sessionmaker
from botgraph.errors import ConfigurationError
from botgraph.observability.logging import configure_logging, get_logger
from botgraph.observability.middleware import RequestContextMiddleware
from botgraph.platform.discord import DiscordClient
from botgraph.services.bot_service import BotService
from botgraph.settings import Settings

log = get_logger(__name__)


def create_app(
    *, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> FastAPI:
    """
    `transport` replaces the network for the shared HTTP client (platform REST
    calls and ApiCall nodes); tests pass an `httpx.MockTransport`.
    """

    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            await init_db(engine)

        http = httpx.AsyncClient(transport=transport, timeout=10.0)
        app.state.http = http
        bot = BotService(
            settings=settings,
            session_factory=app.state.sessionmaker,
            platform=DiscordClient(settings=settings, http=http),
            http=http,
        )
        app.state.bot = bot
        try:
            await bot.start()
        except ConfigurationError as e:
            if settings.env == "prod":
                raise
            # Simulation, validation and authoring still work without credentials.
            log.warning("bot_not_started", missing=e.missing)

        try:
            yield
        finally:
            await bot.stop()
            await http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="botgraph",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(interactions_router)
    app.include_router(deployments_router)
    app.include_router(guilds_router)
    app.include_router(simulate_router)
    app.include_router(graphs_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; dispatch, execution and persistence rules live in the
# services/runtime/db layers.
