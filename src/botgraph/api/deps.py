"""
botgraph.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the bot service.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from botgraph.services.bot_service import BotService
from botgraph.settings import Settings, get_settings


def settings_dep(request: Request) -> Settings:
    # The app factory pins its settings; fall back to the environment otherwise.
    return getattr(request.app.state, "settings", None) or get_settings()


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created on startup in `botgraph.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped session; commits are explicit in the routers/services.
    async with session_factory() as session:
        yield session


def bot_service_dep(request: Request) -> BotService:
    return request.app.state.bot  # type: ignore[attr-defined]
