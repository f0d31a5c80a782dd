"""
botgraph.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) with DB connectivity validation.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from botgraph.api.deps import bot_service_dep, db_session
from botgraph.services.bot_service import BotService

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    bot: BotService = Depends(bot_service_dep),
) -> dict[str, str | bool]:
    await session.execute(text("SELECT 1"))
    return {"status": "ready", "bot_started": bot.started}
