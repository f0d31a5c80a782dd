"""
botgraph.api.routers.guilds

Forwarded guild membership events (bot added to / removed from a guild).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from botgraph.api.deps import bot_service_dep
from botgraph.services.bot_service import BotService

router = APIRouter(prefix="/v1/guilds", tags=["guilds"])


@router.post("/{guild_id}/join")
async def guild_join(guild_id: str, bot: BotService = Depends(bot_service_dep)) -> dict[str, str]:
    # Resync failures are logged by the router, not surfaced to the event source.
    await bot.router.on_guild_join(guild_id)
    return {"status": "ok"}


@router.post("/{guild_id}/leave")
async def guild_leave(guild_id: str, bot: BotService = Depends(bot_service_dep)) -> dict[str, str]:
    await bot.router.on_guild_leave(guild_id)
    return {"status": "ok"}
