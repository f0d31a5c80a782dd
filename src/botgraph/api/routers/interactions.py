"""
botgraph.api.routers.interactions

Platform interaction webhook.

Responsibilities:
- Verify the ed25519 request signature.
- Answer PING; hand application commands to the bot service.
"""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_202_ACCEPTED,
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from botgraph.api.deps import bot_service_dep, settings_dep
from botgraph.platform.events import APPLICATION_COMMAND, PING, parse_interaction
from botgraph.platform.signature import verify_signature
from botgraph.services.bot_service import BotService
from botgraph.settings import Settings

router = APIRouter(tags=["interactions"])


@router.post("/interactions")
async def interactions(
    request: Request,
    settings: Settings = Depends(settings_dep),
    bot: BotService = Depends(bot_service_dep),
):
    if not bot.started:
        raise HTTPException(status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="bot not started")

    body = await request.body()
    ok = verify_signature(
        public_key_hex=settings.discord_public_key,
        signature_hex=request.headers.get("x-signature-ed25519", ""),
        timestamp=request.headers.get("x-signature-timestamp", ""),
        body=body,
    )
    if not ok:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="invalid request signature")

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="invalid JSON") from e

    if payload.get("type") == PING:
        return {"type": PING}
    if payload.get("type") != APPLICATION_COMMAND:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST,
            detail=f"unsupported interaction type {payload.get('type')}",
        )

    bot.dispatch(parse_interaction(payload))
    # The reply goes out through the interaction callback endpoint.
    return JSONResponse(status_code=HTTP_202_ACCEPTED, content={"status": "accepted"})
