"""
botgraph.api.routers.deployments

Deployment management endpoints.

Responsibilities:
- Deploy a project's commands to a guild (full-replace registration).
- Undeploy a project from a guild.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import (
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_502_BAD_GATEWAY,
)

from botgraph.api.deps import bot_service_dep
from botgraph.errors import ExternalRegistrationError
from botgraph.services.bot_service import BotService

router = APIRouter(prefix="/v1/deployments", tags=["deployments"])


class DeployRequest(BaseModel):
    project_id: uuid.UUID
    guild_id: str = Field(min_length=1, max_length=32)


class DeployResponse(BaseModel):
    project_id: uuid.UUID
    guild_id: str
    commands_registered: int


@router.post("", response_model=DeployResponse, status_code=HTTP_201_CREATED)
async def deploy(body: DeployRequest, bot: BotService = Depends(bot_service_dep)) -> DeployResponse:
    try:
        count = await bot.router.deploy(body.project_id, body.guild_id)
    except ValueError as e:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except ExternalRegistrationError as e:
        raise HTTPException(status_code=HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    return DeployResponse(
        project_id=body.project_id, guild_id=body.guild_id, commands_registered=count
    )


@router.delete("/{project_id}/{guild_id}")
async def undeploy(
    project_id: uuid.UUID, guild_id: str, bot: BotService = Depends(bot_service_dep)
) -> dict[str, str]:
    try:
        await bot.router.undeploy(project_id, guild_id)
    except ExternalRegistrationError as e:
        raise HTTPException(status_code=HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    return {"status": "undeployed"}
