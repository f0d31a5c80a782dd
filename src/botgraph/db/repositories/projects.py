"""
botgraph.db.repositories.projects

Repositories for `BotProject` and `Command`.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from botgraph.db.models import BotProject, Command, CommandGraph, CommandType


class ProjectRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, owner: str, name: str) -> BotProject:
        project = BotProject(owner=owner, name=name)
        self._session.add(project)
        await self._session.flush()
        return project

    async def get(self, project_id: uuid.UUID) -> BotProject | None:
        return await self._session.get(BotProject, project_id)


class CommandRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        project_id: uuid.UUID,
        name: str,
        description: str | None = None,
        options: list[dict[str, Any]] | None = None,
        type: CommandType = CommandType.slash,
        is_enabled: bool = True,
    ) -> Command:
        command = Command(
            project_id=project_id,
            name=name,
            description=description,
            options=options or [],
            type=type,
            is_enabled=is_enabled,
        )
        self._session.add(command)
        await self._session.flush()
        return command

    async def get(self, command_id: uuid.UUID) -> Command | None:
        return await self._session.get(Command, command_id)

    async def enabled_slash_commands(self, project_id: uuid.UUID) -> list[Command]:
        stmt = (
            select(Command)
            .where(
                Command.project_id == project_id,
                Command.is_enabled.is_(True),
                Command.type == CommandType.slash,
            )
            .order_by(Command.name)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def active_graph(self, *, project_id: uuid.UUID, name: str) -> dict[str, Any] | None:
        stmt = (
            select(CommandGraph.graph_json)
            .join(Command, Command.id == CommandGraph.command_id)
            .where(
                Command.project_id == project_id,
                Command.name == name,
                Command.is_enabled.is_(True),
                CommandGraph.is_active.is_(True),
            )
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()
