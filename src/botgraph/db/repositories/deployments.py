"""
botgraph.db.repositories.deployments

Repository for `GuildDeployment` records.

Responsibilities:
- Read active deployments for a guild (the source of truth for the dispatch index).
- Upsert/deactivate deployment rows.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from botgraph.db.models import GuildDeployment


def _now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class DeploymentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, *, guild_id: str, project_id: uuid.UUID) -> GuildDeployment | None:
        stmt = select(GuildDeployment).where(
            GuildDeployment.guild_id == guild_id, GuildDeployment.project_id == project_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def active_for_guild(self, guild_id: str) -> list[GuildDeployment]:
        stmt = (
            select(GuildDeployment)
            .where(GuildDeployment.guild_id == guild_id, GuildDeployment.is_active.is_(True))
            .order_by(GuildDeployment.deployed_at, GuildDeployment.id)
        )
        return list((await self._session.execute(stmt)).scalars())

    async def activate(self, *, guild_id: str, project_id: uuid.UUID) -> GuildDeployment:
        row = await self.get(guild_id=guild_id, project_id=project_id)
        if row is None:
            row = GuildDeployment(guild_id=guild_id, project_id=project_id, is_active=True)
            self._session.add(row)
        else:
            row.is_active = True
            row.updated_at = _now()
        await self._session.flush()
        return row

    async def deactivate(self, *, guild_id: str, project_id: uuid.UUID) -> None:
        row = await self.get(guild_id=guild_id, project_id=project_id)
        if row is None:
            return
        row.is_active = False
        row.updated_at = _now()

    async def deactivate_guild(self, guild_id: str) -> int:
        result = await self._session.execute(
            update(GuildDeployment)
            .where(GuildDeployment.guild_id == guild_id, GuildDeployment.is_active.is_(True))
            .values(is_active=False, updated_at=_now())
        )
        return result.rowcount or 0
