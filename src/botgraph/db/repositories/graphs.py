"""
botgraph.db.repositories.graphs

Repository for versioned `CommandGraph` snapshots.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from botgraph.db.models import CommandGraph


class CommandGraphRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save_version(
        self, *, command_id: uuid.UUID, graph_json: dict[str, Any], note: str | None = None
    ) -> CommandGraph:
        # Exactly one active version per command: retire the old one first.
        await self._session.execute(
            update(CommandGraph)
            .where(CommandGraph.command_id == command_id, CommandGraph.is_active.is_(True))
            .values(is_active=False)
        )
        current = await self._session.execute(
            select(func.max(CommandGraph.version)).where(CommandGraph.command_id == command_id)
        )
        version = (current.scalar_one_or_none() or 0) + 1
        snapshot = CommandGraph(
            command_id=command_id,
            version=version,
            graph_json=graph_json,
            is_active=True,
            note=note,
        )
        self._session.add(snapshot)
        await self._session.flush()
        return snapshot

    async def active(self, command_id: uuid.UUID) -> CommandGraph | None:
        stmt = select(CommandGraph).where(
            CommandGraph.command_id == command_id, CommandGraph.is_active.is_(True)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()
