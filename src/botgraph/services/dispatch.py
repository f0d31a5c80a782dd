"""
botgraph.services.dispatch

Dispatch & deployment router.

Responsibilities:
- Resolve (guild, command name) to the deployed project through an in-memory index.
- Deploy/undeploy projects as full-replace registration snapshots per guild.
- Resync or drop a guild on membership events.
- Serialize every read-compute-push-commit sequence per guild.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import Counter
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from botgraph.db.repositories.deployments import DeploymentRepo
from botgraph.db.repositories.projects import CommandRepo
from botgraph.errors import ExternalRegistrationError, NotDeployedError
from botgraph.observability.logging import get_logger
from botgraph.platform.commands import to_registration

log = get_logger(__name__)


class CommandRegistrar(Protocol):
    async def put_guild_commands(
        self, guild_id: str, commands: list[dict[str, Any]]
    ) -> Any: ...


class CommandIndex:
    """
    guild id -> command name -> project id.

    A rebuildable cache over active deployment records; only the router writes it,
    and only after the platform accepted the matching registration snapshot.
    """

    def __init__(self) -> None:
        self._guilds: dict[str, dict[str, uuid.UUID]] = {}

    def has_guild(self, guild_id: str) -> bool:
        return guild_id in self._guilds

    def lookup(self, guild_id: str, command_name: str) -> uuid.UUID | None:
        return self._guilds.get(guild_id, {}).get(command_name)

    def replace_guild(self, guild_id: str, mapping: dict[str, uuid.UUID]) -> None:
        self._guilds[guild_id] = dict(mapping)

    def drop_guild(self, guild_id: str) -> None:
        self._guilds.pop(guild_id, None)

    def snapshot(self, guild_id: str) -> dict[str, uuid.UUID]:
        return dict(self._guilds.get(guild_id, {}))


class DeploymentRouter:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        registrar: CommandRegistrar,
        index: CommandIndex | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._registrar = registrar
        self.index = index or CommandIndex()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()

    async def deploy(self, project_id: uuid.UUID, guild_id: str) -> int:
        """
        Register `project_id`'s enabled slash commands in `guild_id`.

        The pushed list is the full union of this project and every other active
        deployment in the guild. Returns the number of this project's commands.
        """

        async with self._guild_lock(guild_id), self._session_factory() as session:
            own = await CommandRepo(session).enabled_slash_commands(project_id)
            if not own:
                raise ValueError("project has no enabled slash commands")

            deployments = DeploymentRepo(session)
            others = [
                d.project_id
                for d in await deployments.active_for_guild(guild_id)
                if d.project_id != project_id
            ]
            payload, mapping = await self._union(session, [project_id, *others])
            await self._push(guild_id, payload)

            await deployments.activate(guild_id=guild_id, project_id=project_id)
            await session.commit()
            self.index.replace_guild(guild_id, mapping)

        log.info("deployed", guild_id=guild_id, project_id=str(project_id), commands=len(own))
        return len(own)

    async def undeploy(self, project_id: uuid.UUID, guild_id: str) -> None:
        async with self._guild_lock(guild_id), self._session_factory() as session:
            deployments = DeploymentRepo(session)
            remaining = [
                d.project_id
                for d in await deployments.active_for_guild(guild_id)
                if d.project_id != project_id
            ]
            payload, mapping = await self._union(session, remaining)
            await self._push(guild_id, payload)

            await deployments.deactivate(guild_id=guild_id, project_id=project_id)
            await session.commit()
            self.index.replace_guild(guild_id, mapping)

        log.info("undeployed", guild_id=guild_id, project_id=str(project_id))

    async def resolve(self, guild_id: str, command_name: str) -> uuid.UUID:
        if not self.index.has_guild(guild_id):
            async with self._guild_lock(guild_id):
                if not self.index.has_guild(guild_id):
                    await self._load_guild(guild_id)

        project_id = self.index.lookup(guild_id, command_name)
        if project_id is None:
            raise NotDeployedError(guild_id=guild_id, command_name=command_name)
        return project_id

    async def on_guild_join(self, guild_id: str) -> None:
        try:
            async with self._guild_lock(guild_id), self._session_factory() as session:
                active = [d.project_id for d in await DeploymentRepo(session).active_for_guild(guild_id)]
                payload, mapping = await self._union(session, active)
                if active:
                    await self._push(guild_id, payload)
                self.index.replace_guild(guild_id, mapping)
        except Exception as e:
            log.error("guild_join_resync_failed", guild_id=guild_id, error=str(e))
            return
        log.info("guild_joined", guild_id=guild_id, deployments=len(active))

    async def on_guild_leave(self, guild_id: str) -> None:
        try:
            async with self._guild_lock(guild_id), self._session_factory() as session:
                count = await DeploymentRepo(session).deactivate_guild(guild_id)
                await session.commit()
                self.index.drop_guild(guild_id)
        except Exception as e:
            log.error("guild_leave_failed", guild_id=guild_id, error=str(e))
            return
        log.info("guild_left", guild_id=guild_id, deactivated=count)

    @asynccontextmanager
    async def _guild_lock(self, guild_id: str) -> AsyncIterator[None]:
        # A guild's lock lives only while someone holds or waits for it.
        lock = self._locks.setdefault(guild_id, asyncio.Lock())
        self._lock_users[guild_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[guild_id] -= 1
            if not self._lock_users[guild_id]:
                del self._lock_users[guild_id]
                del self._locks[guild_id]

    async def _load_guild(self, guild_id: str) -> None:
        async with self._session_factory() as session:
            active = [d.project_id for d in await DeploymentRepo(session).active_for_guild(guild_id)]
            _, mapping = await self._union(session, active)
        self.index.replace_guild(guild_id, mapping)

    async def _union(
        self, session: AsyncSession, project_ids: Iterable[uuid.UUID]
    ) -> tuple[list[dict[str, Any]], dict[str, uuid.UUID]]:
        # Earlier projects win on command-name collisions.
        commands = CommandRepo(session)
        payload: list[dict[str, Any]] = []
        mapping: dict[str, uuid.UUID] = {}
        for pid in project_ids:
            for command in await commands.enabled_slash_commands(pid):
                if command.name in mapping:
                    log.warning(
                        "command_name_collision",
                        command_name=command.name,
                        kept=str(mapping[command.name]),
                        dropped=str(pid),
                    )
                    continue
                mapping[command.name] = pid
                payload.append(to_registration(command))
        return payload, mapping

    async def _push(self, guild_id: str, payload: list[dict[str, Any]]) -> None:
        try:
            await self._registrar.put_guild_commands(guild_id, payload)
        except Exception as e:
            log.error("deploy_failed", guild_id=guild_id, error=str(e))
            raise ExternalRegistrationError(f"Failed to register commands: {e}") from e


# --- Module Notes -----------------------------------------------------------
# The persisted record and the index are only touched after `_push` returns, so a
# failed registration leaves both exactly as they were.
