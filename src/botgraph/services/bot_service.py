"""
botgraph.services.bot_service

Process-scoped bot service.

Responsibilities:
- Own the platform connection, the dispatch router and the live executor.
- Turn invocation events into graph executions, each in its own task.
- Answer rejected or failed invocations with fixed user-facing notices.
"""

from __future__ import annotations

import asyncio
import uuid

import httpx
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from botgraph.db.repositories.projects import CommandRepo
from botgraph.errors import ExecutionTimeoutError, NotDeployedError
from botgraph.graph.models import Graph
from botgraph.graph.state import RunStatus
from botgraph.observability.logging import get_logger, invocation_context
from botgraph.platform.discord import DiscordClient
from botgraph.platform.events import InvocationEvent
from botgraph.platform.interaction import RestInteraction
from botgraph.runtime.live import Interaction, LiveExecutor, send_notice
from botgraph.services.dispatch import DeploymentRouter
from botgraph.settings import Settings

log = get_logger(__name__)

DM_NOT_SUPPORTED = "This bot only works in servers, not DMs."
NOT_DEPLOYED = "This command is not deployed to this server."
CONFIG_NOT_FOUND = "Command configuration not found."
EXECUTION_FAILED = "An error occurred while executing this command."


class BotService:
    def __init__(
        self,
        *,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        platform: DiscordClient,
        http: httpx.AsyncClient,
        router: DeploymentRouter | None = None,
    ) -> None:
        self._settings = settings
        self._session_factory = session_factory
        self._platform = platform
        self.router = router or DeploymentRouter(
            session_factory=session_factory, registrar=platform
        )
        self._executor = LiveExecutor(settings=settings, platform=platform, http=http)
        self._tasks: set[asyncio.Task[RunStatus | None]] = set()
        self.started = False

    async def start(self) -> None:
        self._settings.require_platform_credentials()
        self.started = True
        log.info("bot_started", application_id=self._settings.discord_application_id)

    async def stop(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.started = False
        log.info("bot_stopped", cancelled=len(tasks))

    def dispatch(self, event: InvocationEvent) -> asyncio.Task[RunStatus | None]:
        interaction = RestInteraction(
            client=self._platform, interaction_id=event.interaction_id, token=event.token
        )
        task = asyncio.create_task(self.handle_invocation(event, interaction))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[RunStatus | None]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log.error("invocation_crashed", error=str(task.exception()))

    async def handle_invocation(
        self, event: InvocationEvent, interaction: Interaction
    ) -> RunStatus | None:
        """
        Run one invocation end to end.

        Returns the terminal status, or None when the invocation was answered with a
        notice before any graph ran.
        """

        ctx = event.to_context()
        effects = self._executor.effects_for(interaction)
        with invocation_context(
            guild_id=event.guild_id, command_name=event.command_name, user_id=event.user_id
        ):
            if event.guild_id is None:
                await send_notice(effects, ctx, DM_NOT_SUPPORTED)
                return None

            try:
                project_id = await self.router.resolve(event.guild_id, event.command_name)
            except NotDeployedError:
                log.info("command_not_deployed")
                await send_notice(effects, ctx, NOT_DEPLOYED)
                return None

            graph = await self._load_graph(project_id, event.command_name)
            if graph is None:
                await send_notice(effects, ctx, CONFIG_NOT_FOUND)
                return None

            try:
                result = await self._executor.execute(graph, ctx, interaction)
            except ExecutionTimeoutError as e:
                log.warning("invocation_timeout", error=str(e))
                await send_notice(effects, ctx, EXECUTION_FAILED)
                return RunStatus.failed

            if result.status in (RunStatus.failed, RunStatus.step_limit):
                await send_notice(effects, ctx, EXECUTION_FAILED)
            log.info("invocation_finished", status=result.status.value, visited=len(result.steps))
            return result.status

    async def _load_graph(self, project_id: uuid.UUID, command_name: str) -> Graph | None:
        async with self._session_factory() as session:
            raw = await CommandRepo(session).active_graph(project_id=project_id, name=command_name)
        if raw is None:
            return None
        try:
            return Graph.model_validate(raw)
        except ValidationError as e:
            log.error("graph_unreadable", project_id=str(project_id), error=str(e))
            return None
