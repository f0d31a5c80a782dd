"""
botgraph.runtime.live

Live executor: runs a graph against a real interaction.

Responsibilities:
- Deliver outputs through the reply state machine (one primary response, then follow-ups).
- Realize role changes, HTTP calls and reply waits through the platform boundary.
- Race the whole traversal against the configured wall-clock budget.

Timeout caveat:
- Cancelling the traversal does not roll back or recall external calls that were
  already dispatched (messages sent, roles changed, HTTP requests issued).
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

import httpx

from botgraph.errors import ExecutionTimeoutError
from botgraph.graph.context import InvocationContext
from botgraph.graph.effects import ActionKind, ActionResult, ExternalAction, Output, OutputType
from botgraph.graph.engine import RunResult, run_graph
from botgraph.graph.models import Graph
from botgraph.observability.logging import get_logger
from botgraph.settings import Settings

log = get_logger(__name__)

EPHEMERAL_FLAG = 1 << 6


class Interaction(Protocol):
    """Reply capability for one invocation: at most one primary response."""

    @property
    def has_responded(self) -> bool: ...

    async def respond(self, payload: dict[str, Any]) -> None: ...

    async def follow_up(self, payload: dict[str, Any]) -> None: ...


class PlatformActions(Protocol):
    async def add_member_role(self, *, guild_id: str, user_id: str, role_id: str) -> None: ...

    async def remove_member_role(self, *, guild_id: str, user_id: str, role_id: str) -> None: ...

    async def wait_for_message(
        self, *, channel_id: str, user_id: str, timeout_seconds: float, poll_seconds: float
    ) -> str | None: ...


def message_payload(output: Output) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if output.type == OutputType.embed:
        payload["embeds"] = [output.content]
    else:
        payload["content"] = str(output.content)
    if output.ephemeral:
        payload["flags"] = EPHEMERAL_FLAG
    return payload


class LiveEffects:
    def __init__(
        self,
        *,
        interaction: Interaction,
        platform: PlatformActions,
        http: httpx.AsyncClient,
        poll_seconds: float = 1.0,
    ) -> None:
        self._interaction = interaction
        self._platform = platform
        self._http = http
        self._poll_seconds = poll_seconds

    async def emit(self, output: Output, ctx: InvocationContext) -> None:
        payload = message_payload(output)
        if ctx.has_replied or self._interaction.has_responded:
            await self._interaction.follow_up(payload)
            return
        await self._interaction.respond(payload)
        ctx.has_replied = True

    async def perform_external_action(
        self, action: ExternalAction, ctx: InvocationContext
    ) -> ActionResult:
        p = action.params
        match action.kind:
            case ActionKind.add_role:
                await self._platform.add_member_role(
                    guild_id=p["guild_id"], user_id=p["user_id"], role_id=p["role_id"]
                )
                return ActionResult()
            case ActionKind.remove_role:
                await self._platform.remove_member_role(
                    guild_id=p["guild_id"], user_id=p["user_id"], role_id=p["role_id"]
                )
                return ActionResult()
            case ActionKind.await_reply:
                content = await self._platform.wait_for_message(
                    channel_id=p["channel_id"],
                    user_id=p["user_id"],
                    timeout_seconds=p["timeout_ms"] / 1000,
                    poll_seconds=self._poll_seconds,
                )
                return ActionResult(value=content)
            case ActionKind.api_call:
                return await self._api_call(p)

    async def _api_call(self, p: dict[str, Any]) -> ActionResult:
        try:
            r = await self._http.request(
                p["method"], p["url"], headers=p["headers"], content=p["body"]
            )
            r.raise_for_status()
        except httpx.HTTPError as e:
            log.info("api_call_failed", url=p["url"], error=str(e))
            return ActionResult(error=str(e))
        try:
            return ActionResult(value=r.json())
        except ValueError:
            return ActionResult(value=r.text)

    async def delay(self, ms: int) -> None:
        await asyncio.sleep(ms / 1000)


class LiveExecutor:
    def __init__(
        self,
        *,
        settings: Settings,
        platform: PlatformActions,
        http: httpx.AsyncClient,
    ) -> None:
        self._settings = settings
        self._platform = platform
        self._http = http

    def effects_for(self, interaction: Interaction) -> LiveEffects:
        return LiveEffects(
            interaction=interaction,
            platform=self._platform,
            http=self._http,
            poll_seconds=self._settings.await_reply_poll_seconds,
        )

    async def execute(
        self, graph: Graph, ctx: InvocationContext, interaction: Interaction
    ) -> RunResult:
        timeout = self._settings.execution_timeout_seconds
        try:
            return await asyncio.wait_for(
                run_graph(
                    graph,
                    ctx,
                    self.effects_for(interaction),
                    max_node_visits=self._settings.max_node_visits,
                ),
                timeout=timeout,
            )
        except TimeoutError as e:
            raise ExecutionTimeoutError(timeout) from e


async def send_notice(
    effects: LiveEffects, ctx: InvocationContext, text: str, *, ephemeral: bool = True
) -> None:
    """Send a system notice through the same reply state machine as graph output."""

    await effects.emit(
        Output(
            type=OutputType.error,
            node_id="",
            node_name="SYSTEM",
            content=text,
            ephemeral=ephemeral,
        ),
        ctx,
    )
