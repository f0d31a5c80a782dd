"""
botgraph.runtime.simulation

Offline simulator used by the authoring tool.

Responsibilities:
- Record emitted messages/embeds instead of sending them.
- Resolve external actions from caller-supplied stubs (no network).
- Clamp Delay nodes to a small bound while the trace keeps the nominal duration.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from botgraph.graph.context import InvocationContext
from botgraph.graph.effects import ActionResult, ExternalAction, Output, OutputType
from botgraph.graph.engine import run_graph
from botgraph.graph.models import Graph
from botgraph.graph.state import RunStatus


class SimulationEffects:
    def __init__(
        self,
        *,
        delay_cap_ms: int = 100,
        action_stubs: Mapping[str, Any] | None = None,
    ) -> None:
        self._delay_cap_ms = delay_cap_ms
        # Keyed by node id first, then by action kind (e.g. "API_CALL").
        self._stubs = dict(action_stubs or {})
        self.outputs: list[dict[str, Any]] = []
        self.actions: list[ExternalAction] = []

    async def emit(self, output: Output, ctx: InvocationContext) -> None:
        self.outputs.append({"id": f"output-{len(self.outputs) + 1}", **output.to_dict()})

    async def perform_external_action(
        self, action: ExternalAction, ctx: InvocationContext
    ) -> ActionResult:
        self.actions.append(action)
        if action.node_id in self._stubs:
            return ActionResult(value=self._stubs[action.node_id])
        return ActionResult(value=self._stubs.get(action.kind.value))

    async def delay(self, ms: int) -> None:
        await asyncio.sleep(min(ms, self._delay_cap_ms) / 1000)


@dataclass(frozen=True, slots=True)
class SimulationResult:
    status: RunStatus
    steps: list[dict[str, Any]] = field(default_factory=list)
    outputs: list[dict[str, Any]] = field(default_factory=list)
    final_variables: dict[str, Any] = field(default_factory=dict)

    @property
    def execution_path(self) -> list[str]:
        return [s["nodeId"] for s in self.steps]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "steps": self.steps,
            "outputs": self.outputs,
            "finalVariables": self.final_variables,
        }


async def simulate(
    graph: Graph,
    ctx: InvocationContext | None = None,
    *,
    delay_cap_ms: int = 100,
    action_stubs: Mapping[str, Any] | None = None,
    max_node_visits: int = 1000,
) -> SimulationResult:
    ctx = ctx or InvocationContext.mock()
    effects = SimulationEffects(delay_cap_ms=delay_cap_ms, action_stubs=action_stubs)
    result = await run_graph(graph, ctx, effects, max_node_visits=max_node_visits)

    if result.error is not None:
        # Mirrors the single failure notice the live backend sends.
        await effects.emit(
            Output(
                type=OutputType.error,
                node_id=result.error.node_id,
                node_name=result.error.node_type,
                content=str(result.error.cause),
            ),
            ctx,
        )

    return SimulationResult(
        status=result.status,
        steps=result.steps,
        outputs=effects.outputs,
        final_variables=result.variables,
    )
