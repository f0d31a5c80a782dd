"""
botgraph.graph.engine

Traversal runtime shared by the live executor and the simulator.

Responsibilities:
- Compile a command graph into a LangGraph runnable, one step per authored node.
- Route each step to exactly one successor (first edge, or the edge whose handle
  matches the branch), or to END when nothing matches.
- Realize handler outcomes through an injected `Effects` backend.
- Convert per-node failures into a FAILED terminal state with the detail logged.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from langgraph.errors import GraphRecursionError
from langgraph.graph import END, StateGraph

from botgraph.errors import GraphStructureError, NodeExecutionError
from botgraph.graph.context import InvocationContext
from botgraph.graph.effects import Effects, ExternalAction
from botgraph.graph.handlers import handle_node
from botgraph.graph.models import Graph, GraphEdge, GraphNode, IfConditionNode
from botgraph.graph.state import RunStatus, TraversalState
from botgraph.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RunResult:
    status: RunStatus
    steps: list[dict[str, Any]] = field(default_factory=list)
    variables: dict[str, Any] = field(default_factory=dict)
    error: NodeExecutionError | None = None

    @property
    def visited(self) -> list[str]:
        return [s["nodeId"] for s in self.steps]


async def run_graph(
    graph: Graph,
    ctx: InvocationContext,
    effects: Effects,
    *,
    max_node_visits: int = 1000,
) -> RunResult:
    """
    Walk `graph` from its START node until END, a quiet stop, or a node failure.

    Cyclic graphs are not rejected; `max_node_visits` bounds the walk and yields
    STEP_LIMIT when exhausted.
    """

    failures: list[NodeExecutionError] = []
    runnable = build_runnable(graph, ctx=ctx, effects=effects, failures=failures)

    initial: TraversalState = {
        "variables": ctx.initial_variables(),
        "steps": [],
        "status": RunStatus.running,
        "branch": None,
        "current_node_id": None,
    }
    last: dict[str, Any] = dict(initial)
    status: RunStatus | None = None
    try:
        async for snapshot in runnable.astream(
            initial,
            config={"recursion_limit": max_node_visits},
            stream_mode="values",
        ):
            if isinstance(snapshot, dict):
                last = snapshot
    except GraphRecursionError:
        log.warning("node_visit_limit", limit=max_node_visits)
        status = RunStatus.step_limit

    if status is None:
        status = RunStatus(last.get("status") or RunStatus.running)
        if status == RunStatus.running:
            status = RunStatus.stopped

    ctx.variables = dict(last.get("variables") or {})
    return RunResult(
        status=status,
        steps=list(last.get("steps") or []),
        variables=dict(ctx.variables),
        error=failures[0] if failures else None,
    )


def build_runnable(
    graph: Graph,
    *,
    ctx: InvocationContext,
    effects: Effects,
    failures: list[NodeExecutionError],
):
    """
    Returns a compiled LangGraph runnable bound to one invocation.
    """

    starts = graph.start_nodes()
    if not starts:
        raise GraphStructureError(["Graph must have a START node"])

    # Authored ids may contain characters LangGraph reserves; use positional names.
    names: dict[str, str] = {}
    nodes: list[GraphNode] = []
    for node in graph.nodes:
        if node.id in names:
            continue
        names[node.id] = f"n{len(names)}"
        nodes.append(node)

    sg = StateGraph(TraversalState)
    for node in nodes:
        sg.add_node(
            names[node.id],
            _bind_step(node, graph=graph, ctx=ctx, effects=effects, failures=failures),
        )
    sg.set_entry_point(names[starts[0].id])

    for node in nodes:
        edges = graph.outgoing(node.id)
        path_map = {names[e.target]: names[e.target] for e in edges if e.target in names}
        path_map[END] = END
        sg.add_conditional_edges(names[node.id], _bind_route(node, edges, names), path_map)

    return sg.compile()


def select_edge(node: GraphNode, edges: list[GraphEdge], branch: str | None) -> GraphEdge | None:
    if isinstance(node, IfConditionNode):
        for edge in edges:
            handle = edge.source_handle if edge.source_handle is not None else edge.label
            if handle == branch:
                return edge
        return None
    return edges[0] if edges else None


def _bind_route(
    node: GraphNode,
    edges: list[GraphEdge],
    names: dict[str, str],
) -> Callable[[TraversalState], str]:
    def _route(state: TraversalState) -> str:
        if state.get("status") != RunStatus.running:
            return END
        edge = select_edge(node, edges, state.get("branch"))
        # Missing edge or dangling target: stop quietly.
        if edge is None or edge.target not in names:
            return END
        return names[edge.target]

    return _route


def _bind_step(
    node: GraphNode,
    *,
    graph: Graph,
    ctx: InvocationContext,
    effects: Effects,
    failures: list[NodeExecutionError],
) -> Callable[[TraversalState], Awaitable[TraversalState]]:
    async def _step(state: TraversalState) -> TraversalState:
        variables = dict(state.get("variables") or {})
        step: dict[str, Any] = {
            "nodeId": node.id,
            "nodeName": node.type,
            "action": f"Executing {node.type}",
            "status": "success",
        }
        try:
            outcome = handle_node(node, variables, ctx, declared=graph.variables)
            updates = dict(outcome.variables)
            if outcome.emit is not None:
                await effects.emit(outcome.emit, ctx)
            if outcome.action is not None:
                updates.update(await _perform(outcome.action, ctx, effects))
            if outcome.delay_ms is not None:
                await effects.delay(outcome.delay_ms)
        except Exception as e:
            err = NodeExecutionError(node_id=node.id, node_type=node.type, cause=e)
            failures.append(err)
            log.warning("node_failed", node_id=node.id, node_type=node.type, error=str(e))
            return {
                "steps": [{**step, "status": "error", "error": str(e)}],
                "status": RunStatus.failed,
                "error": str(e),
                "failed_node_id": node.id,
                "current_node_id": node.id,
            }

        log.debug("node_executed", node_id=node.id, node_type=node.type)
        return {
            "variables": updates,
            "steps": [{**step, "output": outcome.detail}],
            "status": RunStatus.completed if outcome.terminal else RunStatus.running,
            "branch": outcome.branch,
            "current_node_id": node.id,
        }

    return _step


async def _perform(
    action: ExternalAction, ctx: InvocationContext, effects: Effects
) -> dict[str, Any]:
    result = await effects.perform_external_action(action, ctx)
    if result.error is not None:
        if action.error_variable is None:
            raise RuntimeError(result.error)
        return {action.error_variable: result.error}
    if action.result_variable and result.value is not None:
        return {action.result_variable: result.value}
    return {}


# --- Module Notes -----------------------------------------------------------
# A single invocation never fans out: every step routes to at most one successor,
# so LangGraph executes exactly one node per superstep.
