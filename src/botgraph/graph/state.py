"""
botgraph.graph.state

Typed traversal state threaded through the compiled LangGraph runnable.

Responsibilities:
- Define the contract between node steps (variables, trace, control flags).
- Provide the shape returned to callers as the terminal state.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, TypedDict

from botgraph.graph.reducers import append_steps, merge_variables


class RunStatus(enum.StrEnum):
    running = "RUNNING"
    # An End node was reached.
    completed = "COMPLETED"
    # A non-End node had no matching outgoing edge; this is not a failure.
    stopped = "STOPPED"
    failed = "FAILED"
    step_limit = "STEP_LIMIT"


class TraversalState(TypedDict, total=False):
    variables: Annotated[dict[str, Any], merge_variables]
    steps: Annotated[list[dict[str, Any]], append_steps]

    # Control flags written by the most recent node step.
    status: str
    branch: str | None
    current_node_id: str | None

    error: str | None
    failed_node_id: str | None
