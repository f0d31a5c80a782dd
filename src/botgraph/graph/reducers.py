"""
botgraph.graph.reducers

Reducers define how LangGraph merges per-node partial updates into traversal state.

Why reducers:
- Nodes return only what they changed (new variables, one trace step).
- Reducers make the merge explicit: variables are shallow-merged, steps appended.
"""

from __future__ import annotations

from typing import Any


def append_steps(
    left: list[dict[str, Any]] | None, right: list[dict[str, Any]] | None
) -> list[dict[str, Any]]:
    """
    Append-only reducer for trace steps.

    Nodes return `{"steps": [step]}` and this reducer concatenates in execution order.
    """

    if not left:
        return list(right or [])
    if not right:
        return list(left)
    return [*left, *right]


def merge_variables(
    left: dict[str, Any] | None, right: dict[str, Any] | None
) -> dict[str, Any]:
    """
    Shallow merge reducer for the invocation variable map (right wins on collision).
    """

    if not left:
        return dict(right or {})
    if not right:
        return dict(left)
    return {**left, **right}
