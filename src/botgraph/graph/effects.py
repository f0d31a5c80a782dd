"""
botgraph.graph.effects

Effect interface between the traversal runtime and its backends.

Responsibilities:
- Define emitted outputs (messages, embeds, errors).
- Define external action requests produced by handlers and their results.
- Define the `Effects` protocol implemented by the live and simulation backends.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Protocol

from botgraph.graph.context import InvocationContext


class OutputType(enum.StrEnum):
    message = "message"
    embed = "embed"
    error = "error"


@dataclass(frozen=True, slots=True)
class Output:
    type: OutputType
    node_id: str
    node_name: str
    content: Any
    ephemeral: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "nodeId": self.node_id,
            "nodeName": self.node_name,
            "content": self.content,
        }


class ActionKind(enum.StrEnum):
    await_reply = "AWAIT_REPLY"
    add_role = "ADD_ROLE"
    remove_role = "REMOVE_ROLE"
    api_call = "API_CALL"


@dataclass(frozen=True, slots=True)
class ExternalAction:
    kind: ActionKind
    node_id: str
    params: dict[str, Any] = field(default_factory=dict)
    # Where the runtime stores the action's value / error text, when set.
    result_variable: str | None = None
    error_variable: str | None = None


@dataclass(frozen=True, slots=True)
class ActionResult:
    value: Any = None
    error: str | None = None


class Effects(Protocol):
    async def emit(self, output: Output, ctx: InvocationContext) -> None: ...

    async def perform_external_action(
        self, action: ExternalAction, ctx: InvocationContext
    ) -> ActionResult: ...

    async def delay(self, ms: int) -> None: ...


# --- Module Notes -----------------------------------------------------------
# Backends realize effects strictly one at a time: the runtime awaits each call
# before the next node starts, which is what orders replies within an invocation.
