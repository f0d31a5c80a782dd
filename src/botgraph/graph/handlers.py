"""
botgraph.graph.handlers

Per-node semantics, one handler per node type.

Responsibilities:
- Turn a node plus the current variables into a `NodeOutcome` (variable writes,
  an emission, an external action, a delay, a branch, or termination).
- Coerce and compare values the way authored conditions and math nodes expect.

Handlers never touch the platform; the engine realizes outcomes through `Effects`.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, assert_never

from botgraph.graph.context import InvocationContext
from botgraph.graph.effects import ActionKind, ExternalAction, Output, OutputType
from botgraph.graph.interpolation import (
    interpolate,
    interpolate_value,
    resolve_operand,
    to_text,
)
from botgraph.graph.models import (
    AddRoleNode,
    ApiCallNode,
    AwaitReplyNode,
    ConditionOperator,
    DelayNode,
    EndNode,
    GetVariableNode,
    GraphNode,
    GraphVariable,
    IfConditionNode,
    MathOperationNode,
    RandomNode,
    RemoveRoleNode,
    SendEmbedNode,
    SendMessageNode,
    SetVariableNode,
    StartNode,
    VariableType,
)

_NUMERIC = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_HEX_INT = re.compile(r"^0[xX][0-9a-fA-F]+$")
_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")
_IDENTIFIER = re.compile(r"^\w+$")


@dataclass(slots=True)
class NodeOutcome:
    """
    What one node asks the runtime to do. Handlers never perform effects themselves.
    """

    variables: dict[str, Any] = field(default_factory=dict)
    emit: Output | None = None
    action: ExternalAction | None = None
    delay_ms: int | None = None
    # "true"/"false" for conditional nodes; None follows the first outgoing edge.
    branch: str | None = None
    terminal: bool = False
    detail: Any = None


def handle_node(
    node: GraphNode,
    variables: Mapping[str, Any],
    ctx: InvocationContext,
    *,
    declared: Mapping[str, GraphVariable] | None = None,
) -> NodeOutcome:
    match node:
        case StartNode():
            return NodeOutcome(detail="Command execution started")
        case SendMessageNode():
            return _send_message(node, variables, ctx)
        case SendEmbedNode():
            return _send_embed(node, variables, ctx)
        case IfConditionNode():
            return _if_condition(node, variables, ctx)
        case SetVariableNode():
            return _set_variable(node, variables, ctx)
        case GetVariableNode():
            return _get_variable(node, variables, declared or {})
        case AwaitReplyNode():
            return _await_reply(node, variables, ctx)
        case AddRoleNode():
            return _role(node, ActionKind.add_role, variables, ctx)
        case RemoveRoleNode():
            return _role(node, ActionKind.remove_role, variables, ctx)
        case ApiCallNode():
            return _api_call(node, variables, ctx)
        case DelayNode():
            duration = max(0, int(node.data.duration))
            return NodeOutcome(delay_ms=duration, detail=f"Waiting {duration}ms")
        case RandomNode():
            return _random(node, ctx)
        case MathOperationNode():
            return _math_operation(node, variables, ctx)
        case EndNode():
            return NodeOutcome(terminal=True, detail="Command execution completed")
        case _:
            assert_never(node)


def _send_message(
    node: SendMessageNode, variables: Mapping[str, Any], ctx: InvocationContext
) -> NodeOutcome:
    content = interpolate(node.data.content or "No message", variables, ctx)
    out = Output(
        type=OutputType.message,
        node_id=node.id,
        node_name=node.type,
        content=content,
        ephemeral=node.data.ephemeral,
    )
    return NodeOutcome(emit=out, detail=content)


def _send_embed(
    node: SendEmbedNode, variables: Mapping[str, Any], ctx: InvocationContext
) -> NodeOutcome:
    data = node.data
    embed: dict[str, Any] = {}
    if data.title:
        embed["title"] = interpolate(data.title, variables, ctx)
    if data.description:
        embed["description"] = interpolate(data.description, variables, ctx)
    if data.color:
        embed["color"] = parse_color(data.color)
    if data.footer:
        embed["footer"] = {"text": interpolate(data.footer, variables, ctx)}
    if data.thumbnail:
        embed["thumbnail"] = {"url": data.thumbnail}
    if data.image:
        embed["image"] = {"url": data.image}
    if data.fields:
        embed["fields"] = [
            {
                "name": interpolate(f.name, variables, ctx),
                "value": interpolate(f.value, variables, ctx),
                "inline": f.inline,
            }
            for f in data.fields
        ]
    out = Output(
        type=OutputType.embed,
        node_id=node.id,
        node_name=node.type,
        content=embed,
        ephemeral=data.ephemeral,
    )
    return NodeOutcome(emit=out, detail=embed)


def parse_color(raw: str) -> int:
    m = _HEX_COLOR.match(raw.strip())
    if not m:
        raise ValueError(f"invalid embed color {raw!r}")
    return int(m.group(1), 16)


def _if_condition(
    node: IfConditionNode, variables: Mapping[str, Any], ctx: InvocationContext
) -> NodeOutcome:
    data = node.data
    left = resolve_operand(data.variable, variables, ctx)
    right = interpolate_value(data.value, variables, ctx)
    result = evaluate_condition(data.operator, left, right)
    return NodeOutcome(
        branch="true" if result else "false",
        detail=f"Condition: {to_text(left)} {data.operator.value} {to_text(right)} = {result}",
    )


def evaluate_condition(operator: ConditionOperator, left: Any, right: Any) -> bool:
    match operator:
        case ConditionOperator.equals:
            return to_text(left) == to_text(right)
        case ConditionOperator.not_equals:
            return to_text(left) != to_text(right)
        case ConditionOperator.greater_than:
            # NaN compares false in both directions; never raises.
            return to_number(left) > to_number(right)
        case ConditionOperator.less_than:
            return to_number(left) < to_number(right)
        case ConditionOperator.contains:
            return to_text(right) in to_text(left)
        case ConditionOperator.starts_with:
            return to_text(left).startswith(to_text(right))
        case ConditionOperator.ends_with:
            return to_text(left).endswith(to_text(right))
        case ConditionOperator.is_empty:
            return _is_blank(left)
        case ConditionOperator.is_not_empty:
            return not _is_blank(left)
        case _:
            assert_never(operator)


def to_number(value: Any) -> float:
    """Lenient number parse: blank text is 0, anything unparseable is NaN."""

    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return 0.0
        if _NUMERIC.match(s):
            return float(s)
        if _HEX_INT.match(s):
            return float(int(s, 16))
        if s in ("Infinity", "+Infinity"):
            return math.inf
        if s == "-Infinity":
            return -math.inf
    return math.nan


def _is_blank(value: Any) -> bool:
    if value is None or value is False or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or math.isnan(value)
    return False


def _set_variable(
    node: SetVariableNode, variables: Mapping[str, Any], ctx: InvocationContext
) -> NodeOutcome:
    name = node.data.variable_name
    value = _coerce(interpolate_value(node.data.value, variables, ctx), node.data.type)
    return NodeOutcome(variables={name: value}, detail=f"Set {name} = {to_text(value)}")


def _coerce(value: Any, type_: VariableType) -> Any:
    if type_ == "number":
        return _normalize_number(to_number(value))
    if type_ == "boolean":
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes", "on")
        return bool(value)
    if type_ == "object":
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value
    return value if isinstance(value, str) else to_text(value)


def _normalize_number(n: float) -> int | float:
    if math.isfinite(n) and n.is_integer():
        return int(n)
    return n


def _get_variable(
    node: GetVariableNode,
    variables: Mapping[str, Any],
    declared: Mapping[str, GraphVariable],
) -> NodeOutcome:
    name = node.data.variable_name
    value = variables.get(name)
    if value is None:
        value = node.data.default_value
        if value is None and name in declared:
            value = declared[name].default_value
    return NodeOutcome(detail=f"Get {name} = {to_text(value)}")


def _await_reply(
    node: AwaitReplyNode, variables: Mapping[str, Any], ctx: InvocationContext
) -> NodeOutcome:
    data = node.data
    prompt = None
    if data.prompt:
        prompt = Output(
            type=OutputType.message,
            node_id=node.id,
            node_name=node.type,
            content=interpolate(data.prompt, variables, ctx),
        )
    action = ExternalAction(
        kind=ActionKind.await_reply,
        node_id=node.id,
        params={
            "timeout_ms": max(0, int(data.timeout)),
            "user_id": interpolate(data.filter.user_id or "", variables, ctx) or ctx.user.id,
            "channel_id": interpolate(data.filter.channel_id or "", variables, ctx)
            or ctx.channel.id,
        },
        result_variable=data.variable_name,
    )
    return NodeOutcome(emit=prompt, action=action, detail=f"Awaiting reply into {data.variable_name}")


def _role(
    node: AddRoleNode | RemoveRoleNode,
    kind: ActionKind,
    variables: Mapping[str, Any],
    ctx: InvocationContext,
) -> NodeOutcome:
    if ctx.guild is None:
        raise ValueError("role changes require a guild")
    role_id = interpolate(node.data.role_id, variables, ctx).strip()
    if not role_id:
        raise ValueError("roleId is required")
    user_id = interpolate(node.data.user_id, variables, ctx).strip() or ctx.user.id
    action = ExternalAction(
        kind=kind,
        node_id=node.id,
        params={"guild_id": ctx.guild.id, "user_id": user_id, "role_id": role_id},
    )
    return NodeOutcome(action=action, detail=f"{kind.value} {role_id} -> {user_id}")


def _api_call(
    node: ApiCallNode, variables: Mapping[str, Any], ctx: InvocationContext
) -> NodeOutcome:
    data = node.data
    url = interpolate(data.url, variables, ctx).strip()
    if not url:
        raise ValueError("url is required")
    action = ExternalAction(
        kind=ActionKind.api_call,
        node_id=node.id,
        params={
            "url": url,
            "method": data.method,
            "headers": {k: interpolate(v, variables, ctx) for k, v in data.headers.items()},
            "body": interpolate(data.body, variables, ctx) if data.body else None,
        },
        result_variable=data.response_variable,
        error_variable=data.error_variable,
    )
    return NodeOutcome(action=action, detail=f"{data.method} {url}")


def _random(node: RandomNode, ctx: InvocationContext) -> NodeOutcome:
    lo, hi = int(node.data.min), int(node.data.max)
    if lo > hi:
        lo, hi = hi, lo
    value = ctx.rng.randint(lo, hi)
    return NodeOutcome(
        variables={node.data.variable_name: value},
        detail=f"Generated random number: {value} ({lo}-{hi})",
    )


def _math_operation(
    node: MathOperationNode, variables: Mapping[str, Any], ctx: InvocationContext
) -> NodeOutcome:
    data = node.data
    left = _operand(data.operand1, variables, ctx)
    right = _operand(data.operand2, variables, ctx)

    match data.operation:
        case "add":
            result = left + right
        case "subtract":
            result = left - right
        case "multiply":
            result = left * right
        case "divide":
            result = left / right if right != 0 else 0.0
        case "modulo":
            # Remainder takes the dividend's sign; an infinite dividend has none.
            if right == 0:
                result = 0.0
            elif math.isinf(left):
                result = math.nan
            else:
                result = math.fmod(left, right)
        case _:
            assert_never(data.operation)

    value = _normalize_number(result)
    return NodeOutcome(
        variables={data.result_variable: value},
        detail=f"{to_text(left)} {data.operation} {to_text(right)} = {to_text(value)}",
    )


def _operand(raw: Any, variables: Mapping[str, Any], ctx: InvocationContext) -> float:
    if not isinstance(raw, str):
        return to_number(raw)
    text = interpolate(raw, variables, ctx).strip()
    # A bare identifier names a variable; anything else is a literal.
    if _IDENTIFIER.match(text) and text in variables:
        return to_number(variables[text])
    return to_number(text)


# --- Module Notes -----------------------------------------------------------
# Lenient numbers: blank text is 0, unparseable text is NaN. Division and modulo
# by zero yield 0, and NaN flows through math instead of failing the node.
