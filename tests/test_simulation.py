"""
tests.test_simulation

Offline simulator: recorded outputs, trace, clamped delays, action stubs.
"""

from __future__ import annotations

import time

import pytest

from botgraph.graph.context import InvocationContext
from botgraph.graph.state import RunStatus
from botgraph.runtime.simulation import simulate
from conftest import chain, edge, graph, node


@pytest.mark.asyncio
async def test_end_to_end_example_yields_single_yes() -> None:
    g = graph(
        [
            node("start", "START"),
            node("set", "SET_VARIABLE", variableName="count", value=1),
            node("if", "IF_CONDITION", variable="count", operator="equals", value="1"),
            node("yes", "SEND_MESSAGE", content="yes"),
            node("no", "SEND_MESSAGE", content="no"),
            node("end", "END"),
        ],
        [
            edge("start", "set"),
            edge("set", "if"),
            edge("if", "yes", "true"),
            edge("if", "no", "false"),
            edge("yes", "end"),
            edge("no", "end"),
        ],
    )

    result = await simulate(g)

    assert [{"type": o["type"], "content": o["content"]} for o in result.outputs] == [
        {"type": "message", "content": "yes"}
    ]
    assert result.status == RunStatus.completed
    assert result.execution_path == ["start", "set", "if", "yes", "end"]
    assert result.steps[0]["output"] == "Command execution started"
    assert result.steps[-1]["output"] == "Command execution completed"


@pytest.mark.asyncio
async def test_delay_is_clamped_but_trace_keeps_nominal_duration() -> None:
    g = chain(node("start", "START"), node("wait", "DELAY", duration=60_000), node("end", "END"))

    started = time.monotonic()
    result = await simulate(g, delay_cap_ms=5)

    assert time.monotonic() - started < 5
    assert result.status == RunStatus.completed
    assert result.steps[1]["output"] == "Waiting 60000ms"


@pytest.mark.asyncio
async def test_external_actions_resolve_from_stubs() -> None:
    g = chain(
        node("start", "START"),
        node("api", "API_CALL", url="https://example.test/{{user.id}}", responseVariable="body"),
        node("ask", "AWAIT_REPLY", prompt="Name?", variableName="name"),
        node("say", "SEND_MESSAGE", content="{{name}}: {{body}}"),
        node("end", "END"),
    )

    result = await simulate(g, action_stubs={"API_CALL": "pong", "ask": "Ada"})

    assert [o["content"] for o in result.outputs] == ["Name?", "Ada: pong"]
    assert result.steps[1]["output"] == "GET https://example.test/123456789012345678"


@pytest.mark.asyncio
async def test_await_reply_without_stub_leaves_variable_unset() -> None:
    g = chain(
        node("start", "START"),
        node("ask", "AWAIT_REPLY", prompt="?", variableName="answer"),
        node("say", "SEND_MESSAGE", content="got {{answer}}"),
    )
    result = await simulate(g)
    assert "answer" not in result.final_variables
    assert result.outputs[-1]["content"] == "got {{answer}}"


@pytest.mark.asyncio
async def test_failure_records_error_output() -> None:
    g = chain(node("start", "START"), node("role", "ADD_ROLE", roleId=""))
    result = await simulate(g)
    assert result.status == RunStatus.failed
    assert result.outputs == [
        {
            "id": "output-1",
            "type": "error",
            "nodeId": "role",
            "nodeName": "ADD_ROLE",
            "content": "roleId is required",
        }
    ]


@pytest.mark.asyncio
async def test_mock_identity_defaults() -> None:
    g = chain(
        node("start", "START"),
        node("say", "SEND_MESSAGE", content="{{user.id}} {{guild.id}} {{channel.id}}"),
    )
    result = await simulate(g, InvocationContext.mock())
    assert result.outputs[0]["content"] == "123456789012345678 987654321098765432 111222333444555666"
    assert result.to_dict()["finalVariables"] == {}
