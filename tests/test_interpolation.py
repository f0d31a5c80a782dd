"""
tests.test_interpolation

Placeholder substitution, shared by both backends.
"""

from __future__ import annotations

import pytest

from botgraph.graph.context import InvocationContext
from botgraph.graph.engine import run_graph
from botgraph.graph.interpolation import interpolate, resolve_reference, to_text
from botgraph.runtime.live import LiveEffects
from botgraph.runtime.simulation import simulate
from conftest import FakeInteraction, FakePlatform, say


def test_variables_and_context_paths() -> None:
    ctx = InvocationContext.mock(options={"target": "42"})
    text = interpolate(
        "{{greeting}} {{user.username}} ({{user.mention}}) in {{guild.name}}/#{{channel.name}} -> {{options.target}}",
        {"greeting": "Hi"},
        ctx,
    )
    assert text == "Hi TestUser (<@123456789012345678>) in Test Server/#general -> 42"


def test_unknown_and_single_brace_placeholders_are_verbatim() -> None:
    ctx = InvocationContext.mock()
    assert interpolate("{{nope}} {name} {{ user.nope }}", {"name": "x"}, ctx) == (
        "{{nope}} {name} {{ user.nope }}"
    )


def test_variables_shadow_context_paths() -> None:
    ctx = InvocationContext.mock()
    assert interpolate("{{user.id}}", {"user.id": "override"}, ctx) == "override"


def test_resolve_reference_accepts_bare_and_braced() -> None:
    ctx = InvocationContext.mock()
    assert resolve_reference("count", {"count": 3}, ctx) == 3
    assert resolve_reference("{{ count }}", {"count": 3}, ctx) == 3
    assert resolve_reference("missing", {}, ctx) is None


@pytest.mark.parametrize(
    "value,expected",
    [(None, ""), (True, "true"), (2.0, "2"), (2.5, "2.5"), (float("nan"), "NaN")],
)
def test_to_text(value, expected) -> None:
    assert to_text(value) == expected


@pytest.mark.asyncio
async def test_live_and_simulated_backends_render_identically() -> None:
    g = say("Hi {{user.username}}, {{who}} says {legacy} {{missing}}")

    sim = await simulate(g, InvocationContext.mock(variables={"who": "bot"}))

    interaction = FakeInteraction()
    effects = LiveEffects(interaction=interaction, platform=FakePlatform(), http=None)  # type: ignore[arg-type]
    await run_graph(g, InvocationContext.mock(variables={"who": "bot"}), effects)

    assert [o["content"] for o in sim.outputs] == interaction.contents()
    assert interaction.contents() == ["Hi TestUser, bot says {legacy} {{missing}}"]
