"""
tests.test_bot_service

Invocation handling end to end against fakes.
"""

from __future__ import annotations

import httpx
import pytest

from botgraph.errors import ConfigurationError
from botgraph.graph.state import RunStatus
from botgraph.platform.events import InvocationEvent
from botgraph.runtime.live import EPHEMERAL_FLAG
from botgraph.services.bot_service import (
    CONFIG_NOT_FOUND,
    DM_NOT_SUPPORTED,
    EXECUTION_FAILED,
    NOT_DEPLOYED,
    BotService,
)
from botgraph.services.dispatch import DeploymentRouter
from botgraph.settings import Settings
from conftest import (
    FakeInteraction,
    FakePlatform,
    FakeRegistrar,
    chain,
    edge,
    graph,
    node,
    say,
    seed_project,
)

GUILD = "guild-1"


def event(command: str, guild_id: str | None = GUILD, **options) -> InvocationEvent:
    return InvocationEvent(
        guild_id=guild_id,
        command_name=command,
        user_id="u-1",
        username="ada",
        channel_id="c-1",
        options=options,
    )


@pytest.fixture
def make_bot(session_factory):
    def _make(**settings) -> BotService:
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        return BotService(
            settings=Settings(env="test", **settings),
            session_factory=session_factory,
            platform=FakePlatform(),  # type: ignore[arg-type]
            http=http,
            router=DeploymentRouter(session_factory=session_factory, registrar=FakeRegistrar()),
        )

    return _make


@pytest.mark.asyncio
async def test_direct_messages_are_rejected(make_bot) -> None:
    interaction = FakeInteraction()
    assert await make_bot().handle_invocation(event("ping", guild_id=None), interaction) is None
    assert interaction.calls == [("respond", {"content": DM_NOT_SUPPORTED, "flags": EPHEMERAL_FLAG})]


@pytest.mark.asyncio
async def test_not_deployed_notice(make_bot) -> None:
    interaction = FakeInteraction()
    await make_bot().handle_invocation(event("ping"), interaction)
    assert interaction.contents() == [NOT_DEPLOYED]


@pytest.mark.asyncio
async def test_missing_graph_notice(make_bot, session_factory) -> None:
    bot = make_bot()
    project = await seed_project(session_factory, name="p", commands={"ping": None})
    await bot.router.deploy(project, GUILD)

    interaction = FakeInteraction()
    await bot.handle_invocation(event("ping"), interaction)
    assert interaction.contents() == [CONFIG_NOT_FOUND]


@pytest.mark.asyncio
async def test_runs_the_deployed_graph_with_options(make_bot, session_factory) -> None:
    bot = make_bot()
    project = await seed_project(
        session_factory, name="p", commands={"greet": say("hello {{user.username}} -> {{target}}")}
    )
    await bot.router.deploy(project, GUILD)

    interaction = FakeInteraction()
    status = await bot.handle_invocation(event("greet", target="bob"), interaction)

    assert status == RunStatus.completed
    assert interaction.contents() == ["hello ada -> bob"]


@pytest.mark.asyncio
async def test_node_failure_sends_generic_follow_up(make_bot, session_factory) -> None:
    bot = make_bot()
    g = chain(
        node("start", "START"),
        node("hi", "SEND_MESSAGE", content="hi"),
        node("embed", "SEND_EMBED", color="chartreuse"),
        node("end", "END"),
    )
    project = await seed_project(session_factory, name="p", commands={"boom": g})
    await bot.router.deploy(project, GUILD)

    interaction = FakeInteraction()
    status = await bot.handle_invocation(event("boom"), interaction)

    assert status == RunStatus.failed
    assert interaction.calls == [
        ("respond", {"content": "hi"}),
        ("follow_up", {"content": EXECUTION_FAILED, "flags": EPHEMERAL_FLAG}),
    ]


@pytest.mark.asyncio
async def test_timeout_sends_generic_failure(make_bot, session_factory) -> None:
    bot = make_bot(execution_timeout_seconds=0.05)
    g = chain(node("start", "START"), node("wait", "DELAY", duration=10_000), node("end", "END"))
    project = await seed_project(session_factory, name="p", commands={"slow": g})
    await bot.router.deploy(project, GUILD)

    interaction = FakeInteraction()
    status = await bot.handle_invocation(event("slow"), interaction)

    assert status == RunStatus.failed
    assert interaction.contents() == [EXECUTION_FAILED]


@pytest.mark.asyncio
async def test_start_requires_platform_credentials(make_bot) -> None:
    bot = make_bot(discord_application_id="", discord_bot_token="", discord_public_key="")
    with pytest.raises(ConfigurationError) as exc:
        await bot.start()
    assert exc.value.missing == [
        "BOTGRAPH_DISCORD_APPLICATION_ID",
        "BOTGRAPH_DISCORD_BOT_TOKEN",
        "BOTGRAPH_DISCORD_PUBLIC_KEY",
    ]
    assert not bot.started


@pytest.mark.asyncio
async def test_step_limit_sends_generic_failure(make_bot, session_factory) -> None:
    bot = make_bot(max_node_visits=5)
    g = graph(
        [node("start", "START"), node("loop", "SEND_MESSAGE", content="again")],
        [edge("start", "loop"), edge("loop", "loop")],
    )
    project = await seed_project(session_factory, name="p", commands={"spin": g})
    await bot.router.deploy(project, GUILD)

    interaction = FakeInteraction()
    status = await bot.handle_invocation(event("spin"), interaction)

    assert status == RunStatus.step_limit
    assert interaction.calls[-1] == (
        "follow_up",
        {"content": EXECUTION_FAILED, "flags": EPHEMERAL_FLAG},
    )
