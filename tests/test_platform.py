"""
tests.test_platform

Discord REST boundary, signature verification, event parsing, registration schema.
"""

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from botgraph.platform.commands import to_registration
from botgraph.platform.discord import DiscordClient, snowflake_at
from botgraph.platform.events import parse_interaction
from botgraph.platform.interaction import RestInteraction
from botgraph.platform.signature import verify_signature
from botgraph.settings import Settings


def client(handler) -> DiscordClient:
    settings = Settings(
        env="test", discord_application_id="app-1", discord_bot_token="tok", discord_public_key="00"
    )
    return DiscordClient(
        settings=settings, http=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


@pytest.mark.asyncio
async def test_put_guild_commands_is_a_bulk_overwrite() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=json.loads(request.content))

    await client(handler).put_guild_commands("g1", [{"name": "ping"}])

    (request,) = seen
    assert request.method == "PUT"
    assert request.url.path == "/api/v10/applications/app-1/guilds/g1/commands"
    assert request.headers["authorization"] == "Bot tok"
    assert json.loads(request.content) == [{"name": "ping"}]


@pytest.mark.asyncio
async def test_registration_failure_raises() -> None:
    with pytest.raises(httpx.HTTPStatusError):
        await client(lambda r: httpx.Response(401)).put_guild_commands("g1", [])


@pytest.mark.asyncio
async def test_rest_interaction_responds_once_then_follows_up() -> None:
    seen: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={})

    interaction = RestInteraction(client=client(handler), interaction_id="i1", token="t1")
    await interaction.respond({"content": "first"})
    await interaction.follow_up({"content": "second"})

    assert interaction.has_responded
    assert seen == [
        ("/api/v10/interactions/i1/t1/callback", {"type": 4, "data": {"content": "first"}}),
        ("/api/v10/webhooks/app-1/t1", {"content": "second"}),
    ]
    with pytest.raises(RuntimeError):
        await interaction.respond({"content": "again"})


@pytest.mark.asyncio
async def test_member_roles() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(204)

    c = client(handler)
    await c.add_member_role(guild_id="g", user_id="u", role_id="r")
    await c.remove_member_role(guild_id="g", user_id="u", role_id="r")
    assert seen == [
        ("PUT", "/api/v10/guilds/g/members/u/roles/r"),
        ("DELETE", "/api/v10/guilds/g/members/u/roles/r"),
    ]


@pytest.mark.asyncio
async def test_wait_for_message_filters_by_author() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v10/channels/c1/messages"
        assert int(request.url.params["after"]) > 0
        return httpx.Response(
            200,
            json=[
                {"id": "9000000000000000002", "author": {"id": "u1"}, "content": "mine"},
                {"id": "9000000000000000001", "author": {"id": "u2"}, "content": "other"},
            ],
        )

    reply = await client(handler).wait_for_message(
        channel_id="c1", user_id="u1", timeout_seconds=1, poll_seconds=0.01
    )
    assert reply == "mine"


@pytest.mark.asyncio
async def test_wait_for_message_times_out() -> None:
    reply = await client(lambda r: httpx.Response(200, json=[])).wait_for_message(
        channel_id="c1", user_id="u1", timeout_seconds=0.05, poll_seconds=0.01
    )
    assert reply is None


def test_snowflake_at_epoch() -> None:
    assert snowflake_at(1420070400000) == 0
    assert snowflake_at(1420070400001) == 1 << 22


def test_signature_verification() -> None:
    key = Ed25519PrivateKey.generate()
    public_hex = key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
    body = b'{"type":1}'
    signature = key.sign(b"1700000000" + body).hex()

    assert verify_signature(
        public_key_hex=public_hex, signature_hex=signature, timestamp="1700000000", body=body
    )
    assert not verify_signature(
        public_key_hex=public_hex, signature_hex=signature, timestamp="1700000001", body=body
    )
    assert not verify_signature(
        public_key_hex=public_hex, signature_hex="zz", timestamp="1700000000", body=body
    )


def test_parse_guild_interaction() -> None:
    event = parse_interaction(
        {
            "id": "i1",
            "token": "t1",
            "type": 2,
            "guild_id": "g1",
            "channel_id": "c1",
            "channel": {"id": "c1", "name": "general"},
            "member": {"user": {"id": "u1", "username": "ada"}},
            "data": {"name": "greet", "options": [{"name": "who", "type": 3, "value": "bob"}]},
        }
    )
    assert (event.guild_id, event.command_name, event.user_id) == ("g1", "greet", "u1")
    assert event.options == {"who": "bob"}

    ctx = event.to_context()
    assert ctx.user.username == "ada"
    assert ctx.guild is not None and ctx.guild.id == "g1"
    assert ctx.channel.name == "general"
    assert ctx.initial_variables() == {"who": "bob"}


def test_parse_dm_interaction() -> None:
    event = parse_interaction(
        {"id": "i1", "token": "t1", "channel_id": "dm", "user": {"id": "u1"}, "data": {"name": "x"}}
    )
    assert event.guild_id is None
    assert event.to_context().guild is None


def test_registration_schema() -> None:
    command = SimpleNamespace(
        name="roll",
        description="",
        options=[
            {"name": "sides", "type": "integer", "required": True, "description": "Sides"},
            {"name": "label", "type": "SOMETHING_ELSE"},
        ],
    )
    assert to_registration(command) == {
        "name": "roll",
        "description": "No description",
        "options": [
            {"name": "sides", "description": "Sides", "type": 4, "required": True},
            {"name": "label", "description": "No description", "type": 3, "required": False},
        ],
    }
