"""
botgraph.platform.events

Inbound interaction payloads mapped to invocation events.

Responsibilities:
- Parse application-command interactions into `InvocationEvent`.
- Build the per-invocation runtime context from an event.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from botgraph.graph.context import ChannelRef, GuildRef, InvocationContext, UserRef

PING = 1
APPLICATION_COMMAND = 2


@dataclass(frozen=True, slots=True)
class InvocationEvent:
    guild_id: str | None
    command_name: str
    user_id: str
    channel_id: str
    options: dict[str, Any] = field(default_factory=dict)
    interaction_id: str = ""
    token: str = ""
    username: str = ""
    channel_name: str = ""

    def to_context(self) -> InvocationContext:
        return InvocationContext(
            user=UserRef(id=self.user_id, username=self.username),
            guild=GuildRef(id=self.guild_id) if self.guild_id else None,
            channel=ChannelRef(id=self.channel_id, name=self.channel_name),
            options=dict(self.options),
        )


def parse_interaction(payload: dict[str, Any]) -> InvocationEvent:
    data = payload.get("data") or {}
    # Guild invocations carry `member.user`; DMs carry `user`.
    user = (payload.get("member") or {}).get("user") or payload.get("user") or {}
    channel = payload.get("channel") or {}
    return InvocationEvent(
        guild_id=payload.get("guild_id"),
        command_name=str(data.get("name", "")),
        user_id=str(user.get("id", "")),
        username=str(user.get("username", "")),
        channel_id=str(payload.get("channel_id") or channel.get("id") or ""),
        channel_name=str(channel.get("name", "")),
        options={o["name"]: o.get("value") for o in data.get("options") or [] if "name" in o},
        interaction_id=str(payload.get("id", "")),
        token=str(payload.get("token", "")),
    )
