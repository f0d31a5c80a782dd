"""
botgraph.graph.context

Per-invocation runtime context (never persisted).

Responsibilities:
- Carry the invoking identity (user, guild, channel) and command options.
- Hold the reply-state flag used by the live backend.
- Hold the variable map materialized for one invocation.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class UserRef:
    id: str
    username: str
    discriminator: str = "0"

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"


@dataclass(frozen=True, slots=True)
class GuildRef:
    id: str
    name: str = ""


@dataclass(frozen=True, slots=True)
class ChannelRef:
    id: str
    name: str = ""


@dataclass(slots=True)
class InvocationContext:
    user: UserRef
    guild: GuildRef | None
    channel: ChannelRef
    options: dict[str, Any] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)
    has_replied: bool = False
    # Injected so Random nodes can be made deterministic in tests/simulation.
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def mock(
        cls,
        *,
        user: UserRef | None = None,
        guild: GuildRef | None = None,
        channel: ChannelRef | None = None,
        options: dict[str, Any] | None = None,
        variables: dict[str, Any] | None = None,
        seed: int | None = None,
    ) -> InvocationContext:
        return cls(
            user=user or UserRef(id="123456789012345678", username="TestUser", discriminator="0001"),
            guild=guild or GuildRef(id="987654321098765432", name="Test Server"),
            channel=channel or ChannelRef(id="111222333444555666", name="general"),
            options=dict(options or {}),
            variables=dict(variables or {}),
            rng=random.Random(seed),
        )

    def initial_variables(self) -> dict[str, Any]:
        # Command options are visible as plain variables; explicit seeds win.
        return {**self.options, **self.variables}
