"""
botgraph.platform.interaction

Reply capability for a single interaction over the REST callback/webhook endpoints.
"""

from __future__ import annotations

from typing import Any

from botgraph.platform.discord import DiscordClient


class RestInteraction:
    def __init__(self, *, client: DiscordClient, interaction_id: str, token: str) -> None:
        self._client = client
        self._interaction_id = interaction_id
        self._token = token
        self._responded = False

    @property
    def has_responded(self) -> bool:
        return self._responded

    async def respond(self, payload: dict[str, Any]) -> None:
        if self._responded:
            raise RuntimeError("interaction already has a primary response")
        await self._client.create_interaction_response(
            interaction_id=self._interaction_id, token=self._token, data=payload
        )
        self._responded = True

    async def follow_up(self, payload: dict[str, Any]) -> None:
        await self._client.create_followup(token=self._token, data=payload)
