"""
botgraph.platform.discord

HTTP client boundary for the Discord REST API.

Responsibilities:
- Attach bot credentials.
- Replace the full guild command set (bulk overwrite).
- Send primary interaction responses and follow-ups.
- Add/remove member roles; poll a channel for a user's reply.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from botgraph.settings import Settings

# Discord snowflake epoch (2015-01-01T00:00:00Z) in milliseconds.
_DISCORD_EPOCH_MS = 1420070400000

CHANNEL_MESSAGE_WITH_SOURCE = 4


def snowflake_at(ms: int) -> int:
    return max(0, ms - _DISCORD_EPOCH_MS) << 22


class DiscordClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http
        self._base = settings.discord_api_base_url.rstrip("/")

    def _authz(self) -> dict[str, str]:
        return {"Authorization": f"Bot {self._settings.discord_bot_token}"}

    async def put_guild_commands(
        self, guild_id: str, commands: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        # Bulk overwrite: whatever is not in `commands` is removed from the guild.
        app_id = self._settings.discord_application_id
        r = await self._http.put(
            f"{self._base}/applications/{app_id}/guilds/{guild_id}/commands",
            headers=self._authz(),
            json=commands,
        )
        r.raise_for_status()
        return r.json()

    async def create_interaction_response(
        self, *, interaction_id: str, token: str, data: dict[str, Any]
    ) -> None:
        r = await self._http.post(
            f"{self._base}/interactions/{interaction_id}/{token}/callback",
            json={"type": CHANNEL_MESSAGE_WITH_SOURCE, "data": data},
        )
        r.raise_for_status()

    async def create_followup(self, *, token: str, data: dict[str, Any]) -> dict[str, Any]:
        app_id = self._settings.discord_application_id
        r = await self._http.post(f"{self._base}/webhooks/{app_id}/{token}", json=data)
        r.raise_for_status()
        return r.json()

    async def add_member_role(self, *, guild_id: str, user_id: str, role_id: str) -> None:
        r = await self._http.put(
            f"{self._base}/guilds/{guild_id}/members/{user_id}/roles/{role_id}",
            headers=self._authz(),
        )
        r.raise_for_status()

    async def remove_member_role(self, *, guild_id: str, user_id: str, role_id: str) -> None:
        r = await self._http.delete(
            f"{self._base}/guilds/{guild_id}/members/{user_id}/roles/{role_id}",
            headers=self._authz(),
        )
        r.raise_for_status()

    async def list_channel_messages(
        self, *, channel_id: str, after: int, limit: int = 50
    ) -> list[dict[str, Any]]:
        r = await self._http.get(
            f"{self._base}/channels/{channel_id}/messages",
            headers=self._authz(),
            params={"after": str(after), "limit": limit},
        )
        r.raise_for_status()
        return r.json()

    async def wait_for_message(
        self,
        *,
        channel_id: str,
        user_id: str,
        timeout_seconds: float,
        poll_seconds: float,
    ) -> str | None:
        """
        Poll `channel_id` for the first message by `user_id` posted after this call.
        Returns None when nothing arrives within `timeout_seconds`.
        """

        after = snowflake_at(int(time.time() * 1000))
        deadline = time.monotonic() + timeout_seconds
        while True:
            messages = await self.list_channel_messages(channel_id=channel_id, after=after)
            for msg in sorted(messages, key=lambda m: int(m["id"])):
                after = max(after, int(msg["id"]))
                if str(msg.get("author", {}).get("id")) == user_id:
                    return str(msg.get("content", ""))
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            await asyncio.sleep(min(poll_seconds, remaining))


# --- Module Notes -----------------------------------------------------------
# The shared httpx client is also used by ApiCall nodes, so it carries no base_url;
# every platform URL is built from `discord_api_base_url` here.
