"""
botgraph.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide platform credentials from repr/logging.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from botgraph.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BOTGRAPH_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "botgraph"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./botgraph.db"

    # Chat platform
    discord_api_base_url: str = "https://discord.com/api/v10"
    discord_application_id: str = ""
    discord_bot_token: str = Field(default="", repr=False)
    discord_public_key: str = ""

    # Graph runtime
    execution_timeout_seconds: float = 5.0
    simulation_delay_cap_ms: int = 100
    max_node_visits: int = 1000
    await_reply_poll_seconds: float = 1.0

    def require_platform_credentials(self) -> None:
        missing = [
            name
            for name, value in (
                ("BOTGRAPH_DISCORD_APPLICATION_ID", self.discord_application_id),
                ("BOTGRAPH_DISCORD_BOT_TOKEN", self.discord_bot_token),
                ("BOTGRAPH_DISCORD_PUBLIC_KEY", self.discord_public_key),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(missing)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Credentials are validated lazily by the bot service at start(), so read-only
# surfaces (simulation, validation, health) run without platform configuration.
