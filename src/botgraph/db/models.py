"""
botgraph.db.models

Persistence schema for bot projects and their deployments.

Responsibilities:
- Define ORM models:
  - BotProject: a set of commands authored together
  - Command: a slash command and its option schema
  - CommandGraph: immutable, versioned graph snapshots (one active per command)
  - GuildDeployment: which projects are registered in which guild
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Enum, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy import Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from botgraph.db.base import Base


def _utcnow() -> datetime:
    # Naive UTC timestamps; SQLite does not keep tz info.
    return datetime.now(UTC).replace(tzinfo=None)


class CommandType(enum.StrEnum):
    # Only SLASH commands are registered with the platform.
    slash = "SLASH"
    user = "USER"
    message = "MESSAGE"


class BotProject(Base):
    __tablename__ = "bot_projects"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    owner: Mapped[str] = mapped_column(String(256), nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    commands: Mapped[list[Command]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )


class Command(Base):
    __tablename__ = "commands"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bot_projects.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str | None] = mapped_column(String(100), nullable=True)
    type: Mapped[CommandType] = mapped_column(
        Enum(CommandType), nullable=False, default=CommandType.slash
    )
    is_enabled: Mapped[bool] = mapped_column(nullable=False, default=True)
    # [{name, description, type, required}]
    options: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    project: Mapped[BotProject] = relationship(back_populates="commands")
    graphs: Mapped[list[CommandGraph]] = relationship(
        back_populates="command", cascade="all, delete-orphan"
    )


class CommandGraph(Base):
    __tablename__ = "command_graphs"
    __table_args__ = (UniqueConstraint("command_id", "version"),)

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    command_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("commands.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(nullable=False)
    graph_json: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True, index=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    command: Mapped[Command] = relationship(back_populates="graphs")


class GuildDeployment(Base):
    __tablename__ = "guild_deployments"
    __table_args__ = (UniqueConstraint("guild_id", "project_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    guild_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bot_projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    deployed_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


# --- Module Notes -----------------------------------------------------------
# Graph snapshots are never updated in place apart from the `is_active` flag; a
# semantic edit always inserts a new version.
