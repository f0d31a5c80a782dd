"""
tests.conftest

Shared builders and fakes.

Responsibilities:
- Build graph documents tersely.
- Provide a temporary SQLite session factory.
- Provide in-memory stand-ins for the platform boundary.
"""

from __future__ import annotations

import uuid
from typing import Any

import pytest_asyncio

from botgraph.db.init_db import init_db
from botgraph.db.repositories.graphs import CommandGraphRepo
from botgraph.db.repositories.projects import CommandRepo, ProjectRepo
from botgraph.db.session import create_engine, create_sessionmaker
from botgraph.graph.models import Graph
from botgraph.settings import Settings


def node(node_id: str, type_: str, **data: Any) -> dict[str, Any]:
    return {"id": node_id, "type": type_, "data": data}


def edge(source: str, target: str, handle: str | None = None) -> dict[str, Any]:
    e: dict[str, Any] = {"id": f"{source}->{target}", "source": source, "target": target}
    if handle is not None:
        e["sourceHandle"] = handle
    return e


def graph(nodes: list[dict[str, Any]], edges: list[dict[str, Any]]) -> Graph:
    return Graph.model_validate({"nodes": nodes, "edges": edges})


def chain(*nodes: dict[str, Any]) -> Graph:
    """Linear graph in the given order."""

    return graph(list(nodes), [edge(a["id"], b["id"]) for a, b in zip(nodes, nodes[1:])])


def say(*texts: str) -> Graph:
    return chain(
        node("start", "START"),
        *(node(f"m{i}", "SEND_MESSAGE", content=t) for i, t in enumerate(texts)),
        node("end", "END"),
    )


def db_settings(tmp_path, **overrides: Any) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'botgraph-test.db'}",
        **overrides,
    )


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_engine(db_settings(tmp_path))
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


async def seed_project(
    session_factory,
    *,
    name: str,
    commands: dict[str, Graph | None],
    owner: str = "owner-1",
) -> uuid.UUID:
    """Create a project with one enabled slash command per entry (and its graph)."""

    async with session_factory() as session:
        project = await ProjectRepo(session).create(owner=owner, name=name)
        for command_name, g in commands.items():
            command = await CommandRepo(session).create(
                project_id=project.id,
                name=command_name,
                options=[{"name": "target", "type": "USER", "required": False}],
            )
            if g is not None:
                await CommandGraphRepo(session).save_version(
                    command_id=command.id, graph_json=g.to_wire()
                )
        await session.commit()
        return project.id


class FakeInteraction:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @property
    def has_responded(self) -> bool:
        return any(kind == "respond" for kind, _ in self.calls)

    async def respond(self, payload: dict[str, Any]) -> None:
        assert not self.has_responded, "primary response sent twice"
        self.calls.append(("respond", payload))

    async def follow_up(self, payload: dict[str, Any]) -> None:
        self.calls.append(("follow_up", payload))

    def contents(self) -> list[str | None]:
        return [p.get("content") for _, p in self.calls]


class FakeRegistrar:
    def __init__(self) -> None:
        self.pushes: list[tuple[str, list[dict[str, Any]]]] = []
        self.fail = False

    async def put_guild_commands(self, guild_id: str, commands: list[dict[str, Any]]) -> Any:
        if self.fail:
            raise RuntimeError("401 Unauthorized")
        self.pushes.append((guild_id, commands))
        return commands

    def registered(self, guild_id: str) -> set[str]:
        pushed = [cmds for g, cmds in self.pushes if g == guild_id]
        return {c["name"] for c in pushed[-1]} if pushed else set()


class FakePlatform:
    def __init__(self, replies: dict[str, str] | None = None) -> None:
        self.calls: list[tuple[str, ...]] = []
        self._replies = replies or {}

    async def add_member_role(self, *, guild_id: str, user_id: str, role_id: str) -> None:
        self.calls.append(("add", guild_id, user_id, role_id))

    async def remove_member_role(self, *, guild_id: str, user_id: str, role_id: str) -> None:
        self.calls.append(("remove", guild_id, user_id, role_id))

    async def wait_for_message(
        self, *, channel_id: str, user_id: str, timeout_seconds: float, poll_seconds: float
    ) -> str | None:
        self.calls.append(("wait", channel_id, user_id))
        return self._replies.get(user_id)
