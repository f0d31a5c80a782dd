"""
botgraph.api.routers.simulate

Offline simulation for the authoring tool.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_422_UNPROCESSABLE_ENTITY

from botgraph.api.deps import settings_dep
from botgraph.errors import GraphStructureError
from botgraph.graph.context import ChannelRef, GuildRef, InvocationContext, UserRef
from botgraph.graph.models import Graph
from botgraph.runtime.simulation import simulate
from botgraph.settings import Settings

router = APIRouter(prefix="/v1", tags=["authoring"])


class MockContext(BaseModel):
    user_id: str | None = None
    username: str | None = None
    guild_id: str | None = None
    guild_name: str | None = None
    channel_id: str | None = None
    channel_name: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)
    variables: dict[str, Any] = Field(default_factory=dict)
    seed: int | None = None

    def build(self) -> InvocationContext:
        # Unset identity fields keep the default mock identity.
        return InvocationContext.mock(
            user=UserRef(id=self.user_id, username=self.username or "TestUser")
            if self.user_id
            else None,
            guild=GuildRef(id=self.guild_id, name=self.guild_name or "") if self.guild_id else None,
            channel=ChannelRef(id=self.channel_id, name=self.channel_name or "")
            if self.channel_id
            else None,
            options=self.options,
            variables=self.variables,
            seed=self.seed,
        )


class SimulateRequest(BaseModel):
    graph: Graph
    context: MockContext = Field(default_factory=MockContext)
    # Node id or action kind (e.g. "API_CALL") -> canned result.
    action_stubs: dict[str, Any] = Field(default_factory=dict)


@router.post("/simulate")
async def simulate_graph(
    body: SimulateRequest, settings: Settings = Depends(settings_dep)
) -> dict[str, Any]:
    try:
        result = await simulate(
            body.graph,
            body.context.build(),
            delay_cap_ms=settings.simulation_delay_cap_ms,
            action_stubs=body.action_stubs,
            max_node_visits=settings.max_node_visits,
        )
    except GraphStructureError as e:
        raise HTTPException(status_code=HTTP_422_UNPROCESSABLE_ENTITY, detail=e.errors) from e
    return result.to_dict()
