"""
botgraph.api.routers.graphs

Authoring save path for command graphs.

Responsibilities:
- Validate a graph document without saving it.
- Save a structurally valid graph as the command's new active version.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_404_NOT_FOUND, HTTP_422_UNPROCESSABLE_ENTITY

from botgraph.api.deps import db_session
from botgraph.db.repositories.graphs import CommandGraphRepo
from botgraph.db.repositories.projects import CommandRepo
from botgraph.errors import GraphStructureError
from botgraph.graph.models import Graph
from botgraph.graph.validation import ensure_valid, validate_graph

router = APIRouter(prefix="/v1", tags=["authoring"])


@router.post("/graphs/validate")
async def validate(graph: Graph) -> dict[str, Any]:
    result = validate_graph(graph)
    return {"valid": result.valid, "errors": result.errors, "warnings": result.warnings}


@router.put("/commands/{command_id}/graph")
async def save_graph(
    command_id: uuid.UUID,
    graph: Graph,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    if await CommandRepo(session).get(command_id) is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="command not found")
    try:
        result = ensure_valid(graph)
    except GraphStructureError as e:
        raise HTTPException(status_code=HTTP_422_UNPROCESSABLE_ENTITY, detail=e.errors) from e

    snapshot = await CommandGraphRepo(session).save_version(
        command_id=command_id, graph_json=graph.to_wire()
    )
    await session.commit()
    return {"command_id": str(command_id), "version": snapshot.version, "warnings": result.warnings}
