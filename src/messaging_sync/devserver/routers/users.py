from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from messaging_sync.devserver.deps import StateDep
from messaging_sync.devserver.schemas import conversation_to_wire, user_to_wire

API_PREFIX = "/api/v1/messaging"

router = APIRouter(prefix=f"{API_PREFIX}/users", tags=["users"])


@router.get("/search")
async def search_users(
    state: StateDep,
    viewer_id: str = Query(..., alias="viewerId"),
    q: str = Query(""),
) -> dict[str, Any]:
    users = state.search_users(viewer_id, q)
    return {"success": True, "users": [user_to_wire(u) for u in users]}


@router.get("/{viewer_id}/conversations")
async def list_conversations(viewer_id: str, state: StateDep) -> dict[str, Any]:
    conversations = state.list_conversations(viewer_id)
    return {
        "success": True,
        "conversations": [conversation_to_wire(state, c, viewer_id) for c in conversations],
    }
