from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from messaging_sync.devserver.deps import StateDep
from messaging_sync.devserver.routers.users import API_PREFIX
from messaging_sync.devserver.schemas import SendMessageRequest, ViewerBody, message_to_wire

router = APIRouter(prefix=f"{API_PREFIX}/conversations", tags=["messages"])


@router.get("/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    state: StateDep,
    viewer_id: str = Query(..., alias="viewerId"),
) -> dict[str, Any]:
    messages = state.list_messages(viewer_id, conversation_id)
    return {"success": True, "messages": [message_to_wire(m) for m in messages]}


@router.post("/{conversation_id}/messages")
async def send_message(
    conversation_id: str,
    body: SendMessageRequest,
    state: StateDep,
) -> dict[str, Any]:
    message = state.send_message(body.viewer_id, conversation_id, body.text)
    return {"success": True, "message": message_to_wire(message)}


@router.post("/{conversation_id}/read")
async def mark_read(
    conversation_id: str,
    body: ViewerBody,
    state: StateDep,
) -> dict[str, Any]:
    state.mark_read(body.viewer_id, conversation_id)
    return {"success": True, "message": "Messages marked as read"}
