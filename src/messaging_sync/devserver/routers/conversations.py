from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from messaging_sync.devserver.deps import StateDep
from messaging_sync.devserver.routers.users import API_PREFIX
from messaging_sync.devserver.schemas import (
    AddMemberRequest,
    CreateDirectRequest,
    CreateGroupRequest,
    GroupAvatarRequest,
    RenameGroupRequest,
    ViewerBody,
)

router = APIRouter(prefix=f"{API_PREFIX}/conversations", tags=["conversations"])


@router.post("/direct")
async def create_direct_conversation(
    body: CreateDirectRequest,
    state: StateDep,
) -> dict[str, Any]:
    conversation, created = state.create_direct(body.viewer_id, body.other_user_id)
    return {
        "success": True,
        "conversationId": conversation.id,
        "message": (
            "Direct conversation created successfully" if created
            else "Conversation already exists"
        ),
    }


@router.post("/group")
async def create_group_conversation(
    body: CreateGroupRequest,
    state: StateDep,
) -> dict[str, Any]:
    conversation = state.create_group(
        body.viewer_id, body.name, body.member_ids, body.avatar_ref,
    )
    return {
        "success": True,
        "conversationId": conversation.id,
        "message": "Group conversation created successfully",
    }


@router.patch("/{conversation_id}/name")
async def update_group_name(
    conversation_id: str,
    body: RenameGroupRequest,
    state: StateDep,
) -> dict[str, Any]:
    state.rename_group(body.viewer_id, conversation_id, body.name)
    return {"success": True, "message": "Group name updated successfully"}


@router.patch("/{conversation_id}/avatar")
async def update_group_avatar(
    conversation_id: str,
    body: GroupAvatarRequest,
    state: StateDep,
) -> dict[str, Any]:
    state.set_group_avatar(body.viewer_id, conversation_id, body.avatar_ref)
    return {"success": True, "message": "Group avatar updated successfully"}


@router.post("/{conversation_id}/members")
async def add_group_member(
    conversation_id: str,
    body: AddMemberRequest,
    state: StateDep,
) -> dict[str, Any]:
    state.add_member(body.viewer_id, conversation_id, body.user_id)
    return {"success": True, "message": "Member added to group successfully"}


@router.delete("/{conversation_id}")
async def delete_conversation(
    conversation_id: str,
    body: ViewerBody,
    state: StateDep,
) -> dict[str, Any]:
    state.delete_conversation(body.viewer_id, conversation_id)
    return {"success": True, "message": "Conversation deleted successfully"}
