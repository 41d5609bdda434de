"""Request bodies and response shaping for the development API."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from messaging_sync.devserver.state import (
    ConversationRecord,
    MessageRecord,
    MessagingState,
    UserRecord,
)


class ViewerBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    viewer_id: str = Field(alias="viewerId")


class SendMessageRequest(ViewerBody):
    text: str


class CreateDirectRequest(ViewerBody):
    other_user_id: str = Field(alias="otherUserId")


class CreateGroupRequest(ViewerBody):
    name: str
    member_ids: list[str] = Field(alias="memberIds")
    avatar_ref: str | None = Field(None, alias="avatarRef")


class RenameGroupRequest(ViewerBody):
    name: str


class GroupAvatarRequest(ViewerBody):
    avatar_ref: str = Field(alias="avatarRef")


class AddMemberRequest(ViewerBody):
    user_id: str = Field(alias="userId")


def message_to_wire(message: MessageRecord) -> dict[str, Any]:
    return {
        "id": message.id,
        "conversationId": message.conversation_id,
        "senderId": message.sender_id,
        "text": message.text,
        "createdAt": message.created_at.isoformat(),
        "messageType": message.type,
    }


def user_to_wire(user: UserRecord) -> dict[str, Any]:
    return {
        "id": user.id,
        "displayName": user.display_name,
        "avatarRef": user.avatar_ref,
        "role": user.role.value,
        "username": user.username,
        "email": user.email,
    }


def conversation_to_wire(
    state: MessagingState,
    conversation: ConversationRecord,
    viewer_id: str,
) -> dict[str, Any]:
    participants = []
    for user_id, active in conversation.members.items():
        user = state.users.get(user_id)
        participants.append({
            "userId": user_id,
            "displayName": user.display_name if user else user_id,
            "avatarRef": user.avatar_ref if user else None,
            "isActiveMember": active,
            "role": user.role.value if user else None,
        })
    last = state.last_message(conversation.id)
    return {
        "id": conversation.id,
        "kind": conversation.kind.value,
        "name": conversation.name,
        "avatarRef": conversation.avatar_ref,
        "participants": participants,
        "lastMessage": message_to_wire(last) if last else None,
        "unreadCount": state.unread_count(viewer_id, conversation.id),
        "createdAt": conversation.created_at.isoformat(),
        "updatedAt": conversation.updated_at.isoformat(),
    }
