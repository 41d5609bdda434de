"""Wire models for the messaging API.

The API is not consistent about field names, so each model accepts every
spelling seen in responses and exposes one canonical attribute.
"""
from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

_WIRE_CONFIG = ConfigDict(
    extra="ignore",
    populate_by_name=True,
    coerce_numbers_to_str=True,
)


class Envelope(BaseModel):
    model_config = _WIRE_CONFIG

    success: bool = False
    message: str | None = None


class UserPayload(BaseModel):
    model_config = _WIRE_CONFIG

    id: str = Field(validation_alias=AliasChoices("id", "userId", "user_id"))
    display_name: str | None = Field(
        None, validation_alias=AliasChoices("displayName", "name")
    )
    avatar_ref: str | None = Field(
        None, validation_alias=AliasChoices("avatarRef", "avatarUrl", "profilePicture")
    )
    role: str | None = Field(None, validation_alias=AliasChoices("role", "userType"))
    username: str | None = None
    email: str | None = None


class ParticipantPayload(BaseModel):
    model_config = _WIRE_CONFIG

    user_id: str = Field(validation_alias=AliasChoices("userId", "user_id", "id"))
    display_name: str | None = Field(
        None, validation_alias=AliasChoices("displayName", "name")
    )
    avatar_ref: str | None = Field(
        None, validation_alias=AliasChoices("avatarRef", "avatarUrl", "profilePicture")
    )
    is_active: bool = Field(
        True, validation_alias=AliasChoices("isActiveMember", "isActive", "is_active")
    )
    role: str | None = Field(None, validation_alias=AliasChoices("role", "userType"))


class MessagePayload(BaseModel):
    model_config = _WIRE_CONFIG

    id: str
    conversation_id: str | None = Field(
        None, validation_alias=AliasChoices("conversationId", "conversation_id")
    )
    sender_id: str = Field(validation_alias=AliasChoices("senderId", "sender_id"))
    text: str = Field(
        "", validation_alias=AliasChoices("text", "content", "message_text", "message")
    )
    created_at: str | None = Field(
        None, validation_alias=AliasChoices("createdAt", "created_at")
    )
    type: str = Field("text", validation_alias=AliasChoices("messageType", "message_type", "type"))
    is_important: bool = Field(
        False, validation_alias=AliasChoices("isImportant", "is_important")
    )


class ConversationPayload(BaseModel):
    model_config = _WIRE_CONFIG

    id: str
    kind: str = Field(validation_alias=AliasChoices("kind", "type"))
    name: str | None = Field(None, validation_alias=AliasChoices("name", "displayName"))
    avatar_ref: str | None = Field(
        None, validation_alias=AliasChoices("avatarRef", "avatarUrl", "avatar_url")
    )
    participants: list[ParticipantPayload] = []
    last_message: MessagePayload | None = Field(
        None, validation_alias=AliasChoices("lastMessage", "last_message")
    )
    unread_count: int | None = Field(
        None, validation_alias=AliasChoices("unreadCount", "unread_count")
    )
    created_at: str | None = Field(None, validation_alias=AliasChoices("createdAt", "created_at"))
    updated_at: str | None = Field(None, validation_alias=AliasChoices("updatedAt", "updated_at"))


class ConversationListResponse(Envelope):
    conversations: list[ConversationPayload] = []


class MessageListResponse(Envelope):
    messages: list[MessagePayload] = []


class SentMessageResponse(BaseModel):
    model_config = _WIRE_CONFIG

    success: bool = False
    message: MessagePayload


class ConversationIdResponse(Envelope):
    conversation_id: str = Field(validation_alias=AliasChoices("conversationId", "conversation_id"))


class UserSearchResponse(Envelope):
    users: list[UserPayload] = []
