from __future__ import annotations

from datetime import datetime, timezone

from messaging_sync.domain.entities.conversation import Conversation
from messaging_sync.domain.entities.message import Message
from messaging_sync.domain.entities.participant import Participant
from messaging_sync.domain.entities.user import UserRef
from messaging_sync.domain.value_objects.enums import ConversationKind, UserRole
from messaging_sync.infrastructure.http.schemas import (
    ConversationPayload,
    MessagePayload,
    ParticipantPayload,
    UserPayload,
)


def parse_timestamp(raw: str | None) -> datetime | None:
    """ISO-8601 to an aware datetime; naive values are UTC, garbage is None."""
    if not raw:
        return None
    try:
        ts = datetime.fromisoformat(raw.strip())
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def parse_role(raw: str | None) -> UserRole | None:
    if not raw:
        return None
    try:
        return UserRole(raw.lower())
    except ValueError:
        return None


def payload_to_message(payload: MessagePayload, conversation_id: str | None = None) -> Message:
    return Message(
        id=payload.id,
        conversation_id=payload.conversation_id or conversation_id or "",
        sender_id=payload.sender_id,
        text=payload.text,
        created_at=parse_timestamp(payload.created_at),
        is_optimistic=False,
        type=payload.type,
        is_important=payload.is_important,
    )


def payload_to_participant(payload: ParticipantPayload) -> Participant:
    return Participant(
        user_id=payload.user_id,
        display_name=payload.display_name,
        avatar_ref=payload.avatar_ref or None,
        is_active_member=payload.is_active,
        role=parse_role(payload.role),
    )


def payload_to_conversation(payload: ConversationPayload) -> Conversation:
    kind = ConversationKind(payload.kind.lower())
    last_message = (
        payload_to_message(payload.last_message, payload.id)
        if payload.last_message is not None
        else None
    )
    return Conversation(
        id=payload.id,
        kind=kind,
        display_name=payload.name if kind == ConversationKind.GROUP else None,
        avatar_ref=payload.avatar_ref or None,
        participants=tuple(payload_to_participant(p) for p in payload.participants),
        last_message=last_message,
        unread_count=payload.unread_count,
        created_at=parse_timestamp(payload.created_at),
        updated_at=parse_timestamp(payload.updated_at),
    )


def payload_to_user(payload: UserPayload) -> UserRef:
    return UserRef(
        id=payload.id,
        display_name=payload.display_name or payload.username or payload.id,
        avatar_ref=payload.avatar_ref or None,
        role=parse_role(payload.role),
        username=payload.username,
        email=payload.email,
    )
