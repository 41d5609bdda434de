"""In-memory data behind the development messaging API."""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime

from messaging_sync.application.exceptions import (
    AuthError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from messaging_sync.application.ports.clock import Clock, SystemClock
from messaging_sync.domain.value_objects.enums import ConversationKind, MessageType, UserRole

MAX_TEXT_LENGTH = 1000
SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 10


@dataclass(slots=True)
class UserRecord:
    id: str
    display_name: str
    role: UserRole
    username: str = ""
    email: str = ""
    avatar_ref: str | None = None


@dataclass(slots=True)
class ConversationRecord:
    id: str
    kind: ConversationKind
    created_by: str
    created_at: datetime
    updated_at: datetime
    name: str | None = None
    avatar_ref: str | None = None
    members: dict[str, bool] = field(default_factory=dict)  # user id -> active

    def is_active_member(self, user_id: str) -> bool:
        return self.members.get(user_id, False)


@dataclass(frozen=True, slots=True)
class MessageRecord:
    id: str
    conversation_id: str
    sender_id: str
    text: str
    created_at: datetime
    type: str = MessageType.TEXT


class MessagingState:
    """Conversations, messages and read receipts for a handful of users."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._ids = itertools.count(1)
        self.users: dict[str, UserRecord] = {}
        self.conversations: dict[str, ConversationRecord] = {}
        self.messages: dict[str, list[MessageRecord]] = {}
        self._read: dict[str, set[str]] = {}

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def add_user(
        self,
        user_id: str,
        display_name: str,
        role: UserRole = UserRole.STUDENT,
        *,
        username: str = "",
        email: str = "",
        avatar_ref: str | None = None,
    ) -> UserRecord:
        user = UserRecord(user_id, display_name, role, username, email, avatar_ref)
        self.users[user_id] = user
        return user

    # -- access checks -----------------------------------------------------

    def _viewer(self, viewer_id: str) -> UserRecord:
        user = self.users.get(viewer_id)
        if user is None:
            raise AuthError("Unknown viewer")
        return user

    def _conversation(self, conversation_id: str) -> ConversationRecord:
        conversation = self.conversations.get(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        return conversation

    def _membership(self, viewer_id: str, conversation_id: str) -> ConversationRecord:
        self._viewer(viewer_id)
        conversation = self._conversation(conversation_id)
        if not conversation.is_active_member(viewer_id):
            raise ForbiddenError("Access denied to this conversation")
        return conversation

    def _group(self, viewer_id: str, conversation_id: str) -> ConversationRecord:
        conversation = self._membership(viewer_id, conversation_id)
        if conversation.kind != ConversationKind.GROUP:
            raise ValidationError("Only group conversations support this operation")
        return conversation

    # -- reads -------------------------------------------------------------

    def list_conversations(self, viewer_id: str) -> list[ConversationRecord]:
        self._viewer(viewer_id)
        mine = [c for c in self.conversations.values() if c.is_active_member(viewer_id)]
        return sorted(mine, key=lambda c: c.updated_at, reverse=True)

    def last_message(self, conversation_id: str) -> MessageRecord | None:
        messages = self.messages.get(conversation_id)
        return messages[-1] if messages else None

    def unread_count(self, viewer_id: str, conversation_id: str) -> int:
        read = self._read.get(viewer_id, set())
        return sum(
            1
            for m in self.messages.get(conversation_id, [])
            if m.sender_id != viewer_id and m.id not in read
        )

    def list_messages(self, viewer_id: str, conversation_id: str) -> list[MessageRecord]:
        self._membership(viewer_id, conversation_id)
        return list(self.messages.get(conversation_id, []))

    def search_users(self, viewer_id: str, query: str) -> list[UserRecord]:
        self._viewer(viewer_id)
        query = query.strip().lower()
        if len(query) < SEARCH_MIN_LENGTH:
            raise ValidationError(
                f"Search term must be at least {SEARCH_MIN_LENGTH} characters long"
            )
        matches = [
            u for u in self.users.values()
            if u.id != viewer_id
            and u.role != UserRole.SYSTEM
            and any(query in value.lower() for value in (u.display_name, u.username, u.email))
        ]
        return matches[:SEARCH_LIMIT]

    # -- writes ------------------------------------------------------------

    def send_message(self, viewer_id: str, conversation_id: str, text: str) -> MessageRecord:
        text = text.strip()
        if not text:
            raise ValidationError("Message content is required")
        if len(text) > MAX_TEXT_LENGTH:
            raise ValidationError(f"Message content exceeds {MAX_TEXT_LENGTH} characters")
        conversation = self._membership(viewer_id, conversation_id)

        now = self._clock.now()
        message = MessageRecord(
            id=self._next_id("m"),
            conversation_id=conversation_id,
            sender_id=viewer_id,
            text=text,
            created_at=now,
        )
        self.messages.setdefault(conversation_id, []).append(message)
        conversation.updated_at = now
        return message

    def mark_read(self, viewer_id: str, conversation_id: str) -> None:
        self._membership(viewer_id, conversation_id)
        read = self._read.setdefault(viewer_id, set())
        read.update(m.id for m in self.messages.get(conversation_id, []))

    def create_direct(self, viewer_id: str, other_user_id: str) -> tuple[ConversationRecord, bool]:
        """Return the pair's conversation, creating it if needed."""
        self._viewer(viewer_id)
        if not other_user_id:
            raise ValidationError("Participant ID is required")
        if other_user_id == viewer_id:
            raise ValidationError("Cannot start a conversation with yourself")
        if other_user_id not in self.users:
            raise NotFoundError("User not found")

        for conversation in self.conversations.values():
            if (
                conversation.kind == ConversationKind.DIRECT
                and conversation.is_active_member(viewer_id)
                and conversation.is_active_member(other_user_id)
            ):
                return conversation, False

        now = self._clock.now()
        conversation = ConversationRecord(
            id=self._next_id("c"),
            kind=ConversationKind.DIRECT,
            created_by=viewer_id,
            created_at=now,
            updated_at=now,
            members={viewer_id: True, other_user_id: True},
        )
        self.conversations[conversation.id] = conversation
        return conversation, True

    def create_group(
        self,
        viewer_id: str,
        name: str,
        member_ids: list[str],
        avatar_ref: str | None = None,
    ) -> ConversationRecord:
        self._viewer(viewer_id)
        name = name.strip()
        if not name or not member_ids:
            raise ValidationError("Group name and member IDs are required")
        unknown = [m for m in member_ids if m not in self.users]
        if unknown:
            raise NotFoundError(f"Unknown users: {', '.join(unknown)}")

        now = self._clock.now()
        members = {viewer_id: True}
        members.update({m: True for m in member_ids if m != viewer_id})
        conversation = ConversationRecord(
            id=self._next_id("g"),
            kind=ConversationKind.GROUP,
            created_by=viewer_id,
            created_at=now,
            updated_at=now,
            name=name,
            avatar_ref=avatar_ref or None,
            members=members,
        )
        self.conversations[conversation.id] = conversation
        return conversation

    def rename_group(self, viewer_id: str, conversation_id: str, name: str) -> None:
        name = name.strip()
        if not name:
            raise ValidationError("Group name is required")
        conversation = self._group(viewer_id, conversation_id)
        conversation.name = name
        conversation.updated_at = self._clock.now()

    def set_group_avatar(self, viewer_id: str, conversation_id: str, avatar_ref: str) -> None:
        if not avatar_ref:
            raise ValidationError("Avatar URL is required")
        conversation = self._group(viewer_id, conversation_id)
        conversation.avatar_ref = avatar_ref
        conversation.updated_at = self._clock.now()

    def add_member(self, viewer_id: str, conversation_id: str, user_id: str) -> None:
        conversation = self._group(viewer_id, conversation_id)
        if user_id not in self.users:
            raise NotFoundError("User not found")
        if conversation.is_active_member(user_id):
            raise ValidationError("User is already a member of this group")
        conversation.members[user_id] = True
        conversation.updated_at = self._clock.now()

    def delete_conversation(self, viewer_id: str, conversation_id: str) -> None:
        self._membership(viewer_id, conversation_id)
        del self.conversations[conversation_id]
        self.messages.pop(conversation_id, None)
