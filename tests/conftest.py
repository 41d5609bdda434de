"""Shared test fixtures."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

import pytest

from messaging_sync.application.dto.result import Err, Ok, Result
from messaging_sync.application.exceptions import ErrorKind
from messaging_sync.domain.entities.conversation import Conversation
from messaging_sync.domain.entities.message import Message
from messaging_sync.domain.entities.participant import Participant
from messaging_sync.domain.entities.user import UserRef
from messaging_sync.domain.value_objects.enums import ConversationKind
from messaging_sync.infrastructure.store.conversation_store import ConversationStore
from messaging_sync.services.group_service import GroupMembershipManager
from messaging_sync.services.message_sync import MessageSynchronizer
from messaging_sync.services.unread_counter import UnreadCounter

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


@dataclass
class FixedClock:
    current: datetime = T0

    def now(self) -> datetime:
        return self.current


def make_message(
    message_id: str = "m1",
    *,
    conversation_id: str = "c1",
    sender_id: str = "u2",
    text: str = "hello",
    created_at: datetime | None = T0,
    is_optimistic: bool = False,
) -> Message:
    return Message(
        id=message_id,
        conversation_id=conversation_id,
        sender_id=sender_id,
        text=text,
        created_at=created_at,
        is_optimistic=is_optimistic,
    )


def make_conversation(
    conversation_id: str = "c1",
    *,
    kind: ConversationKind = ConversationKind.DIRECT,
    members: Sequence[str] = ("u1", "u2"),
    name: str | None = None,
    last_message: Message | None = None,
    unread_count: int | None = 0,
    updated_at: datetime | None = T0,
) -> Conversation:
    return Conversation(
        id=conversation_id,
        kind=kind,
        display_name=name,
        participants=tuple(Participant(user_id=m) for m in members),
        last_message=last_message,
        unread_count=unread_count,
        created_at=T0,
        updated_at=updated_at,
    )


@dataclass
class FakeTransport:
    """In-memory transport. ``script`` queues results per operation name;
    ``gates`` holds an operation until its event is set."""

    conversations: list[Conversation] = field(default_factory=list)
    messages: dict[str, list[Message]] = field(default_factory=dict)
    users: list[UserRef] = field(default_factory=list)
    script: dict[str, list[Result[Any]]] = field(default_factory=dict)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    clock: FixedClock = field(default_factory=FixedClock)
    new_conversation_id: str = "g1"
    _next_message: int = 100

    def fail(self, op: str, kind: ErrorKind = ErrorKind.NETWORK, message: str = "boom") -> None:
        self.script.setdefault(op, []).append(Err(kind, message))

    def calls_to(self, op: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == op]

    async def _enter(self, op: str, *args: Any) -> Result[Any] | None:
        self.calls.append((op, args))
        queued = self.script.get(op)
        scripted = queued.pop(0) if queued else None
        gate = self.gates.get(op)
        if gate is not None:
            await gate.wait()
        return scripted

    async def list_conversations(self, viewer_id: str) -> Result[list[Conversation]]:
        scripted = await self._enter("list_conversations", viewer_id)
        return scripted or Ok(list(self.conversations))

    async def list_messages(self, viewer_id: str, conversation_id: str) -> Result[list[Message]]:
        scripted = await self._enter("list_messages", viewer_id, conversation_id)
        return scripted or Ok(list(self.messages.get(conversation_id, [])))

    async def send_message(self, viewer_id: str, conversation_id: str, text: str) -> Result[Message]:
        scripted = await self._enter("send_message", viewer_id, conversation_id, text)
        if scripted is not None:
            return scripted
        message = make_message(
            f"m{self._next_message}",
            conversation_id=conversation_id,
            sender_id=viewer_id,
            text=text,
            created_at=self.clock.now(),
        )
        self._next_message += 1
        return Ok(message)

    async def mark_read(self, viewer_id: str, conversation_id: str) -> Result[None]:
        return await self._enter("mark_read", viewer_id, conversation_id) or Ok(None)

    async def create_direct_conversation(self, viewer_id: str, other_user_id: str) -> Result[str]:
        scripted = await self._enter("create_direct_conversation", viewer_id, other_user_id)
        return scripted or Ok(self.new_conversation_id)

    async def create_group_conversation(
        self,
        viewer_id: str,
        name: str,
        member_ids: Sequence[str],
        avatar_ref: str | None = None,
    ) -> Result[str]:
        scripted = await self._enter(
            "create_group_conversation", viewer_id, name, tuple(member_ids), avatar_ref,
        )
        return scripted or Ok(self.new_conversation_id)

    async def update_group_name(self, viewer_id: str, conversation_id: str, name: str) -> Result[None]:
        return await self._enter("update_group_name", viewer_id, conversation_id, name) or Ok(None)

    async def update_group_avatar(
        self, viewer_id: str, conversation_id: str, avatar_ref: str
    ) -> Result[None]:
        scripted = await self._enter("update_group_avatar", viewer_id, conversation_id, avatar_ref)
        return scripted or Ok(None)

    async def add_group_member(self, viewer_id: str, conversation_id: str, user_id: str) -> Result[None]:
        return await self._enter("add_group_member", viewer_id, conversation_id, user_id) or Ok(None)

    async def delete_conversation(self, viewer_id: str, conversation_id: str) -> Result[None]:
        return await self._enter("delete_conversation", viewer_id, conversation_id) or Ok(None)

    async def search_users(self, viewer_id: str, query: str) -> Result[list[UserRef]]:
        scripted = await self._enter("search_users", viewer_id, query)
        if scripted is not None:
            return scripted
        q = query.strip().lower()
        return Ok([u for u in self.users if q in u.display_name.lower()])


@dataclass
class RecordingListener:
    totals: list[int] = field(default_factory=list)

    def __call__(self, total: int) -> None:
        self.totals.append(total)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(current=at(60))


@pytest.fixture
def transport(clock: FixedClock) -> FakeTransport:
    return FakeTransport(clock=clock)


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def unread(transport, store, listener, clock) -> UnreadCounter:
    return UnreadCounter(transport, store, listener, clock)


@pytest.fixture
def synchronizer(transport, store, unread, clock) -> MessageSynchronizer:
    return MessageSynchronizer(transport, store, unread, clock)


@pytest.fixture
def groups(transport, store, synchronizer, unread, clock) -> GroupMembershipManager:
    return GroupMembershipManager(transport, store, synchronizer, unread, clock=clock)
