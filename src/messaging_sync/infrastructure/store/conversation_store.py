"""In-process cache of conversations and messages rendered by the UI."""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Union

from messaging_sync.domain.entities.conversation import Conversation
from messaging_sync.domain.entities.message import Message, sort_messages
from messaging_sync.domain.events.conversations_changed import ConversationsChanged
from messaging_sync.domain.events.messages_changed import MessagesChanged
from messaging_sync.domain.events.unread_changed import UnreadChanged
from messaging_sync.infrastructure.store.message_cache import MessageCacheEntry

logger = logging.getLogger(__name__)

StoreEvent = Union[ConversationsChanged, MessagesChanged, UnreadChanged]
StoreSubscriber = Callable[[StoreEvent], None]

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class ConversationStore:
    """Single source of truth for everything the messaging screens show.

    Message lists are loaded lazily per conversation and always kept in
    ``sort_messages`` order. Every mutation is announced to subscribers.
    """

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, MessageCacheEntry] = {}
        self._read_markers: dict[str, datetime] = {}
        self._counted_markers: dict[str, datetime] = {}
        self._subscribers: list[StoreSubscriber] = []
        self.active_conversation_id: str | None = None

    # -- subscriptions -----------------------------------------------------

    def subscribe(self, callback: StoreSubscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _emit(self, event: StoreEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Store subscriber failed on %s", type(event).__name__)

    # -- conversations -----------------------------------------------------

    def get(self, conversation_id: str) -> Conversation | None:
        return self._conversations.get(conversation_id)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations

    def list_conversations(self) -> list[Conversation]:
        """Most recently active first."""
        return sorted(
            self._conversations.values(),
            key=lambda c: (c.last_activity_at is not None, c.last_activity_at or _OLDEST),
            reverse=True,
        )

    def _with_unread(self, incoming: Conversation, existing: Conversation | None) -> Conversation:
        if incoming.unread_count is None:
            kept = existing.unread_count if existing is not None else 0
            return dataclasses.replace(incoming, unread_count=kept or 0)
        return dataclasses.replace(incoming, unread_count=max(0, incoming.unread_count))

    def upsert_conversations(self, conversations: Iterable[Conversation]) -> None:
        ids: list[str] = []
        for incoming in conversations:
            existing = self._conversations.get(incoming.id)
            self._conversations[incoming.id] = self._with_unread(incoming, existing)
            ids.append(incoming.id)
        if ids:
            self._emit(ConversationsChanged(tuple(ids), action="upserted"))

    def replace_conversations(self, conversations: Iterable[Conversation]) -> None:
        fresh: dict[str, Conversation] = {}
        for incoming in conversations:
            existing = self._conversations.get(incoming.id)
            fresh[incoming.id] = self._with_unread(incoming, existing)

        for gone in set(self._conversations) - set(fresh):
            self._forget(gone)
        self._conversations = fresh
        self._emit(ConversationsChanged(tuple(fresh), action="replaced"))

    def update_conversation(self, conversation_id: str, **changes: Any) -> Conversation | None:
        """Replace only the given fields of a stored conversation."""
        existing = self._conversations.get(conversation_id)
        if existing is None:
            logger.debug("update_conversation: %s not in store", conversation_id)
            return None
        updated = dataclasses.replace(existing, **changes)
        self._conversations[conversation_id] = updated
        self._emit(ConversationsChanged((conversation_id,), action="updated"))
        return updated

    def set_last_message(self, conversation_id: str, message: Message | None) -> None:
        if self.update_conversation(conversation_id, last_message=message) is None:
            logger.debug("Preview for unknown conversation %s dropped", conversation_id)

    def remove_conversation(self, conversation_id: str) -> bool:
        if conversation_id not in self._conversations:
            return False
        del self._conversations[conversation_id]
        self._forget(conversation_id)
        self._emit(ConversationsChanged((conversation_id,), action="removed"))
        return True

    def _forget(self, conversation_id: str) -> None:
        self.discard_messages(conversation_id)
        self._read_markers.pop(conversation_id, None)
        self._counted_markers.pop(conversation_id, None)
        if self.active_conversation_id == conversation_id:
            self.active_conversation_id = None

    # -- unread ------------------------------------------------------------

    def unread_count(self, conversation_id: str) -> int:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return 0
        return max(0, conversation.unread_count or 0)

    def set_unread_count(self, conversation_id: str, count: int) -> None:
        count = max(0, count)
        if self.update_conversation(conversation_id, unread_count=count) is None:
            return
        self._emit(UnreadChanged(conversation_id, count))

    def increment_unread(self, conversation_id: str, by: int = 1) -> None:
        self.set_unread_count(conversation_id, self.unread_count(conversation_id) + by)

    def total_unread(self) -> int:
        return sum(max(0, c.unread_count or 0) for c in self._conversations.values())

    def mark_read_at(self, conversation_id: str, ts: datetime) -> None:
        self._read_markers[conversation_id] = ts

    def read_marker(self, conversation_id: str) -> datetime | None:
        return self._read_markers.get(conversation_id)

    def mark_counted_at(self, conversation_id: str, ts: datetime) -> None:
        """Record that the server's unread count covers messages up to ``ts``."""
        self._counted_markers[conversation_id] = ts

    def unread_baseline(self, conversation_id: str) -> datetime | None:
        """Messages at or before this time are already reflected in the count."""
        markers = [
            m for m in (
                self._read_markers.get(conversation_id),
                self._counted_markers.get(conversation_id),
            )
            if m is not None
        ]
        return max(markers) if markers else None

    # -- messages ----------------------------------------------------------

    def cache_entry(self, conversation_id: str) -> MessageCacheEntry | None:
        return self._messages.get(conversation_id)

    def message_cache(self, conversation_id: str) -> MessageCacheEntry:
        """Get or lazily create the cache entry for a conversation."""
        entry = self._messages.get(conversation_id)
        if entry is None:
            entry = MessageCacheEntry(conversation_id=conversation_id)
            self._messages[conversation_id] = entry
        return entry

    def messages(self, conversation_id: str) -> list[Message]:
        entry = self._messages.get(conversation_id)
        return list(entry.messages) if entry else []

    def upsert_messages(self, conversation_id: str, messages: Iterable[Message]) -> None:
        """Merge by id: same id replaces in place, new ids are appended."""
        entry = self.message_cache(conversation_id)
        for message in messages:
            idx = entry.index_of(message.id)
            if idx is None:
                entry.messages.append(message)
            else:
                entry.messages[idx] = message
        entry.messages = sort_messages(entry.messages)
        self._emit(MessagesChanged(conversation_id, action="upserted"))

    def replace_messages(
        self,
        conversation_id: str,
        messages: Iterable[Message],
        *,
        fetched_at: datetime | None = None,
    ) -> None:
        entry = self.message_cache(conversation_id)
        by_id: dict[str, Message] = {}
        for message in messages:
            by_id[message.id] = message
        entry.messages = sort_messages(list(by_id.values()))
        if fetched_at is not None:
            entry.fetched_at = fetched_at
        self._emit(MessagesChanged(conversation_id, action="replaced"))

    def reconcile_message(self, conversation_id: str, temp_id: str, confirmed: Message) -> None:
        """Swap an optimistic entry for its server-confirmed counterpart.

        If the confirmed id already arrived through a fetch, the optimistic
        entry is dropped so the list never holds both.
        """
        entry = self.message_cache(conversation_id)
        if entry.index_of(confirmed.id) is not None:
            entry.messages = [
                confirmed if m.id == confirmed.id else m
                for m in entry.messages
                if m.id != temp_id
            ]
        else:
            idx = entry.index_of(temp_id)
            if idx is None:
                entry.messages.append(confirmed)
            else:
                entry.messages[idx] = confirmed
        entry.messages = sort_messages(entry.messages)
        self._emit(MessagesChanged(conversation_id, action="reconciled"))

    def remove_message(self, conversation_id: str, message_id: str) -> bool:
        entry = self._messages.get(conversation_id)
        if entry is None:
            return False
        idx = entry.index_of(message_id)
        if idx is None:
            return False
        del entry.messages[idx]
        self._emit(MessagesChanged(conversation_id, action="removed"))
        return True

    def discard_messages(self, conversation_id: str) -> None:
        """Drop the cached list; pending fetches for it will not be applied."""
        entry = self._messages.pop(conversation_id, None)
        if entry is None:
            return
        entry.active = False
        self._emit(MessagesChanged(conversation_id, action="discarded"))
