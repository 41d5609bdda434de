"""Fetch, send and read flows between the transport and the local store.

A send moves through three states::

    PENDING   optimistic entry with a temporary id, shown immediately
    CONFIRMED replaced by the server's message on success
    FAILED    removed again; the caller gets the original text back

Fetches are authoritative and replace the cached list wholesale. They are
serialised per conversation so an older response can never overwrite a
newer one.
"""
from __future__ import annotations

import asyncio
import logging

from messaging_sync.application.dto.result import Err
from messaging_sync.application.exceptions import (
    AppError,
    MessageSendError,
    ValidationError,
    error_for,
)
from messaging_sync.application.ports.clock import Clock, SystemClock
from messaging_sync.application.ports.transport import MessagingTransport
from messaging_sync.domain.entities.conversation import Conversation
from messaging_sync.domain.entities.message import Message, sort_messages
from messaging_sync.domain.value_objects.ids import TEMP_ID_PREFIX, new_temporary_id
from messaging_sync.infrastructure.store.conversation_store import ConversationStore
from messaging_sync.services.unread_counter import UnreadCounter

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000


class MessageSynchronizer:
    def __init__(
        self,
        transport: MessagingTransport,
        store: ConversationStore,
        unread: UnreadCounter,
        clock: Clock | None = None,
        *,
        max_message_length: int = MAX_MESSAGE_LENGTH,
        temp_id_prefix: str = TEMP_ID_PREFIX,
    ) -> None:
        self._transport = transport
        self._store = store
        self._unread = unread
        self._clock = clock or SystemClock()
        self._max_message_length = max_message_length
        self._temp_id_prefix = temp_id_prefix
        self._conversations_lock = asyncio.Lock()
        self._background: set[asyncio.Task[None]] = set()

    @property
    def store(self) -> ConversationStore:
        return self._store

    # -- send --------------------------------------------------------------

    def _validate_text(self, text: str) -> str:
        body = text.strip()
        if not body:
            raise ValidationError("Message text is required")
        if len(body) > self._max_message_length:
            raise ValidationError(
                f"Message text exceeds {self._max_message_length} characters"
            )
        return body

    async def send(self, viewer_id: str, conversation_id: str, text: str) -> Message:
        """Send optimistically and return the server-confirmed message.

        Raises ``ValidationError`` before any network call for blank or
        over-long text, and ``MessageSendError`` (carrying ``text``) once
        the optimistic entry has been rolled back after a transport failure.
        """
        body = self._validate_text(text)

        pending = Message(
            id=new_temporary_id(self._temp_id_prefix),
            conversation_id=conversation_id,
            sender_id=viewer_id,
            text=body,
            created_at=self._clock.now(),
            is_optimistic=True,
        )
        conversation = self._store.get(conversation_id)
        previous_preview = conversation.last_message if conversation else None

        self._store.upsert_messages(conversation_id, [pending])
        self._store.set_last_message(conversation_id, pending)

        result = await self._transport.send_message(viewer_id, conversation_id, body)

        if isinstance(result, Err):
            self._roll_back(conversation_id, pending, previous_preview)
            logger.info(
                "Send to %s failed (%s): %s",
                conversation_id, result.error_kind, result.message,
            )
            raise MessageSendError(
                result.message or "Failed to send message", result.error_kind, text,
            )

        confirmed = result.data
        if self._store.cache_entry(conversation_id) is not None:
            self._store.reconcile_message(conversation_id, pending.id, confirmed)
        self._store.set_last_message(conversation_id, confirmed)
        return confirmed

    def _roll_back(
        self,
        conversation_id: str,
        pending: Message,
        previous_preview: Message | None,
    ) -> None:
        self._store.remove_message(conversation_id, pending.id)
        current = self._store.get(conversation_id)
        if (
            current is not None
            and current.last_message is not None
            and current.last_message.id == pending.id
        ):
            self._store.set_last_message(conversation_id, previous_preview)

    # -- fetch -------------------------------------------------------------

    async def load_messages(self, viewer_id: str, conversation_id: str) -> list[Message]:
        """Fetch the full message list and make it the cached list.

        On failure the cached list is left as it was and the error raised.
        """
        entry = self._store.message_cache(conversation_id)
        async with entry.lock:
            entry.in_flight = True
            try:
                result = await self._transport.list_messages(viewer_id, conversation_id)
            finally:
                entry.in_flight = False

            if isinstance(result, Err):
                raise error_for(result)

            fetched = sort_messages(result.data)
            if not entry.active or self._store.cache_entry(conversation_id) is not entry:
                logger.debug("Dropping late message list for released conversation %s", conversation_id)
                return fetched

            first_fetch = entry.fetched_at is None
            known_ids = entry.ids()
            self._store.replace_messages(conversation_id, fetched, fetched_at=self._clock.now())

            if not first_fetch and self._store.active_conversation_id != conversation_id:
                self._count_new_messages(viewer_id, conversation_id, fetched, known_ids)
            return fetched

    def _count_new_messages(
        self,
        viewer_id: str,
        conversation_id: str,
        fetched: list[Message],
        known_ids: set[str],
    ) -> None:
        baseline = self._store.unread_baseline(conversation_id)
        for message in fetched:
            if message.id in known_ids or message.sender_id == viewer_id:
                continue
            if baseline is not None and (message.created_at is None or message.created_at <= baseline):
                continue
            self._unread.on_new_message_received(conversation_id)

    async def load_conversations(self, viewer_id: str) -> list[Conversation]:
        """Replace the conversation map with the server's list."""
        async with self._conversations_lock:
            result = await self._transport.list_conversations(viewer_id)
            if isinstance(result, Err):
                raise error_for(result)

            previous = {c.id: c for c in self._store.list_conversations()}
            inferred = [
                c.id for c in result.data
                if self._has_unseen_activity(viewer_id, c, previous.get(c.id))
            ]
            self._store.replace_conversations(result.data)
            now = self._clock.now()
            for conversation in result.data:
                if conversation.unread_count is not None:
                    self._store.mark_counted_at(conversation.id, now)
            for conversation_id in inferred:
                self._unread.on_new_message_received(conversation_id)
            self._unread.publish()
            return self._store.list_conversations()

    def _has_unseen_activity(
        self,
        viewer_id: str,
        incoming: Conversation,
        previous: Conversation | None,
    ) -> bool:
        """Whether a refresh revealed a message the viewer has not seen.

        Only used when the server did not send an unread count.
        """
        if incoming.unread_count is not None or previous is None:
            return False
        latest = incoming.last_message
        if latest is None or latest.sender_id == viewer_id:
            return False
        if self._store.active_conversation_id == incoming.id:
            return False
        return previous.last_message is None or previous.last_message.id != latest.id

    # -- conversation screen lifecycle -------------------------------------

    async def open_conversation(self, viewer_id: str, conversation_id: str) -> list[Message]:
        self._store.active_conversation_id = conversation_id
        try:
            await self._unread.mark_conversation_read(viewer_id, conversation_id)
        except AppError as exc:
            logger.warning("Could not acknowledge read of %s: %s", conversation_id, exc.detail)
        return await self.load_messages(viewer_id, conversation_id)

    def release_conversation(self, conversation_id: str) -> None:
        """Stop applying results for a conversation the UI has left."""
        if self._store.active_conversation_id == conversation_id:
            self._store.active_conversation_id = None
        self._store.discard_messages(conversation_id)

    # -- background work ---------------------------------------------------

    def schedule_conversations_refresh(self, viewer_id: str) -> asyncio.Task[None]:
        task = asyncio.create_task(
            self._refresh_conversations(viewer_id),
            name=f"conversations-refresh-{viewer_id}",
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _refresh_conversations(self, viewer_id: str) -> None:
        try:
            await self.load_conversations(viewer_id)
        except AppError as exc:
            logger.warning("Background conversation refresh failed: %s %s", exc.kind, exc.detail)
        except Exception:
            logger.exception("Background conversation refresh crashed")

    async def wait_idle(self) -> None:
        """Wait for scheduled background refreshes to finish."""
        while True:
            pending = [t for t in self._background if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
