from __future__ import annotations

import logging

from messaging_sync.application.dto.result import Err
from messaging_sync.application.exceptions import error_for
from messaging_sync.application.ports.clock import Clock, SystemClock
from messaging_sync.application.ports.listener import UnreadListener
from messaging_sync.application.ports.transport import MessagingTransport
from messaging_sync.infrastructure.store.conversation_store import ConversationStore

logger = logging.getLogger(__name__)


class UnreadCounter:
    """Derives unread totals from the store and pushes them to a listener.

    Read acknowledgements are optimistic: the local count drops to zero
    before the server is told.
    """

    def __init__(
        self,
        transport: MessagingTransport,
        store: ConversationStore,
        listener: UnreadListener | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._transport = transport
        self._store = store
        self._listener = listener
        self._clock = clock or SystemClock()

    def total_unread(self) -> int:
        return self._store.total_unread()

    def publish(self) -> int:
        """Emit the current total to the listener and return it."""
        total = self._store.total_unread()
        if self._listener is not None:
            try:
                self._listener(total)
            except Exception:
                logger.exception("Unread listener failed")
        return total

    async def mark_conversation_read(self, viewer_id: str, conversation_id: str) -> None:
        """Zero the conversation locally, then acknowledge it remotely.

        A failed acknowledgement is raised, but the local count stays at 0.
        """
        self._store.set_unread_count(conversation_id, 0)
        self._store.mark_read_at(conversation_id, self._clock.now())
        self.publish()

        result = await self._transport.mark_read(viewer_id, conversation_id)
        if isinstance(result, Err):
            logger.warning(
                "mark_read for %s failed: %s %s",
                conversation_id, result.error_kind, result.message,
            )
            raise error_for(result)

    def on_new_message_received(self, conversation_id: str) -> None:
        self._store.increment_unread(conversation_id)
        self.publish()
