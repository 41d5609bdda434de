from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime

from messaging_sync.domain.entities.message import Message


@dataclass(slots=True)
class MessageCacheEntry:
    """Message list of one conversation plus its fetch bookkeeping.

    ``lock`` serialises fetches for the conversation. ``active`` turns
    False once the UI is no longer interested; results of calls still in
    flight for this entry must then be dropped.
    """

    conversation_id: str
    messages: list[Message] = field(default_factory=list)
    fetched_at: datetime | None = None
    in_flight: bool = False
    active: bool = True
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def index_of(self, message_id: str) -> int | None:
        for i, m in enumerate(self.messages):
            if m.id == message_id:
                return i
        return None

    def ids(self) -> set[str]:
        return {m.id for m in self.messages}
