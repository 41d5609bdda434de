from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from messaging_sync.domain.value_objects.enums import MessageType


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    conversation_id: str
    sender_id: str
    text: str
    created_at: datetime | None  # None: missing or unparseable
    is_optimistic: bool = False
    type: str = MessageType.TEXT
    is_important: bool = False


def sort_messages(messages: list[Message]) -> list[Message]:
    """Ascending by ``created_at``; invalid timestamps go last.

    Both partitions keep their input order on ties (``sort`` is stable).
    """
    dated = [m for m in messages if m.created_at is not None]
    undated = [m for m in messages if m.created_at is None]
    dated.sort(key=lambda m: m.created_at)  # type: ignore[arg-type,return-value]
    return dated + undated
