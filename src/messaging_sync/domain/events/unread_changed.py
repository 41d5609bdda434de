from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UnreadChanged:
    conversation_id: str
    unread_count: int
