from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ConversationsChanged:
    conversation_ids: tuple[str, ...]
    action: str = ""  # "replaced" | "upserted" | "updated" | "removed"
