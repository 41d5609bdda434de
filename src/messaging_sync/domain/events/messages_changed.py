from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MessagesChanged:
    conversation_id: str
    action: str = ""  # "replaced" | "upserted" | "reconciled" | "removed" | "discarded"
