from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from messaging_sync.domain.entities.message import Message
from messaging_sync.domain.entities.participant import Participant
from messaging_sync.domain.value_objects.enums import ConversationKind


@dataclass(frozen=True, slots=True)
class Conversation:
    id: str
    kind: ConversationKind
    display_name: str | None = None  # groups only; direct names are derived at render time
    avatar_ref: str | None = None
    participants: tuple[Participant, ...] = ()
    last_message: Message | None = None
    unread_count: int | None = None  # None: the source did not say
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_group(self) -> bool:
        return self.kind == ConversationKind.GROUP

    def has_active_member(self, user_id: str) -> bool:
        return any(p.user_id == user_id and p.is_active_member for p in self.participants)

    def other_participant(self, viewer_id: str) -> Participant | None:
        """The counterpart in a direct conversation."""
        for p in self.participants:
            if p.user_id != viewer_id:
                return p
        return None

    @property
    def last_activity_at(self) -> datetime | None:
        if self.last_message is not None and self.last_message.created_at is not None:
            return self.last_message.created_at
        return self.updated_at or self.created_at
