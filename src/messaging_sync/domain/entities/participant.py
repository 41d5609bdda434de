from __future__ import annotations

from dataclasses import dataclass

from messaging_sync.domain.value_objects.enums import UserRole


@dataclass(frozen=True, slots=True)
class Participant:
    user_id: str
    display_name: str | None = None
    avatar_ref: str | None = None
    is_active_member: bool = True
    role: UserRole | None = None
