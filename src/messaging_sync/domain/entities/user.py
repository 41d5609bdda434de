from __future__ import annotations

from dataclasses import dataclass

from messaging_sync.domain.value_objects.enums import UserRole


@dataclass(frozen=True, slots=True)
class UserRef:
    """Read-only view of a user owned by the profile service."""

    id: str
    display_name: str
    avatar_ref: str | None = None
    role: UserRole | None = None
    username: str | None = None
    email: str | None = None
