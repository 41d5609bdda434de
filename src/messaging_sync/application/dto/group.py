from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CreateGroupDTO:
    name: str
    member_ids: tuple[str, ...]
    avatar_ref: str | None = None
