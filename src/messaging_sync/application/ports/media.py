from __future__ import annotations

from typing import Protocol


class AvatarRefValidator(Protocol):
    """Format check for references returned by the image-upload service."""

    def is_valid(self, avatar_ref: str) -> bool: ...
