from __future__ import annotations

from typing import Protocol


class UnreadListener(Protocol):
    """Receives the total unread count, e.g. a dashboard badge."""

    def __call__(self, total: int) -> None: ...
