"""FastAPI dependency helpers for the development API."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from messaging_sync.devserver.state import MessagingState


def get_state(request: Request) -> MessagingState:
    return request.app.state.messaging


StateDep = Annotated[MessagingState, Depends(get_state)]
