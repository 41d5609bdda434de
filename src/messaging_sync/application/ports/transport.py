from __future__ import annotations

from typing import Protocol, Sequence

from messaging_sync.application.dto.result import Result
from messaging_sync.domain.entities.conversation import Conversation
from messaging_sync.domain.entities.message import Message
from messaging_sync.domain.entities.user import UserRef


class MessagingTransport(Protocol):
    """The only component allowed to do network I/O. Never raises."""

    async def list_conversations(self, viewer_id: str) -> Result[list[Conversation]]: ...

    async def list_messages(
        self, viewer_id: str, conversation_id: str
    ) -> Result[list[Message]]:
        """All messages visible to the viewer, in no particular order."""
        ...

    async def send_message(
        self, viewer_id: str, conversation_id: str, text: str
    ) -> Result[Message]: ...

    async def mark_read(self, viewer_id: str, conversation_id: str) -> Result[None]: ...

    async def create_direct_conversation(
        self, viewer_id: str, other_user_id: str
    ) -> Result[str]:
        """Return a new or the existing conversation id for the pair."""
        ...

    async def create_group_conversation(
        self,
        viewer_id: str,
        name: str,
        member_ids: Sequence[str],
        avatar_ref: str | None = None,
    ) -> Result[str]: ...

    async def update_group_name(
        self, viewer_id: str, conversation_id: str, name: str
    ) -> Result[None]: ...

    async def update_group_avatar(
        self, viewer_id: str, conversation_id: str, avatar_ref: str
    ) -> Result[None]: ...

    async def add_group_member(
        self, viewer_id: str, conversation_id: str, user_id: str
    ) -> Result[None]: ...

    async def delete_conversation(
        self, viewer_id: str, conversation_id: str
    ) -> Result[None]: ...

    async def search_users(self, viewer_id: str, query: str) -> Result[list[UserRef]]: ...
