from __future__ import annotations

from messaging_sync.application.dto.result import Err
from messaging_sync.application.exceptions import ValidationError, error_for
from messaging_sync.application.ports.transport import MessagingTransport
from messaging_sync.domain.entities.user import UserRef
from messaging_sync.services.message_sync import MessageSynchronizer


async def search_users(
    viewer_id: str,
    query: str,
    transport: MessagingTransport,
) -> list[UserRef]:
    """Candidates for a new conversation; no match is an empty list."""
    result = await transport.search_users(viewer_id, query)
    if isinstance(result, Err):
        raise error_for(result)
    return [u for u in result.data if u.id != viewer_id]


async def start_direct_conversation(
    viewer_id: str,
    other_user_id: str,
    transport: MessagingTransport,
    synchronizer: MessageSynchronizer,
) -> str:
    """Return the conversation id for the pair, creating it if needed.

    The server de-duplicates direct conversations, so this may return an
    existing id. The conversation list is refreshed when that id is not
    cached yet.
    """
    other_user_id = other_user_id.strip()
    if not other_user_id:
        raise ValidationError("Participant id is required")
    if other_user_id == viewer_id:
        raise ValidationError("Cannot start a conversation with yourself")

    result = await transport.create_direct_conversation(viewer_id, other_user_id)
    if isinstance(result, Err):
        raise error_for(result)

    conversation_id = result.data
    if synchronizer.store.get(conversation_id) is None:
        await synchronizer.load_conversations(viewer_id)
    return conversation_id
