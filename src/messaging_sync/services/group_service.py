"""Named mutations on group conversations.

Unlike message sends these are never optimistic: the store only changes
after the server has accepted the mutation, and only the mutated fields
are touched so concurrently updated unread counts survive.
"""
from __future__ import annotations

import logging
from typing import Sequence

from messaging_sync.application.dto.group import CreateGroupDTO
from messaging_sync.application.dto.result import Err
from messaging_sync.application.exceptions import ValidationError, error_for
from messaging_sync.application.ports.clock import Clock, SystemClock
from messaging_sync.application.ports.media import AvatarRefValidator
from messaging_sync.application.ports.transport import MessagingTransport
from messaging_sync.domain.entities.conversation import Conversation
from messaging_sync.domain.entities.participant import Participant
from messaging_sync.domain.value_objects.enums import ConversationKind
from messaging_sync.infrastructure.media import UrlAvatarRefValidator
from messaging_sync.infrastructure.store.conversation_store import ConversationStore
from messaging_sync.services.message_sync import MessageSynchronizer
from messaging_sync.services.unread_counter import UnreadCounter

logger = logging.getLogger(__name__)


class GroupMembershipManager:
    def __init__(
        self,
        transport: MessagingTransport,
        store: ConversationStore,
        synchronizer: MessageSynchronizer,
        unread: UnreadCounter,
        avatar_validator: AvatarRefValidator | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._transport = transport
        self._store = store
        self._synchronizer = synchronizer
        self._unread = unread
        self._avatar_validator = avatar_validator or UrlAvatarRefValidator()
        self._clock = clock or SystemClock()

    def _require_name(self, name: str) -> str:
        name = name.strip()
        if not name:
            raise ValidationError("Group name is required")
        return name

    def _require_avatar(self, avatar_ref: str) -> str:
        avatar_ref = avatar_ref.strip()
        if not avatar_ref or not self._avatar_validator.is_valid(avatar_ref):
            raise ValidationError("Avatar must be an uploaded image URL")
        return avatar_ref

    def _require_group(self, conversation_id: str) -> Conversation | None:
        """The stored conversation, rejecting ones known to be direct."""
        conversation = self._store.get(conversation_id)
        if conversation is not None and not conversation.is_group:
            raise ValidationError("Only group conversations can be changed")
        return conversation

    def _validate_create(
        self,
        viewer_id: str,
        name: str,
        member_ids: Sequence[str],
        avatar_ref: str | None,
    ) -> CreateGroupDTO:
        members: list[str] = []
        for member_id in member_ids:
            member_id = str(member_id).strip()
            if member_id and member_id != viewer_id and member_id not in members:
                members.append(member_id)
        if not members:
            raise ValidationError("At least one member is required")
        return CreateGroupDTO(
            name=self._require_name(name),
            member_ids=tuple(members),
            avatar_ref=self._require_avatar(avatar_ref) if avatar_ref is not None else None,
        )

    async def create_group(
        self,
        viewer_id: str,
        name: str,
        member_ids: Sequence[str],
        avatar_ref: str | None = None,
    ) -> Conversation:
        """Create a group and show it at once, then reconcile in the background."""
        dto = self._validate_create(viewer_id, name, member_ids, avatar_ref)

        result = await self._transport.create_group_conversation(
            viewer_id, dto.name, dto.member_ids, dto.avatar_ref,
        )
        if isinstance(result, Err):
            raise error_for(result)

        now = self._clock.now()
        conversation = Conversation(
            id=result.data,
            kind=ConversationKind.GROUP,
            display_name=dto.name,
            avatar_ref=dto.avatar_ref,
            participants=tuple(
                Participant(user_id=user_id)
                for user_id in (viewer_id, *dto.member_ids)
            ),
            last_message=None,
            unread_count=0,
            created_at=now,
            updated_at=now,
        )
        self._store.upsert_conversations([conversation])
        self._synchronizer.schedule_conversations_refresh(viewer_id)
        logger.info("Created group %s with %d members", conversation.id, len(dto.member_ids))
        return conversation

    async def rename_group(self, viewer_id: str, conversation_id: str, name: str) -> None:
        name = self._require_name(name)
        self._require_group(conversation_id)

        result = await self._transport.update_group_name(viewer_id, conversation_id, name)
        if isinstance(result, Err):
            raise error_for(result)
        self._store.update_conversation(conversation_id, display_name=name)

    async def set_group_avatar(self, viewer_id: str, conversation_id: str, avatar_ref: str) -> None:
        avatar_ref = self._require_avatar(avatar_ref)
        self._require_group(conversation_id)

        result = await self._transport.update_group_avatar(viewer_id, conversation_id, avatar_ref)
        if isinstance(result, Err):
            raise error_for(result)
        self._store.update_conversation(conversation_id, avatar_ref=avatar_ref)

    async def add_member(
        self,
        viewer_id: str,
        conversation_id: str,
        user_id: str,
        display_name: str | None = None,
    ) -> None:
        user_id = user_id.strip()
        if not user_id:
            raise ValidationError("Member id is required")
        conversation = self._require_group(conversation_id)
        if conversation is not None and conversation.has_active_member(user_id):
            raise ValidationError("User is already a member of this group")

        result = await self._transport.add_group_member(viewer_id, conversation_id, user_id)
        if isinstance(result, Err):
            raise error_for(result)

        # Re-read: the conversation may have been refreshed while we waited.
        conversation = self._store.get(conversation_id)
        if conversation is None:
            return
        participants = tuple(p for p in conversation.participants if p.user_id != user_id)
        self._store.update_conversation(
            conversation_id,
            participants=participants + (Participant(user_id=user_id, display_name=display_name),),
        )

    async def delete_conversation(self, viewer_id: str, conversation_id: str) -> None:
        result = await self._transport.delete_conversation(viewer_id, conversation_id)
        if isinstance(result, Err):
            raise error_for(result)
        self._store.remove_conversation(conversation_id)
        self._unread.publish()
