from __future__ import annotations

import logging
from types import TracebackType

import httpx

from messaging_sync.application.ports.clock import Clock
from messaging_sync.application.ports.listener import UnreadListener
from messaging_sync.application.ports.media import AvatarRefValidator
from messaging_sync.config import Settings, settings
from messaging_sync.domain.entities.user import UserRef
from messaging_sync.infrastructure.http.client import HttpMessagingTransport
from messaging_sync.infrastructure.store.conversation_store import ConversationStore
from messaging_sync.services import conversation_service
from messaging_sync.services.group_service import GroupMembershipManager
from messaging_sync.services.message_sync import MessageSynchronizer
from messaging_sync.services.unread_counter import UnreadCounter

logger = logging.getLogger(__name__)


class MessagingClient:
    """The messaging components wired around one HTTP connection pool.

    Use as an async context manager, or call ``aclose`` when done.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        transport: HttpMessagingTransport,
        store: ConversationStore,
        unread: UnreadCounter,
        synchronizer: MessageSynchronizer,
        groups: GroupMembershipManager,
        *,
        owns_http: bool = True,
    ) -> None:
        self.http = http
        self.transport = transport
        self.store = store
        self.unread = unread
        self.synchronizer = synchronizer
        self.groups = groups
        self._owns_http = owns_http

    async def search_users(self, viewer_id: str, query: str) -> list[UserRef]:
        return await conversation_service.search_users(viewer_id, query, self.transport)

    async def start_direct_conversation(self, viewer_id: str, other_user_id: str) -> str:
        return await conversation_service.start_direct_conversation(
            viewer_id, other_user_id, self.transport, self.synchronizer,
        )

    async def aclose(self) -> None:
        await self.synchronizer.aclose()
        if self._owns_http:
            await self.http.aclose()
            logger.info("Messaging HTTP client closed")

    async def __aenter__(self) -> MessagingClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def create_client(
    *,
    config: Settings = settings,
    http_client: httpx.AsyncClient | None = None,
    unread_listener: UnreadListener | None = None,
    avatar_validator: AvatarRefValidator | None = None,
    clock: Clock | None = None,
) -> MessagingClient:
    """Build a client from settings.

    A caller-supplied ``http_client`` is used as-is and left open on close.
    """
    owns_http = http_client is None
    http = http_client or httpx.AsyncClient(
        base_url=config.MESSAGING_API_BASE_URL,
        timeout=config.HTTP_TIMEOUT_SECONDS,
    )
    transport = HttpMessagingTransport(
        http, search_min_query_length=config.SEARCH_MIN_QUERY_LENGTH,
    )
    store = ConversationStore()
    unread = UnreadCounter(transport, store, unread_listener, clock)
    synchronizer = MessageSynchronizer(
        transport,
        store,
        unread,
        clock,
        max_message_length=config.MAX_MESSAGE_LENGTH,
        temp_id_prefix=config.TEMP_ID_PREFIX,
    )
    groups = GroupMembershipManager(
        transport, store, synchronizer, unread, avatar_validator, clock,
    )
    logger.info("Messaging client created for %s", http.base_url)
    return MessagingClient(
        http, transport, store, unread, synchronizer, groups, owns_http=owns_http,
    )
