"""httpx implementation of the messaging transport."""
from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Any, Mapping, Sequence, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from messaging_sync.application.dto.result import Err, Ok, Result
from messaging_sync.application.exceptions import ErrorKind
from messaging_sync.domain.entities.conversation import Conversation
from messaging_sync.domain.entities.message import Message
from messaging_sync.domain.entities.user import UserRef
from messaging_sync.infrastructure.http.mappers import (
    payload_to_conversation,
    payload_to_message,
    payload_to_user,
)
from messaging_sync.infrastructure.http.schemas import (
    ConversationIdResponse,
    ConversationListResponse,
    Envelope,
    MessageListResponse,
    SentMessageResponse,
    UserSearchResponse,
)

logger = logging.getLogger(__name__)

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")

HEADER = "X-Request-ID"

_STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.VALIDATION,
    409: ErrorKind.VALIDATION,
    422: ErrorKind.VALIDATION,
    401: ErrorKind.AUTH,
    403: ErrorKind.PERMISSION,
    404: ErrorKind.NOT_FOUND,
}

# Listing messages of a conversation the viewer is not in answers 403.
_LIST_MESSAGES_KINDS: dict[int, ErrorKind] = {
    403: ErrorKind.NOT_FOUND,
    404: ErrorKind.NOT_FOUND,
}

_MALFORMED = "Malformed response from messaging API"

ModelT = TypeVar("ModelT", bound=Envelope | SentMessageResponse)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _server_message(body: Any) -> str | None:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return None


class HttpMessagingTransport:
    """Implements application.ports.transport.MessagingTransport.

    Holds no state besides the shared ``httpx.AsyncClient``; the owner of
    that client is responsible for closing it.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        search_min_query_length: int = 2,
    ) -> None:
        self._client = client
        self._search_min_query_length = search_min_query_length

    async def _call(
        self,
        method: str,
        path: str,
        response_model: type[ModelT],
        *,
        params: Mapping[str, str] | None = None,
        json: dict[str, Any] | None = None,
        status_kinds: Mapping[int, ErrorKind] | None = None,
    ) -> Result[ModelT]:
        cid = correlation_id_ctx.get() or uuid.uuid4().hex
        start = time.perf_counter()
        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers={HEADER: cid},
            )
        except httpx.TimeoutException:
            logger.warning("%s %s timed out [%s]", method, path, cid)
            return Err(ErrorKind.NETWORK, "Request timed out")
        except httpx.HTTPError as exc:
            logger.warning("%s %s transport error: %s [%s]", method, path, exc, cid)
            return Err(ErrorKind.NETWORK, str(exc) or exc.__class__.__name__)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "%s %s %s %.1fms [%s]",
            method, path, response.status_code, elapsed_ms, cid,
        )

        body = _json_or_none(response)
        if not response.is_success:
            status = response.status_code
            kind = (status_kinds or {}).get(status) or _STATUS_KINDS.get(status, ErrorKind.NETWORK)
            message = _server_message(body) or f"HTTP {status}"
            logger.warning("%s %s failed with %s: %s [%s]", method, path, kind, message, cid)
            return Err(kind, message)

        if not isinstance(body, dict):
            logger.warning("%s %s returned a non-object body [%s]", method, path, cid)
            return Err(ErrorKind.NETWORK, _MALFORMED)
        # Checked on the raw body: failure envelopes lack the success payload.
        if body.get("success") is not True:
            message = _server_message(body) or "Request was not successful"
            logger.warning("%s %s reported failure: %s [%s]", method, path, message, cid)
            return Err(ErrorKind.NETWORK, message)
        try:
            parsed = response_model.model_validate(body)
        except PydanticValidationError:
            logger.warning("%s %s returned an unexpected payload [%s]", method, path, cid)
            return Err(ErrorKind.NETWORK, _MALFORMED)
        return Ok(parsed)

    async def list_conversations(self, viewer_id: str) -> Result[list[Conversation]]:
        result = await self._call(
            "GET",
            f"/users/{_segment(viewer_id)}/conversations",
            ConversationListResponse,
        )
        if isinstance(result, Err):
            return result
        try:
            return Ok([payload_to_conversation(c) for c in result.data.conversations])
        except ValueError:
            logger.warning("Unknown conversation kind in list for viewer %s", viewer_id)
            return Err(ErrorKind.NETWORK, _MALFORMED)

    async def list_messages(
        self, viewer_id: str, conversation_id: str
    ) -> Result[list[Message]]:
        result = await self._call(
            "GET",
            f"/conversations/{_segment(conversation_id)}/messages",
            MessageListResponse,
            params={"viewerId": viewer_id},
            status_kinds=_LIST_MESSAGES_KINDS,
        )
        if isinstance(result, Err):
            return result
        return Ok([payload_to_message(m, conversation_id) for m in result.data.messages])

    async def send_message(
        self, viewer_id: str, conversation_id: str, text: str
    ) -> Result[Message]:
        result = await self._call(
            "POST",
            f"/conversations/{_segment(conversation_id)}/messages",
            SentMessageResponse,
            json={"viewerId": viewer_id, "text": text},
        )
        if isinstance(result, Err):
            return result
        return Ok(payload_to_message(result.data.message, conversation_id))

    async def mark_read(self, viewer_id: str, conversation_id: str) -> Result[None]:
        result = await self._call(
            "POST",
            f"/conversations/{_segment(conversation_id)}/read",
            Envelope,
            json={"viewerId": viewer_id},
        )
        return result if isinstance(result, Err) else Ok(None)

    async def create_direct_conversation(
        self, viewer_id: str, other_user_id: str
    ) -> Result[str]:
        result = await self._call(
            "POST",
            "/conversations/direct",
            ConversationIdResponse,
            json={"viewerId": viewer_id, "otherUserId": other_user_id},
        )
        if isinstance(result, Err):
            return result
        return Ok(result.data.conversation_id)

    async def create_group_conversation(
        self,
        viewer_id: str,
        name: str,
        member_ids: Sequence[str],
        avatar_ref: str | None = None,
    ) -> Result[str]:
        payload: dict[str, Any] = {
            "viewerId": viewer_id,
            "name": name,
            "memberIds": list(member_ids),
        }
        if avatar_ref is not None:
            payload["avatarRef"] = avatar_ref
        result = await self._call(
            "POST", "/conversations/group", ConversationIdResponse, json=payload,
        )
        if isinstance(result, Err):
            return result
        return Ok(result.data.conversation_id)

    async def update_group_name(
        self, viewer_id: str, conversation_id: str, name: str
    ) -> Result[None]:
        result = await self._call(
            "PATCH",
            f"/conversations/{_segment(conversation_id)}/name",
            Envelope,
            json={"viewerId": viewer_id, "name": name},
        )
        return result if isinstance(result, Err) else Ok(None)

    async def update_group_avatar(
        self, viewer_id: str, conversation_id: str, avatar_ref: str
    ) -> Result[None]:
        result = await self._call(
            "PATCH",
            f"/conversations/{_segment(conversation_id)}/avatar",
            Envelope,
            json={"viewerId": viewer_id, "avatarRef": avatar_ref},
        )
        return result if isinstance(result, Err) else Ok(None)

    async def add_group_member(
        self, viewer_id: str, conversation_id: str, user_id: str
    ) -> Result[None]:
        result = await self._call(
            "POST",
            f"/conversations/{_segment(conversation_id)}/members",
            Envelope,
            json={"viewerId": viewer_id, "userId": user_id},
        )
        return result if isinstance(result, Err) else Ok(None)

    async def delete_conversation(
        self, viewer_id: str, conversation_id: str
    ) -> Result[None]:
        result = await self._call(
            "DELETE",
            f"/conversations/{_segment(conversation_id)}",
            Envelope,
            json={"viewerId": viewer_id},
        )
        return result if isinstance(result, Err) else Ok(None)

    async def search_users(self, viewer_id: str, query: str) -> Result[list[UserRef]]:
        query = query.strip()
        if len(query) < self._search_min_query_length:
            return Ok([])
        result = await self._call(
            "GET",
            "/users/search",
            UserSearchResponse,
            params={"viewerId": viewer_id, "q": query},
        )
        if isinstance(result, Err):
            return result
        return Ok([payload_to_user(u) for u in result.data.users if u.id != viewer_id])
