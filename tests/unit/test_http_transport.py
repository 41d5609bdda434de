from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Callable

import httpx
import pytest

from messaging_sync.application.dto.result import Err, Ok
from messaging_sync.application.exceptions import ErrorKind
from messaging_sync.domain.value_objects.enums import ConversationKind, UserRole
from messaging_sync.infrastructure.http.client import HEADER, HttpMessagingTransport

BASE_URL = "http://api.test/api/v1/messaging"


def make_transport(handler) -> tuple[HttpMessagingTransport, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(_record), base_url=BASE_URL)
    return HttpMessagingTransport(client), seen


def reply(status: int = 200, **body) -> Callable[[httpx.Request], httpx.Response]:
    return lambda _request: httpx.Response(status, json=body)


@pytest.mark.asyncio
async def test_list_messages_canonicalises_text_aliases():
    transport, seen = make_transport(reply(success=True, messages=[
        {"id": 1, "senderId": 7, "content": "from content", "createdAt": "2024-01-02T00:00:00Z"},
        {"id": 2, "sender_id": 8, "message_text": "from message_text", "created_at": "2024-01-01T00:00:00"},
        {"id": 3, "senderId": 7, "message": "from message", "createdAt": "yesterday"},
    ]))

    result = await transport.list_messages("7", "c1")

    assert isinstance(result, Ok)
    first, second, third = result.data
    assert [m.text for m in result.data] == ["from content", "from message_text", "from message"]
    assert first.id == "1" and first.sender_id == "7" and first.conversation_id == "c1"
    assert first.created_at == datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert second.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert third.created_at is None
    assert seen[0].url.path == "/api/v1/messaging/conversations/c1/messages"
    assert seen[0].url.params["viewerId"] == "7"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [403, 404])
async def test_list_messages_access_errors_are_not_found(status):
    transport, _ = make_transport(reply(status, success=False, message="Access denied"))

    result = await transport.list_messages("u1", "c1")

    assert result == Err(ErrorKind.NOT_FOUND, "Access denied")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "kind"),
    [
        (400, ErrorKind.VALIDATION),
        (409, ErrorKind.VALIDATION),
        (422, ErrorKind.VALIDATION),
        (401, ErrorKind.AUTH),
        (403, ErrorKind.PERMISSION),
        (404, ErrorKind.NOT_FOUND),
        (500, ErrorKind.NETWORK),
        (503, ErrorKind.NETWORK),
    ],
)
async def test_status_codes_map_to_error_kinds(status, kind):
    transport, _ = make_transport(reply(status, success=False, message="nope"))

    result = await transport.update_group_name("u1", "g1", "Team")

    assert isinstance(result, Err)
    assert result.error_kind == kind
    assert result.message == "nope"


@pytest.mark.asyncio
async def test_error_without_json_body_uses_status_text():
    transport, _ = make_transport(lambda _r: httpx.Response(502, text="Bad Gateway"))

    result = await transport.mark_read("u1", "c1")

    assert result == Err(ErrorKind.NETWORK, "HTTP 502")


@pytest.mark.asyncio
async def test_timeout_is_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    transport, _ = make_transport(handler)

    result = await transport.list_conversations("u1")

    assert result == Err(ErrorKind.NETWORK, "Request timed out")


@pytest.mark.asyncio
async def test_connection_error_is_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    transport, _ = make_transport(handler)

    result = await transport.send_message("u1", "c1", "hi")

    assert isinstance(result, Err)
    assert result.error_kind == ErrorKind.NETWORK


@pytest.mark.asyncio
async def test_unsuccessful_envelope_is_network_error():
    transport, _ = make_transport(reply(success=False, message="try later"))

    result = await transport.mark_read("u1", "c1")

    assert result == Err(ErrorKind.NETWORK, "try later")


@pytest.mark.asyncio
async def test_failed_send_keeps_server_message():
    transport, _ = make_transport(reply(success=False, message="Conversation closed"))

    result = await transport.send_message("u1", "c1", "hello")

    assert result == Err(ErrorKind.NETWORK, "Conversation closed")


@pytest.mark.asyncio
async def test_malformed_payload_is_network_error():
    transport, _ = make_transport(reply(success=True, conversationId=None))

    result = await transport.create_direct_conversation("u1", "u2")

    assert isinstance(result, Err)
    assert result.error_kind == ErrorKind.NETWORK


@pytest.mark.asyncio
async def test_list_conversations_maps_payload():
    transport, seen = make_transport(reply(success=True, conversations=[
        {
            "id": "g1",
            "type": "GROUP",
            "name": "Team A",
            "avatarUrl": "https://cdn.example.com/g.png",
            "participants": [
                {"userId": "u1", "displayName": "Ana", "role": "student"},
                {"user_id": "u2", "name": "Acme", "userType": "company", "isActive": False},
            ],
            "lastMessage": {"id": "m1", "senderId": "u2", "text": "hi", "createdAt": "2024-01-01T10:00:00+00:00"},
            "unreadCount": 2,
        },
        {"id": "c1", "kind": "direct", "name": "ignored for direct"},
    ]))

    result = await transport.list_conversations("u1")

    group, direct = result.data
    assert group.kind == ConversationKind.GROUP
    assert group.display_name == "Team A"
    assert group.avatar_ref == "https://cdn.example.com/g.png"
    assert group.participants[1].role == UserRole.COMPANY
    assert group.participants[1].is_active_member is False
    assert group.last_message.conversation_id == "g1"
    assert group.unread_count == 2
    assert direct.display_name is None
    assert direct.unread_count is None
    assert seen[0].url.path == "/api/v1/messaging/users/u1/conversations"


@pytest.mark.asyncio
async def test_unknown_conversation_kind_is_network_error():
    transport, _ = make_transport(reply(success=True, conversations=[{"id": "x", "kind": "channel"}]))

    result = await transport.list_conversations("u1")

    assert isinstance(result, Err)
    assert result.error_kind == ErrorKind.NETWORK


@pytest.mark.asyncio
async def test_send_message_posts_body_and_parses_message():
    transport, seen = make_transport(reply(success=True, message={
        "id": "m100", "senderId": "u1", "message_text": "hello", "createdAt": "2024-01-01T00:00:00Z",
    }))

    result = await transport.send_message("u1", "c1", "hello")

    assert result.data.id == "m100"
    assert result.data.text == "hello"
    assert result.data.is_optimistic is False
    assert seen[0].method == "POST"
    assert json.loads(seen[0].content) == {"viewerId": "u1", "text": "hello"}


@pytest.mark.asyncio
async def test_create_group_sends_avatar_only_when_given():
    transport, seen = make_transport(reply(success=True, conversationId=42))

    result = await transport.create_group_conversation("u1", "Team", ["u2", "u3"])

    assert result == Ok("42")
    assert json.loads(seen[0].content) == {"viewerId": "u1", "name": "Team", "memberIds": ["u2", "u3"]}


@pytest.mark.asyncio
async def test_delete_sends_viewer_in_body():
    transport, seen = make_transport(reply(success=True, message="deleted"))

    result = await transport.delete_conversation("u1", "c 1/x")

    assert result == Ok(None)
    assert seen[0].method == "DELETE"
    assert seen[0].url.raw_path == b"/api/v1/messaging/conversations/c%201%2Fx"
    assert json.loads(seen[0].content) == {"viewerId": "u1"}


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", " ", "a", " b "])
async def test_short_search_returns_empty_without_request(query):
    transport, seen = make_transport(reply(success=True, users=[]))

    result = await transport.search_users("u1", query)

    assert result == Ok([])
    assert seen == []


@pytest.mark.asyncio
async def test_search_filters_viewer_and_maps_users():
    transport, seen = make_transport(reply(success=True, users=[
        {"id": "u1", "displayName": "Me"},
        {"id": "u2", "username": "bruno", "role": "STUDENT"},
    ]))

    result = await transport.search_users("u1", " bru ")

    assert [(u.id, u.display_name, u.role) for u in result.data] == [
        ("u2", "bruno", UserRole.STUDENT),
    ]
    assert seen[0].url.params["q"] == "bru"


@pytest.mark.asyncio
async def test_request_carries_correlation_header():
    transport, seen = make_transport(reply(success=True))

    await transport.mark_read("u1", "c1")

    assert seen[0].headers[HEADER]
