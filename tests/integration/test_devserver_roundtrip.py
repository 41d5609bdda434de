"""End-to-end: the real client talking to the development API over ASGI."""
from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from messaging_sync.app import create_client
from messaging_sync.application.exceptions import (
    AuthError,
    ErrorKind,
    MessageSendError,
    NotFoundError,
    ValidationError,
)
from messaging_sync.devserver.app import create_app
from messaging_sync.devserver.state import MessagingState
from messaging_sync.domain.value_objects.enums import ConversationKind, UserRole


@pytest.fixture
def state() -> MessagingState:
    state = MessagingState()
    state.add_user("u1", "Ana", username="ana")
    state.add_user("u2", "Bruno", username="bruno")
    state.add_user("u3", "Acme", UserRole.COMPANY, username="acme")
    state.add_user("u4", "Carla", UserRole.COORDINATOR, username="carla")
    return state


@pytest_asyncio.fixture
async def http(state):
    transport = httpx.ASGITransport(app=create_app(state))
    async with httpx.AsyncClient(
        transport=transport, base_url="http://test/api/v1/messaging",
    ) as client:
        yield client


@pytest_asyncio.fixture
async def client(http):
    async with create_client(http_client=http) as messaging:
        yield messaging


@pytest.mark.asyncio
async def test_healthz(http):
    resp = await http.get("http://test/healthz")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_direct_conversation_send_and_read(client, state):
    conversation_id = await client.start_direct_conversation("u1", "u2")
    again = await client.start_direct_conversation("u1", "u2")

    assert again == conversation_id
    assert client.store.get(conversation_id).kind == ConversationKind.DIRECT

    sent = await client.synchronizer.send("u1", conversation_id, "hello")
    assert sent.is_optimistic is False
    assert [m.id for m in client.store.messages(conversation_id)] == [sent.id]
    await client.synchronizer.load_messages("u1", conversation_id)

    state.send_message("u2", conversation_id, "hi back")
    await client.synchronizer.load_messages("u1", conversation_id)

    assert [m.text for m in client.store.messages(conversation_id)] == ["hello", "hi back"]
    assert client.unread.total_unread() == 1

    await client.synchronizer.open_conversation("u1", conversation_id)
    assert client.unread.total_unread() == 0
    assert state.unread_count("u1", conversation_id) == 0

    conversations = await client.synchronizer.load_conversations("u1")
    assert conversations[0].last_message.text == "hi back"
    assert conversations[0].unread_count == 0


@pytest.mark.asyncio
async def test_group_lifecycle(client, state):
    group = await client.groups.create_group("u1", "Team A", ["u2", "u3"])
    assert client.store.get(group.id).display_name == "Team A"

    await client.synchronizer.wait_idle()
    refreshed = client.store.get(group.id)
    assert {p.display_name for p in refreshed.participants} == {"Ana", "Bruno", "Acme"}

    await client.groups.rename_group("u1", group.id, "Team B")
    await client.groups.set_group_avatar("u1", group.id, "https://cdn.example.com/g.png")
    await client.groups.add_member("u1", group.id, "u4")

    await client.synchronizer.load_conversations("u1")
    stored = client.store.get(group.id)
    assert stored.display_name == "Team B"
    assert stored.avatar_ref == "https://cdn.example.com/g.png"
    assert stored.has_active_member("u4")

    with pytest.raises(ValidationError):
        await client.groups.add_member("u1", group.id, "u4")

    await client.groups.delete_conversation("u1", group.id)
    assert client.store.get(group.id) is None
    assert group.id not in state.conversations


@pytest.mark.asyncio
async def test_create_group_with_unknown_member(client):
    with pytest.raises(NotFoundError):
        await client.groups.create_group("u1", "Team", ["u9"])


@pytest.mark.asyncio
async def test_outsider_cannot_read_or_send(client):
    conversation_id = await client.start_direct_conversation("u1", "u2")

    with pytest.raises(NotFoundError):
        await client.synchronizer.load_messages("u3", conversation_id)

    with pytest.raises(MessageSendError) as exc_info:
        await client.synchronizer.send("u3", conversation_id, "let me in")
    assert exc_info.value.kind == ErrorKind.PERMISSION
    assert exc_info.value.text == "let me in"


@pytest.mark.asyncio
async def test_unknown_viewer_is_auth_error(client):
    with pytest.raises(AuthError):
        await client.synchronizer.load_conversations("nobody")


@pytest.mark.asyncio
async def test_search_users(client):
    users = await client.search_users("u1", "ac")

    assert [(u.id, u.role) for u in users] == [("u3", UserRole.COMPANY)]
    assert await client.search_users("u1", "a") == []
