import asyncio

import pytest

from chatroom.config import Settings
from chatroom.constants import BROADCAST_TARGET
from chatroom.errors import ForbiddenError, NotFoundError
from chatroom.models import ChatMessage, MessageDraft, MessageKind
from chatroom.service import build_chat_room
from chatroom.storage import connect
from chatroom.visibility import is_visible_to

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def broadcast(text):
    return MessageDraft(to=BROADCAST_TARGET, text=text, kind=MessageKind.BROADCAST)


def private(to, text):
    return MessageDraft(to=to, text=text, kind=MessageKind.PRIVATE)


def run_in_room(scenario):
    async def main():
        room = build_chat_room(await connect(MEMORY_URL), Settings())
        try:
            await scenario(room)
        finally:
            await room.database.close()

    asyncio.run(main())


@pytest.mark.parametrize("kind, requester, visible", [
    (MessageKind.BROADCAST, "Carol", True),
    (MessageKind.STATUS, None, True),
    (MessageKind.PRIVATE, "Bob", True),
    (MessageKind.PRIVATE, "Alice", True),
    (MessageKind.PRIVATE, "Carol", False),
    (MessageKind.PRIVATE, None, False),
])
def test_visibility_is_a_function_of_kind(kind, requester, visible):
    message = ChatMessage(sender="Alice", to="Bob", text="hi", kind=kind)
    assert is_visible_to(message, requester) is visible


def test_query_filters_private_messages_per_requester():
    async def scenario(room):
        messages = room.messages
        await messages.append("Alice", broadcast("hello all"))
        await messages.append("Alice", private("Bob", "secret"))
        await messages.append_status("Carol", "entra na sala...")

        texts = lambda found: [m.text for m in found]
        assert texts(await messages.query("Bob")) == ["hello all", "secret", "entra na sala..."]
        assert texts(await messages.query("Alice")) == ["hello all", "secret", "entra na sala..."]
        assert texts(await messages.query("Carol")) == ["hello all", "entra na sala..."]

    run_in_room(scenario)


def test_limit_takes_the_latest_in_chronological_order():
    async def scenario(room):
        messages = room.messages
        for n in range(5):
            await messages.append("Alice", broadcast(f"m{n}"))

        everything = await messages.query("Bob")
        latest = await messages.query("Bob", limit=2)
        assert [m.text for m in latest] == ["m3", "m4"]
        assert [m.message_id for m in latest] == [m.message_id for m in everything[-2:]]
        assert len(await messages.query("Bob", limit=50)) == 5

    run_in_room(scenario)


def test_ids_are_unique_and_time_is_display_only():
    async def scenario(room):
        messages = room.messages
        first = await messages.append("Alice", broadcast("a"))
        second = await messages.append("Alice", broadcast("b"), time="09:15:00")
        assert first.message_id != second.message_id
        assert second.time == "09:15:00"
        assert [m.text for m in await messages.query(None)] == ["a", "b"]

    run_in_room(scenario)


def test_update_by_owner_preserves_identity_fields():
    async def scenario(room):
        messages = room.messages
        original = await messages.append("Alice", broadcast("draft"), time="10:00:00")
        updated = await messages.update_owned(original.message_id, "Alice", private("Bob", "final"))

        stored = await messages.get(original.message_id)
        assert stored.to_dict() == updated.to_dict()
        assert (stored.message_id, stored.sender, stored.time) == (original.message_id, "Alice", "10:00:00")
        assert (stored.to, stored.text, stored.kind) == ("Bob", "final", MessageKind.PRIVATE)

    run_in_room(scenario)


def test_update_by_other_identity_is_forbidden():
    async def scenario(room):
        messages = room.messages
        original = await messages.append("Alice", broadcast("mine"))
        with pytest.raises(ForbiddenError):
            await messages.update_owned(original.message_id, "Mallory", broadcast("hacked"))
        with pytest.raises(ForbiddenError):
            await messages.update_owned(original.message_id, None, broadcast("hacked"))
        assert (await messages.get(original.message_id)).text == "mine"

    run_in_room(scenario)


def test_existence_is_checked_before_ownership():
    async def scenario(room):
        messages = room.messages
        with pytest.raises(NotFoundError):
            await messages.update_owned("nope", "Mallory", broadcast("x"))
        with pytest.raises(NotFoundError):
            await messages.delete_owned("nope", "Mallory")

    run_in_room(scenario)


def test_delete_by_owner_removes_permanently():
    async def scenario(room):
        messages = room.messages
        original = await messages.append("Alice", broadcast("bye"))
        with pytest.raises(ForbiddenError):
            await messages.delete_owned(original.message_id, "Bob")

        await messages.delete_owned(original.message_id, "Alice")
        assert await messages.get(original.message_id) is None
        with pytest.raises(NotFoundError):
            await messages.delete_owned(original.message_id, "Alice")

    run_in_room(scenario)
