import asyncio

from chatroom.config import Settings
from chatroom.constants import STATUS_LEFT_TEXT
from chatroom.errors import UpstreamStorageError
from chatroom.models import MessageKind
from chatroom.service import build_chat_room
from chatroom.storage import connect
from chatroom.sweeper import InactivitySweeper

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def run_in_room(scenario, clock):
    async def main():
        settings = Settings(inactivity_threshold_seconds=10, sweep_interval_seconds=15)
        room = build_chat_room(await connect(MEMORY_URL), settings, clock)
        try:
            await scenario(room)
        finally:
            await room.database.close()

    asyncio.run(main())


def departures(messages):
    return [m for m in messages if m.kind is MessageKind.STATUS and m.text == STATUS_LEFT_TEXT]


def test_tick_evicts_and_announces_each_departure_once(clock):
    async def scenario(room):
        await room.registry.join("Alice")
        await room.registry.join("Bob")
        clock.advance(11)

        assert await room.sweeper.tick() == {"Alice", "Bob"}
        assert await room.registry.list() == []

        left = departures(await room.messages.query("Carol"))
        assert sorted(m.sender for m in left) == ["Alice", "Bob"]
        assert len({m.time for m in left}) == 1

        assert await room.sweeper.tick() == set()
        assert len(departures(await room.messages.query("Carol"))) == 2

    run_in_room(scenario, clock)


def test_tick_without_stale_participants_writes_nothing(clock):
    async def scenario(room):
        await room.registry.join("Alice")
        before = await room.messages.count()
        clock.advance(3)
        assert await room.sweeper.tick() == set()
        assert await room.messages.count() == before

    run_in_room(scenario, clock)


def test_failed_announcement_does_not_block_the_others(clock, monkeypatch):
    async def scenario(room):
        for name in ("Alice", "Bob", "Carol"):
            await room.registry.join(name)
        clock.advance(11)

        append_status = room.messages.append_status

        async def flaky_append(name, text, time=None):
            if name == "Bob":
                raise UpstreamStorageError()
            return await append_status(name, text, time)

        monkeypatch.setattr(room.messages, "append_status", flaky_append)
        assert await room.sweeper.tick() == {"Alice", "Bob", "Carol"}

        left = departures(await room.messages.query(None))
        assert sorted(m.sender for m in left) == ["Alice", "Carol"]

    run_in_room(scenario, clock)


class FlakyRegistry:
    def __init__(self):
        self.calls = 0

    async def evict_stale(self, threshold_ms, now=None):
        self.calls += 1
        if self.calls == 1:
            raise UpstreamStorageError()
        return set()


def test_failed_tick_never_stops_the_loop():
    async def scenario():
        registry = FlakyRegistry()
        sweeper = InactivitySweeper(registry, messages=None, threshold_seconds=10, interval_seconds=0.01)
        sweeper.start()
        assert sweeper.running
        for _ in range(200):
            if registry.calls >= 3:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

        assert registry.calls >= 3
        assert not sweeper.running

    asyncio.run(scenario())


def test_stop_before_first_tick_is_prompt():
    async def scenario():
        registry = FlakyRegistry()
        sweeper = InactivitySweeper(registry, messages=None, threshold_seconds=10, interval_seconds=60)
        sweeper.start()
        await asyncio.sleep(0)
        await asyncio.wait_for(sweeper.stop(), timeout=1)
        assert registry.calls == 0

    asyncio.run(scenario())
