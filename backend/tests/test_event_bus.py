"""Tests for the event bus — subscriptions, listeners, failure isolation."""

import asyncio

import pytest

from queuejuice.schemas.queue import ItemAdmitted, ItemCompleted, ItemRemoved
from queuejuice.services.event_bus import EventBus


def _admitted(item_id="a"):
    return ItemAdmitted(id=item_id, name="a.txt", size=1, mime_type="text/plain", target_chunks=2)


@pytest.fixture
def bus():
    return EventBus()


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_receives_in_publish_order(self, bus):
        with bus.subscribe() as sub:
            bus.publish(_admitted("a"))
            bus.publish(ItemCompleted(id="a", completed_chunks=2))
            bus.publish(ItemRemoved(id="a", name="a.txt", user_initiated=True))

            kinds = [(await sub.get()).type.value for _ in range(3)]
        assert kinds == ["item-admitted", "item-completed", "item-removed"]

    @pytest.mark.asyncio
    async def test_every_subscriber_gets_a_copy(self, bus):
        first, second = bus.subscribe(), bus.subscribe()
        bus.publish(_admitted())
        assert first.pending() == 1
        assert second.pending() == 1

    @pytest.mark.asyncio
    async def test_closed_subscription_stops_receiving(self, bus):
        sub = bus.subscribe()
        sub.close()
        bus.publish(_admitted())
        assert sub.drain() == []
        assert bus.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_iteration_ends_on_close(self, bus):
        sub = bus.subscribe()
        received = []

        async def _consume():
            async for note in sub:
                received.append(note.id)

        consumer = asyncio.create_task(_consume())
        bus.publish(_admitted("x"))
        await asyncio.sleep(0)
        sub.close()
        await asyncio.wait_for(consumer, 1.0)
        assert received == ["x"]

    @pytest.mark.asyncio
    async def test_drain(self, bus):
        sub = bus.subscribe()
        bus.publish(_admitted("a"))
        bus.publish(_admitted("b"))
        assert [n.id for n in sub.drain()] == ["a", "b"]
        assert sub.pending() == 0


class TestListeners:
    @pytest.mark.asyncio
    async def test_listener_runs_on_next_loop_iteration(self, bus):
        seen = []
        bus.add_listener(seen.append)
        bus.publish(_admitted())
        assert seen == []  # publish never calls observers inline
        await asyncio.sleep(0)
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_async_listener(self, bus):
        seen = []

        async def listener(note):
            seen.append(note.id)

        bus.add_listener(listener)
        bus.publish(_admitted("z"))
        for _ in range(3):
            await asyncio.sleep(0)
        assert seen == ["z"]

    @pytest.mark.asyncio
    async def test_failing_listener_is_isolated(self, bus):
        seen = []

        def broken(note):
            raise RuntimeError("listener down")

        bus.add_listener(broken)
        bus.add_listener(seen.append)
        bus.publish(_admitted())
        await asyncio.sleep(0)
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_remove_listener(self, bus):
        seen = []
        bus.add_listener(seen.append)
        bus.remove_listener(seen.append)
        bus.remove_listener(seen.append)
        bus.publish(_admitted())
        await asyncio.sleep(0)
        assert seen == []

    def test_without_loop_delivers_inline(self, bus):
        seen = []
        bus.add_listener(seen.append)
        bus.publish(_admitted())
        assert len(seen) == 1

    def test_async_listener_without_loop_is_skipped(self, bus):
        seen = []

        async def listener(note):
            seen.append(("async", note.id))

        bus.add_listener(listener)
        bus.add_listener(lambda note: seen.append(("sync", note.id)))
        bus.publish(_admitted("a"))
        assert seen == [("sync", "a")]


class TestClose:
    @pytest.mark.asyncio
    async def test_aclose_closes_subscriptions(self, bus):
        sub = bus.subscribe()
        await bus.aclose()
        assert sub.closed
        assert bus.subscriber_count == 0
