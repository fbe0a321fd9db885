"""Tests for the transfer clock — tick sequence, self-stop, cancellation."""

import asyncio

import pytest

from queuejuice.services.transfer_clock import TransferClock


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, item_id, completed_chunks, is_complete):
        self.calls.append((item_id, completed_chunks, is_complete))


class TestTicking:
    @pytest.mark.asyncio
    async def test_counts_up_to_target_then_stops(self):
        rec = Recorder()
        clock = TransferClock("item-1", 3, rec, interval=0.001)
        clock.start()
        await clock.wait()

        assert rec.calls == [
            ("item-1", 1, False),
            ("item-1", 2, False),
            ("item-1", 3, True),
        ]
        assert clock.completed_chunks == 3
        assert clock.running is False

    @pytest.mark.asyncio
    async def test_zero_target_treated_as_one(self):
        rec = Recorder()
        clock = TransferClock("item-1", 0, rec, interval=0.001)
        clock.start()
        await clock.wait()
        assert rec.calls == [("item-1", 1, True)]

    @pytest.mark.asyncio
    async def test_double_start_is_rejected(self):
        clock = TransferClock("item-1", 5, Recorder(), interval=0.001)
        clock.start()
        with pytest.raises(RuntimeError):
            clock.start()
        clock.stop()
        await clock.wait()

    @pytest.mark.asyncio
    async def test_done_callback_receives_clock(self):
        finished = []
        clock = TransferClock("item-1", 2, Recorder(), interval=0.001)
        clock.start()
        clock.add_done_callback(finished.append)
        await clock.wait()
        await asyncio.sleep(0)
        assert finished == [clock]

    def test_done_callback_requires_start(self):
        clock = TransferClock("item-1", 2, Recorder(), interval=0.001)
        with pytest.raises(RuntimeError):
            clock.add_done_callback(lambda c: None)


class TestStop:
    @pytest.mark.asyncio
    async def test_stop_before_first_tick(self):
        rec = Recorder()
        clock = TransferClock("item-1", 5, rec, interval=0.001)
        clock.start()
        assert clock.stop() is True
        await clock.wait()
        assert rec.calls == []
        assert clock.running is False

    @pytest.mark.asyncio
    async def test_double_stop_is_noop(self):
        clock = TransferClock("item-1", 5, Recorder(), interval=0.001)
        clock.start()
        clock.stop()
        await clock.wait()
        assert clock.stop() is False

    @pytest.mark.asyncio
    async def test_stop_after_completion_is_noop(self):
        clock = TransferClock("item-1", 1, Recorder(), interval=0.001)
        clock.start()
        await clock.wait()
        assert clock.stop() is False

    def test_stop_unstarted_is_noop(self):
        clock = TransferClock("item-1", 1, Recorder(), interval=0.001)
        assert clock.stop() is False

    @pytest.mark.asyncio
    async def test_stop_from_tick_handler(self):
        calls = []

        def handler(item_id, completed, is_complete):
            calls.append(completed)
            if completed == 2:
                clock.stop()

        clock = TransferClock("item-1", 10, handler, interval=0.001)
        clock.start()
        await clock.wait()
        assert calls == [1, 2]

    @pytest.mark.asyncio
    async def test_failing_handler_stops_clock(self):
        calls = []

        def handler(item_id, completed, is_complete):
            calls.append(completed)
            raise ValueError("boom")

        clock = TransferClock("item-1", 10, handler, interval=0.001)
        clock.start()
        await clock.wait()
        assert calls == [1]
        assert clock.running is False
