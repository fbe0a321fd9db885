"""Transfer clock — one asyncio task ticking simulated progress for one item."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)

TickHandler = Callable[[str, int, bool], None]


class TransferClock:
    """Periodic driver of simulated chunk progress for a single queue item.

    Each tick advances the counter by exactly one chunk, regardless of how
    much wall time actually elapsed, and reports
    ``(item_id, completed_chunks, is_complete)`` to ``on_tick``. The clock
    stops itself after reporting completion.
    """

    def __init__(
        self,
        item_id: str,
        target_chunks: int,
        on_tick: TickHandler,
        interval: float,
    ):
        self._item_id = item_id
        self._target_chunks = max(1, target_chunks)
        self._on_tick = on_tick
        self._interval = interval
        self._counter = 0
        self._task: asyncio.Task | None = None

    @property
    def item_id(self) -> str:
        return self._item_id

    @property
    def target_chunks(self) -> int:
        return self._target_chunks

    @property
    def completed_chunks(self) -> int:
        return self._counter

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Must be called from a running event loop."""
        if self._task is not None:
            raise RuntimeError(f"Transfer clock for {self._item_id} already started")
        self._task = asyncio.create_task(
            self._run(), name=f"transfer-clock-{self._item_id}"
        )

    def stop(self) -> bool:
        """Cancel before the next tick. Returns False if already stopped."""
        if not self.running:
            return False
        self._task.cancel()
        logger.debug("Transfer clock for %s stopped at %d/%d",
                     self._item_id, self._counter, self._target_chunks)
        return True

    def add_done_callback(self, callback: Callable[[TransferClock], None]) -> None:
        """Call ``callback(clock)`` once the task ends, however it ends."""
        if self._task is None:
            raise RuntimeError(f"Transfer clock for {self._item_id} not started")
        self._task.add_done_callback(lambda _task: callback(self))

    async def wait(self) -> None:
        """Wait for the underlying task to finish (completed or cancelled)."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self._counter += 1
            progress_ratio = min(self._counter / self._target_chunks, 1.0)
            is_complete = progress_ratio >= 1
            try:
                self._on_tick(self._item_id, self._counter, is_complete)
            except Exception as e:
                logger.exception("Tick handler failed for %s: %s", self._item_id, e)
                return
            if is_complete:
                logger.debug("Transfer clock for %s finished after %d ticks",
                             self._item_id, self._counter)
                return
