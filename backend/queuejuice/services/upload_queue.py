"""Upload queue — item registry, per-item transfer clocks, deferred purge."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable, Iterable

from queuejuice.config import QueueOptions, settings
from queuejuice.models.queue_item import QueueItem, advance, mark_exiting
from queuejuice.schemas.queue import (
    FileDescriptor,
    ItemAdmitted,
    ItemCompleted,
    ItemRemoved,
    Notification,
)
from queuejuice.services.transfer_clock import TransferClock

logger = logging.getLogger(__name__)

Notifier = Callable[[Notification], None]


def _discard(_notification: Notification) -> None:
    pass


class UploadQueue:
    """Owns queued items (in admission order) and their active clocks.

    All mutation happens on the event loop thread; the only suspension
    points are clock ticks and the deferred purge, so no locking is needed.
    """

    def __init__(
        self,
        options: QueueOptions | None = None,
        notify: Notifier | None = None,
        *,
        tick_interval: float | None = None,
        exit_grace_period: float | None = None,
        rng: random.Random | None = None,
    ):
        self._options = options or settings.queue_options()
        self._notify = notify or _discard
        self._tick_interval = (
            settings.tick_interval if tick_interval is None else tick_interval
        )
        self._exit_grace_period = (
            settings.exit_grace_period if exit_grace_period is None else exit_grace_period
        )
        self._rng = rng or random.Random()
        self._items: dict[str, QueueItem] = {}  # id -> item, insertion ordered
        self._clocks: dict[str, TransferClock] = {}  # id -> active clock
        self._purges: dict[str, asyncio.TimerHandle] = {}  # id -> pending purge

    @property
    def options(self) -> QueueOptions:
        return self._options

    @property
    def items(self) -> list[QueueItem]:
        return list(self._items.values())

    @property
    def active_clock_ids(self) -> list[str]:
        return list(self._clocks)

    @property
    def pending_purge_ids(self) -> list[str]:
        return list(self._purges)

    def get(self, item_id: str) -> QueueItem | None:
        return self._items.get(item_id)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def sample_target_chunks(self) -> int:
        low, high = self._options.chunk_range
        return self._rng.randint(low, high)

    # --- Mutation ---

    def admit(self, files: Iterable[FileDescriptor | dict]) -> list[QueueItem]:
        """Create one item per file, in order, and start its transfer clock.

        The whole batch is validated first; a malformed descriptor raises
        ``ValidationError`` and nothing is admitted.
        """
        descriptors = [
            raw if isinstance(raw, FileDescriptor) else FileDescriptor.model_validate(raw)
            for raw in files
        ]
        admitted: list[QueueItem] = []
        for descriptor in descriptors:
            item = QueueItem(
                name=descriptor.name,
                size=descriptor.size,
                mime_type=descriptor.mime_type,
                target_chunks=self.sample_target_chunks(),
            )
            self._items[item.id] = item
            if self._options.simulate_transfers:
                self._start_clock(item)
            self._notify(ItemAdmitted(
                id=item.id,
                name=item.name,
                size=item.size,
                mime_type=item.mime_type,
                target_chunks=item.target_chunks,
            ))
            admitted.append(item)

        if admitted:
            logger.info("Admitted %d file(s), queue size %d", len(admitted), len(self._items))
        return admitted

    def on_tick(self, item_id: str, completed_chunks: int, is_complete: bool) -> None:
        """Apply a clock tick. Ticks for removed items are dropped."""
        item = self._items.get(item_id)
        if item is None:
            logger.debug("Dropping tick for removed item %s", item_id)
            return

        updated = advance(item, completed_chunks, is_complete)
        self._items[item_id] = updated
        if not (is_complete and item.is_active):
            return

        self._clocks.pop(item_id, None)
        logger.info("Upload %s (%s) complete after %d chunks",
                    item_id, updated.name, updated.completed_chunks)
        self._notify(ItemCompleted(id=item_id, completed_chunks=updated.completed_chunks))

        if self._options.auto_remove_completed:
            self.request_removal(item_id, user_initiated=False)

    def request_removal(self, item_id: str, user_initiated: bool = False) -> bool:
        """Mark an item as exiting and purge it after the grace period.

        Returns False when the id is unknown or the item is already exiting.
        Without a running event loop there is nothing to defer on, so the
        item is purged immediately.
        """
        item = self._items.get(item_id)
        if item is None or item.is_exiting:
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        clock = self._clocks.pop(item_id, None)
        if clock is not None:
            clock.stop()

        self._items[item_id] = mark_exiting(item)
        if loop is None:
            self._purge(item_id, user_initiated)
            return True
        self._purges[item_id] = loop.call_later(
            self._exit_grace_period, self._purge, item_id, user_initiated,
        )
        logger.debug("Item %s exiting (user_initiated=%s)", item_id, user_initiated)
        return True

    def clear(self) -> int:
        """Drop everything at once. No per-item removal notifications."""
        for clock in self._clocks.values():
            clock.stop()
        for handle in self._purges.values():
            handle.cancel()
        count = len(self._items)
        self._clocks.clear()
        self._purges.clear()
        self._items.clear()
        if count:
            logger.info("Queue cleared (%d item(s))", count)
        return count

    async def shutdown(self) -> None:
        """Clear the queue and wait for every cancelled clock to settle."""
        clocks = list(self._clocks.values())
        self.clear()
        await asyncio.gather(*(clock.wait() for clock in clocks))

    # --- Internals ---

    def _start_clock(self, item: QueueItem) -> None:
        if item.id in self._clocks:
            logger.error("Transfer clock for %s already active; not starting another", item.id)
            return
        clock = TransferClock(
            item.id, item.target_chunks, self.on_tick, self._tick_interval,
        )
        self._clocks[item.id] = clock
        clock.start()
        clock.add_done_callback(self._forget_clock)

    def _forget_clock(self, clock: TransferClock) -> None:
        # A clock whose tick handler failed ends without completing
        if self._clocks.get(clock.item_id) is clock:
            del self._clocks[clock.item_id]
            logger.warning("Transfer clock for %s ended early at %d/%d",
                           clock.item_id, clock.completed_chunks, clock.target_chunks)

    def _purge(self, item_id: str, user_initiated: bool) -> None:
        self._purges.pop(item_id, None)
        item = self._items.pop(item_id, None)
        if item is None:
            return
        logger.info("Removed %s (%s) from queue", item_id, item.name)
        self._notify(ItemRemoved(id=item_id, name=item.name, user_initiated=user_initiated))
