"""Event bridge — host signals in, queue notifications out."""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Any, Iterable

from pydantic import ValidationError

from queuejuice.config import QueueOptions, settings
from queuejuice.models.queue_item import QueueItem
from queuejuice.schemas.queue import (
    FileDescriptor,
    FilesSubmitted,
    QueueItemView,
    QueueSnapshot,
)
from queuejuice.services.event_bus import EventBus, Listener, Subscription
from queuejuice.services.upload_queue import UploadQueue

logger = logging.getLogger(__name__)


class InboundSignal(str, Enum):
    FILES_SUBMITTED = "files-added"
    REMOVE_REQUESTED = "remove-file"
    CLEAR_REQUESTED = "clear-files"


class EventBridge:
    """Connects a host surface to one upload queue.

    Inbound signals map to queue operations; the queue's lifecycle
    notifications go out over the event bus. Nothing here waits on an
    observer.
    """

    def __init__(
        self,
        options: QueueOptions | None = None,
        bus: EventBus | None = None,
        *,
        tick_interval: float | None = None,
        exit_grace_period: float | None = None,
        rng: random.Random | None = None,
    ):
        self._bus = bus or EventBus()
        self._queue = UploadQueue(
            options or settings.queue_options(),
            notify=self._bus.publish,
            tick_interval=tick_interval,
            exit_grace_period=exit_grace_period,
            rng=rng,
        )

    @property
    def queue(self) -> UploadQueue:
        return self._queue

    @property
    def bus(self) -> EventBus:
        return self._bus

    # --- Inbound ---

    def files_submitted(self, files: Iterable[FileDescriptor | dict]) -> list[QueueItem]:
        return self._queue.admit(files)

    def remove_requested(self, item_id: str) -> bool:
        return self._queue.request_removal(item_id, user_initiated=True)

    def clear_requested(self) -> int:
        return self._queue.clear()

    def dispatch(self, signal: InboundSignal | str, payload: dict[str, Any] | None = None) -> None:
        """Route a raw host signal. Malformed or unknown signals are ignored."""
        try:
            signal = InboundSignal(signal)
        except ValueError:
            logger.warning("Ignoring unknown signal %r", signal)
            return

        if signal == InboundSignal.CLEAR_REQUESTED:
            self.clear_requested()
            return

        payload = payload or {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring %s with non-object payload %r", signal.value, payload)
            return

        if signal == InboundSignal.FILES_SUBMITTED:
            if not payload.get("files"):
                logger.debug("files-added without files, ignored")
                return
            try:
                submitted = FilesSubmitted.model_validate(payload)
            except ValidationError as e:
                logger.warning("Rejected malformed files-added payload: %s", e)
                return
            self.files_submitted(submitted.files)
        else:
            item_id = payload.get("id") or payload.get("uploadId")
            if not isinstance(item_id, (str, int)) or isinstance(item_id, bool):
                logger.debug("remove-file without usable id, ignored")
                return
            self.remove_requested(str(item_id))

    # --- Outbound ---

    def subscribe(self) -> Subscription:
        return self._bus.subscribe()

    def add_listener(self, listener: Listener) -> None:
        self._bus.add_listener(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._bus.remove_listener(listener)

    def snapshot(self) -> QueueSnapshot:
        items = [QueueItemView.from_item(item) for item in self._queue.items]
        options = self._queue.options
        return QueueSnapshot(
            items=items,
            count=len(items),
            empty_message=options.empty_message,
            auto_scroll_on_change=options.auto_scroll_on_change,
        )

    async def shutdown(self) -> None:
        await self._queue.shutdown()
        await self._bus.aclose()
        logger.info("Event bridge shut down")
