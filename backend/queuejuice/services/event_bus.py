"""In-process notification bus — fire-and-forget fan-out to observers."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

from queuejuice.schemas.queue import Notification

logger = logging.getLogger(__name__)

Listener = Callable[[Notification], Any]


_CLOSED = object()


class Subscription:
    """Buffered view of the bus for a single observer."""

    def __init__(self, bus: EventBus):
        self._bus = bus
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        return self._queue.qsize() - (1 if self._closed else 0)

    def _deliver(self, notification: Notification) -> None:
        if not self._closed:
            self._queue.put_nowait(notification)

    async def get(self) -> Notification:
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            raise RuntimeError("Subscription closed")
        return item

    def get_nowait(self) -> Notification:
        item = self._queue.get_nowait()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            raise asyncio.QueueEmpty
        return item

    def drain(self) -> list[Notification]:
        """Return everything buffered so far without waiting."""
        drained = []
        while True:
            try:
                drained.append(self.get_nowait())
            except asyncio.QueueEmpty:
                return drained

    def close(self) -> None:
        """Detach from the bus and wake any pending iterator."""
        if not self._closed:
            self._closed = True
            self._bus._unsubscribe(self)
            self._queue.put_nowait(_CLOSED)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Notification:
        try:
            return await self.get()
        except RuntimeError:
            raise StopAsyncIteration from None


class EventBus:
    """Carries item-admitted / item-completed / item-removed notifications.

    ``publish`` never waits on observers: subscriptions are fed through
    unbounded queues, and listener callbacks are scheduled on the running
    loop. Listener failures are logged and do not reach the publisher.
    """

    def __init__(self):
        self._subscriptions: list[Subscription] = []
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions) + len(self._listeners)

    def subscribe(self) -> Subscription:
        sub = Subscription(self)
        self._subscriptions.append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription) -> None:
        try:
            self._subscriptions.remove(sub)
        except ValueError:
            pass

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def publish(self, notification: Notification) -> None:
        logger.debug("Publishing %s for %s", notification.type.value, notification.id)
        for sub in list(self._subscriptions):
            sub._deliver(notification)

        if not self._listeners:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        for listener in list(self._listeners):
            if loop is None:
                # Sync host with no event loop: deliver inline
                self._invoke(listener, notification)
            else:
                loop.call_soon(self._invoke, listener, notification)

    def _invoke(self, listener: Listener, notification: Notification) -> None:
        try:
            result = listener(notification)
        except Exception as e:
            logger.exception("Listener %r failed on %s: %s",
                             listener, notification.type.value, e)
            return
        if inspect.isawaitable(result):
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                if inspect.iscoroutine(result):
                    result.close()
                logger.warning("Async listener %r skipped on %s: no running event loop",
                               listener, notification.type.value)
                return
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_listener_done)

    def _on_listener_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Async listener failed: %s", exc)

    async def aclose(self) -> None:
        """Close all subscriptions and cancel in-flight async listeners."""
        for sub in list(self._subscriptions):
            sub.close()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
