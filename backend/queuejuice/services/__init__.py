"""Engine services — singleton registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from queuejuice.config import settings

if TYPE_CHECKING:
    from queuejuice.services.event_bridge import EventBridge

logger = logging.getLogger(__name__)

_event_bridge: EventBridge | None = None


async def init_services() -> None:
    """Create the event bridge (and with it the upload queue and bus)."""
    global _event_bridge

    from queuejuice.services.event_bridge import EventBridge

    _event_bridge = EventBridge(settings.queue_options())
    options = _event_bridge.queue.options
    logger.info(
        "Upload queue ready (simulate=%s, chunks=%d-%d, tick=%dms, grace=%dms)",
        options.simulate_transfers,
        *options.chunk_range,
        settings.transfer_tick_interval_ms,
        settings.exit_grace_period_ms,
    )


async def shutdown_services() -> None:
    """Cancel running transfer clocks and close subscriptions."""
    global _event_bridge
    if _event_bridge:
        await _event_bridge.shutdown()
        _event_bridge = None


def get_event_bridge() -> EventBridge:
    if _event_bridge is None:
        raise RuntimeError("Services not initialized, call init_services() first")
    return _event_bridge
