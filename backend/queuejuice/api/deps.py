"""FastAPI dependency injection — engine access."""

from __future__ import annotations

from queuejuice.services import get_event_bridge
from queuejuice.services.event_bridge import EventBridge


def get_bridge() -> EventBridge:
    """Resolve the running event bridge; tests override this dependency."""
    return get_event_bridge()
