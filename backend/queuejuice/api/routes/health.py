"""Health check."""

from fastapi import APIRouter, Depends

from queuejuice import __version__
from queuejuice.api.deps import get_bridge
from queuejuice.schemas.system import HealthResponse
from queuejuice.services.event_bridge import EventBridge

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(bridge: EventBridge = Depends(get_bridge)):
    """Lightweight liveness check with queue size."""
    return HealthResponse(
        version=__version__,
        simulate_transfers=bridge.queue.options.simulate_transfers,
        queued_items=len(bridge.queue),
    )


@router.get("/ping")
async def ping():
    """Ultra-lightweight ping."""
    return {"status": "ok"}
