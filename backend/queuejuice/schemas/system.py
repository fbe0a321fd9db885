"""Service status schemas."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    service: str = "queuejuice"
    simulate_transfers: bool = True
    queued_items: int = 0
