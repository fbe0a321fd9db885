"""Test fixtures — fast event bridge and FastAPI test client."""

import random

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from queuejuice.api.deps import get_bridge
from queuejuice.config import QueueOptions
from queuejuice.main import create_app
from queuejuice.services.event_bridge import EventBridge

TICK_INTERVAL = 0.001
EXIT_GRACE = 0.02


@pytest.fixture
def options():
    """Queue options for the bridge fixture; override per module if needed."""
    return QueueOptions(chunk_range=(2, 4))


@pytest_asyncio.fixture
async def bridge(options):
    """Event bridge with millisecond ticks and a short exit grace period."""
    b = EventBridge(
        options,
        tick_interval=TICK_INTERVAL,
        exit_grace_period=EXIT_GRACE,
        rng=random.Random(1234),
    )
    yield b
    await b.shutdown()


@pytest_asyncio.fixture
async def client(bridge):
    """Async test client with the bridge dependency overridden."""
    app = create_app()
    app.dependency_overrides[get_bridge] = lambda: bridge

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
