"""Queue item state — one file's simulated transfer and its lifecycle."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    INITIALIZING = "initializing"
    TRANSFERRING = "transferring"
    COMPLETE = "complete"
    EXITING = "exiting"


# Phases that may still receive ticks
ACTIVE_PHASES = frozenset({Phase.INITIALIZING, Phase.TRANSFERRING})


def describe_status(phase: Phase, completed_chunks: int, target_chunks: int) -> str:
    """Status line shown under the progress bar."""
    if phase == Phase.INITIALIZING:
        return "Initializing..."
    if phase == Phase.COMPLETE:
        return "Upload Complete"
    return f"Uploading chunk {min(completed_chunks, target_chunks)}/{target_chunks}"


@dataclass(frozen=True)
class QueueItem:
    """Immutable snapshot of a queued upload. Transitions return new items."""

    name: str
    size: int
    mime_type: str
    target_chunks: int
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    completed_chunks: int = 0
    phase: Phase = Phase.INITIALIZING
    status_text: str = "Initializing..."

    @property
    def progress_ratio(self) -> float:
        return min(self.completed_chunks / self.target_chunks, 1.0)

    @property
    def progress_percent(self) -> float:
        return self.progress_ratio * 100

    @property
    def is_active(self) -> bool:
        return self.phase in ACTIVE_PHASES

    @property
    def is_complete(self) -> bool:
        return self.phase == Phase.COMPLETE

    @property
    def is_exiting(self) -> bool:
        return self.phase == Phase.EXITING


def advance(item: QueueItem, completed_chunks: int, is_complete: bool) -> QueueItem:
    """Apply one tick. Items already complete or exiting are returned as-is."""
    if not item.is_active:
        logger.debug("Ignoring tick for %s in phase %s", item.id, item.phase.value)
        return item

    completed = max(item.completed_chunks, min(completed_chunks, item.target_chunks))
    phase = Phase.COMPLETE if is_complete else Phase.TRANSFERRING
    return replace(
        item,
        completed_chunks=completed,
        phase=phase,
        status_text=describe_status(phase, completed, item.target_chunks),
    )


def mark_exiting(item: QueueItem) -> QueueItem:
    return replace(item, phase=Phase.EXITING)
