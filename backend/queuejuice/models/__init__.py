"""Engine data models for QueueJuice."""

from queuejuice.models.queue_item import Phase, QueueItem, advance, mark_exiting

__all__ = [
    "Phase",
    "QueueItem",
    "advance",
    "mark_exiting",
]
