"""Upload queue schemas — inbound descriptors, notifications, view snapshot."""

from __future__ import annotations

from enum import Enum
from typing import Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from queuejuice.models.queue_item import Phase, QueueItem
from queuejuice.utils.formatting import format_size


class FileDescriptor(BaseModel):
    """A file delivered by the drop/pick surface."""
    model_config = ConfigDict(frozen=True)

    name: str
    size: int = Field(ge=0)
    mime_type: str = Field(
        default="",
        validation_alias=AliasChoices("mime_type", "mimeType", "type"),
    )


class FilesSubmitted(BaseModel):
    files: list[FileDescriptor]


class NotificationType(str, Enum):
    ITEM_ADMITTED = "item-admitted"
    ITEM_COMPLETED = "item-completed"
    ITEM_REMOVED = "item-removed"


class ItemAdmitted(BaseModel):
    type: Literal[NotificationType.ITEM_ADMITTED] = NotificationType.ITEM_ADMITTED
    id: str
    name: str
    size: int
    mime_type: str
    target_chunks: int


class ItemCompleted(BaseModel):
    type: Literal[NotificationType.ITEM_COMPLETED] = NotificationType.ITEM_COMPLETED
    id: str
    completed_chunks: int


class ItemRemoved(BaseModel):
    type: Literal[NotificationType.ITEM_REMOVED] = NotificationType.ITEM_REMOVED
    id: str
    name: str
    user_initiated: bool = False


Notification = Union[ItemAdmitted, ItemCompleted, ItemRemoved]


class QueueItemView(BaseModel):
    """One row of the queue as the view layer renders it."""
    id: str
    name: str
    size: int
    size_label: str
    mime_type: str
    target_chunks: int
    completed_chunks: int
    progress_percent: float
    phase: Phase
    status_text: str
    is_complete: bool
    is_exiting: bool

    @classmethod
    def from_item(cls, item: QueueItem) -> "QueueItemView":
        return cls(
            id=item.id,
            name=item.name,
            size=item.size,
            size_label=format_size(item.size),
            mime_type=item.mime_type,
            target_chunks=item.target_chunks,
            completed_chunks=item.completed_chunks,
            progress_percent=item.progress_percent,
            phase=item.phase,
            status_text=item.status_text,
            is_complete=item.is_complete,
            is_exiting=item.is_exiting,
        )


class QueueSnapshot(BaseModel):
    """Ordered queue contents plus display options."""
    items: list[QueueItemView] = []
    count: int = 0
    empty_message: str
    auto_scroll_on_change: bool = True


class RemoveResponse(BaseModel):
    id: str
    accepted: bool


class ClearResponse(BaseModel):
    cleared: int
