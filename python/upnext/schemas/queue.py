"""Queue-related Pydantic schemas."""

from typing import Any, Literal

from pydantic import BaseModel, Field

QueueBucketValue = Literal["current", "history"]


class MoveMediaRequest(BaseModel):
    """Request body for moving media from current to history."""

    media_ids: list[str] = Field(..., min_length=1, description="Media ids to mark as consumed")


class QueueOut(BaseModel):
    """Response schema for a queue.

    `current` and `history` are ordered media ids. When the queue is
    populated, `current_media` / `history_media` hold the cached records in
    the same order (ids missing from the cache are skipped).
    """

    id: str
    media_type: str
    media: str
    users: list[str]
    group: str | None = None
    current: list[str] = Field(default_factory=list)
    history: list[str] = Field(default_factory=list)
    current_media: list[dict[str, Any]] | None = None
    history_media: list[dict[str, Any]] | None = None


class DeleteQueuesOut(BaseModel):
    """Result of a bulk queue delete."""

    deleted_count: int
