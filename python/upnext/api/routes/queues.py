"""Queue routes.

Routes are transport-only:
- Parse path, query and body
- Call exactly one queue engine function
- Return result_response(...), which raises the Result's ApiError on failure

IMPORTANT: /queues/{media_type}/top must be registered BEFORE
/queues/{media_type}/{queue_id} to prevent "top" being captured as an id.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from upnext.api.deps import get_db, media_type_path
from upnext.media_types import MediaType
from upnext.responses import result_response
from upnext.schemas.queue import MoveMediaRequest, QueueBucketValue
from upnext.services import queues as queues_service

router = APIRouter()


@router.get("/queues/{media_type}")
def get_queue(
    media_type: Annotated[MediaType, Depends(media_type_path)],
    username: Annotated[str, Query(min_length=1)],
    db: Annotated[Session, Depends(get_db)],
    group_id: Annotated[str | None, Query(min_length=1)] = None,
) -> dict:
    """Get the populated queue of a media type for a user (personal when no group_id)."""
    result = queues_service.get_queue_by_media_type_and_username_and_group(
        db, media_type, username, group_id
    )
    return result_response(result)


@router.get("/queues/{media_type}/top")
def get_queue_preview(
    media_type: Annotated[MediaType, Depends(media_type_path)],
    username: Annotated[str, Query(min_length=1)],
    db: Annotated[Session, Depends(get_db)],
    bucket: Annotated[QueueBucketValue, Query()] = "current",
    group_id: Annotated[str | None, Query(min_length=1)] = None,
) -> dict:
    """First items of the current or history bucket, populated."""
    if bucket == "history":
        result = queues_service.retrieve_top3_in_personal_history(
            db, media_type, username, group_id
        )
    else:
        result = queues_service.retrieve_top3_in_current_queue(db, media_type, username, group_id)
    return result_response(result)


@router.get("/queues/{media_type}/{queue_id}")
def get_queue_by_id(
    media_type: Annotated[MediaType, Depends(media_type_path)],
    queue_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a populated queue by id; the queue must be of `media_type`."""
    return result_response(queues_service.get_queue_by_id(db, queue_id, media_type))


@router.post("/queues/{media_type}/{queue_id}/media")
def add_media(
    media_type: Annotated[MediaType, Depends(media_type_path)],
    queue_id: str,
    payload: Annotated[dict[str, Any], Body(...)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Enqueue a media item (normalized external-API payload with `_id`)."""
    result = queues_service.add_media_to_queue(db, media_type, queue_id, payload)
    return result_response(result)


@router.post("/queues/{media_type}/{queue_id}/history")
def move_to_history(
    media_type: Annotated[MediaType, Depends(media_type_path)],
    queue_id: str,
    body: MoveMediaRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Move media ids from current to history."""
    result = queues_service.move_media_from_current_to_history(
        db, media_type, queue_id, body.media_ids
    )
    return result_response(result)


@router.delete("/queues/{media_type}/{queue_id}/current/{media_id}")
def delete_from_current(
    media_type: Annotated[MediaType, Depends(media_type_path)],
    queue_id: str,
    media_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Remove a media id from current."""
    result = queues_service.delete_media_from_current_queue(db, media_type, queue_id, media_id)
    return result_response(result)


@router.delete("/queues/{media_type}/{queue_id}/history/{media_id}")
def delete_from_history(
    media_type: Annotated[MediaType, Depends(media_type_path)],
    queue_id: str,
    media_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Remove a media id from history."""
    result = queues_service.delete_media_from_history_queue(db, media_type, queue_id, media_id)
    return result_response(result)
