"""Media cache routes.

IMPORTANT: /media/{media_type}/popular must be registered BEFORE
/media/{media_type}/{media_id}.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from upnext.api.deps import get_db, media_type_path
from upnext.media_types import MediaType
from upnext.responses import result_response
from upnext.services import media_cache

router = APIRouter()


@router.get("/media/{media_type}/popular")
def list_popular_media(
    media_type: Annotated[MediaType, Depends(media_type_path)],
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int | None, Query(ge=1, le=50)] = None,
) -> dict:
    """Most queued records of a media type, by num_queues descending."""
    return result_response(media_cache.retrieve_popular_media(db, media_type, limit))


@router.get("/media/{media_type}/{media_id}")
def get_media(
    media_type: Annotated[MediaType, Depends(media_type_path)],
    media_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """A single cached media record."""
    return result_response(media_cache.get_media(db, media_type, media_id))
