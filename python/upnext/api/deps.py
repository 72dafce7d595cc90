"""FastAPI dependencies for route handlers."""

from fastapi import Path

from upnext.db.session import get_db, get_session_factory
from upnext.media_types import MediaType, parse_media_type

__all__ = ["get_db", "get_session_factory", "media_type_path"]


def media_type_path(
    media_type: str = Path(..., description="Movie, TV, Album, Book, VideoGame or Podcast"),
) -> MediaType:
    """Parse the `{media_type}` path segment.

    Unknown values raise InvalidRequestError, rendered as a 400 envelope.
    """
    return parse_media_type(media_type)
