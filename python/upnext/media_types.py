"""Media type registry.

Every media type (Movie, TV, Album, Book, VideoGame, Podcast) is described
once here; the queue engine and the media cache dispatch on the descriptor
instead of carrying one code path per type.
"""

from dataclasses import dataclass
from enum import Enum

from upnext.db.models import Album, Book, MediaRecordMixin, Movie, Podcast, TVShow, VideoGame
from upnext.errors import ApiErrorCode, InvalidRequestError
from upnext.schemas.media import (
    AlbumPayload,
    BookPayload,
    MediaPayload,
    MoviePayload,
    PodcastPayload,
    TVPayload,
    VideoGamePayload,
)


class MediaType(str, Enum):
    """The media type discriminator stored on every queue."""

    MOVIE = "Movie"
    TV = "TV"
    ALBUM = "Album"
    BOOK = "Book"
    VIDEO_GAME = "VideoGame"
    PODCAST = "Podcast"


@dataclass(frozen=True)
class MediaTypeDescriptor:
    """Static facts about one media type.

    Attributes:
        media_type: The enum member.
        label: Singular noun used in messages ("video game").
        plural: Plural noun used in messages ("video games").
        media: The queue `media` discriminator naming the cache collection.
        model: ORM model of the cache table.
        payload_schema: Pydantic schema of the cached record.
    """

    media_type: MediaType
    label: str
    plural: str
    media: str
    model: type[MediaRecordMixin]
    payload_schema: type[MediaPayload]

    @property
    def name(self) -> str:
        return self.media_type.value

    @property
    def table_name(self) -> str:
        return self.model.__tablename__  # type: ignore[attr-defined]


MEDIA_TYPES: dict[MediaType, MediaTypeDescriptor] = {
    MediaType.MOVIE: MediaTypeDescriptor(
        MediaType.MOVIE, "movie", "movies", "MovieModel", Movie, MoviePayload
    ),
    MediaType.TV: MediaTypeDescriptor(MediaType.TV, "TV", "TV shows", "TVModel", TVShow, TVPayload),
    MediaType.ALBUM: MediaTypeDescriptor(
        MediaType.ALBUM, "album", "albums", "AlbumModel", Album, AlbumPayload
    ),
    MediaType.BOOK: MediaTypeDescriptor(
        MediaType.BOOK, "book", "books", "BookModel", Book, BookPayload
    ),
    MediaType.VIDEO_GAME: MediaTypeDescriptor(
        MediaType.VIDEO_GAME,
        "video game",
        "video games",
        "VideoGameModel",
        VideoGame,
        VideoGamePayload,
    ),
    MediaType.PODCAST: MediaTypeDescriptor(
        MediaType.PODCAST, "podcast", "podcasts", "PodcastModel", Podcast, PodcastPayload
    ),
}


def parse_media_type(value: "MediaType | str") -> MediaType:
    """Parse a media type literal, rejecting anything outside the six kinds.

    Raises:
        InvalidRequestError: If value is not a known media type.
    """
    if isinstance(value, MediaType):
        return value
    try:
        return MediaType(value)
    except ValueError:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_MEDIA_TYPE, f"Invalid media type: {value}"
        ) from None


def get_descriptor(value: "MediaType | str") -> MediaTypeDescriptor:
    """Look up the descriptor for a media type (enum or literal string)."""
    return MEDIA_TYPES[parse_media_type(value)]


def all_descriptors() -> list[MediaTypeDescriptor]:
    """All descriptors in canonical order."""
    return list(MEDIA_TYPES.values())
