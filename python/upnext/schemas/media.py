"""Media payload schemas, one per media type.

Payloads arrive from the external API adapters in their normalized form and
are cached as-is on first enqueue. Field names accept both snake_case and
the adapters' camelCase (``releaseDate``), and the id is accepted as
``_id`` or ``id``.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "MediaPayload",
    "MoviePayload",
    "TVPayload",
    "AlbumPayload",
    "BookPayload",
    "VideoGamePayload",
    "PodcastPayload",
]


class MediaPayload(BaseModel):
    """Fields every cached media record carries."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        from_attributes=True,
    )

    id: str = Field(..., alias="_id", min_length=1, description="External-API media id")
    title: str | None = None
    source_url: str | None = None
    num_queues: int = Field(default=0, ge=0, description="Queues referencing this record")

    def cache_values(self) -> dict:
        """Column values for a fresh cache row (counter always starts at zero)."""
        return self.model_dump(exclude={"num_queues"})


class MoviePayload(MediaPayload):
    director: str | None = None
    description: str | None = None
    release_date: str | None = None
    poster_path: str | None = None
    cast: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    runtime: int | None = None


class TVPayload(MediaPayload):
    description: str | None = None
    poster_path: str | None = None
    first_air_date: str | None = None
    last_air_date: str | None = None
    cast: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    creator: str | None = None
    total_episodes: int | None = None
    total_seasons: int | None = None


class AlbumPayload(MediaPayload):
    artist: str | None = None
    label: str | None = None
    cover_art: str | None = None
    release_date: str | None = None
    tracks: list[str] = Field(default_factory=list)


class BookPayload(MediaPayload):
    authors: list[str] = Field(default_factory=list)
    synopsis: str | None = None
    publisher: str | None = None
    cover_art: str | None = None
    date_published: str | None = None
    pages: int | None = None


class VideoGamePayload(MediaPayload):
    summary: str | None = None
    release_date: str | None = None
    cover_art: str | None = None
    genres: list[str] = Field(default_factory=list)
    companies: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)


class PodcastPayload(MediaPayload):
    description: str | None = None
    cover_art: str | None = None
    publisher: str | None = None
    latest_episode_date: str | None = None
    episodes: list[str] = Field(default_factory=list)
