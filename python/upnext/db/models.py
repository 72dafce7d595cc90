"""SQLAlchemy ORM models for UpNext.

Defines all database tables using SQLAlchemy 2.x declarative patterns.
Column types are portable between PostgreSQL and SQLite; enumerations are
stored as text guarded by CHECK constraints.

The queue document (users set, current/history arrays) is normalized into
child tables so every set-level operation is a single statement:
- queue_users: one row per (queue, username)
- queue_items: one row per (queue, media_id); the unique key means a media
  id sits in at most one bucket of a queue.
Row id order is insertion order for every set-like child table.
"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Enums
# =============================================================================


class QueueBucket(str, PyEnum):
    """The two ordered buckets of a queue."""

    current = "current"
    history = "history"


class InvitationStatus(str, PyEnum):
    """Group invitation lifecycle states."""

    pending = "pending"
    accepted = "accepted"
    declined = "declined"


# =============================================================================
# Accounts and groups
# =============================================================================


class User(Base):
    """User account. Queues and groups reference users by username."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(Text)
    first_name: Mapped[str | None] = mapped_column(Text)
    last_name: Mapped[str | None] = mapped_column(Text)
    date_joined: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Group(Base):
    """A named set of members sharing one queue per media type."""

    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    creator: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("length(name) BETWEEN 1 AND 100", name="ck_groups_name_length"),
    )

    members: Mapped[list["GroupMember"]] = relationship(
        "GroupMember", back_populates="group", cascade="all, delete-orphan"
    )


class GroupMember(Base):
    """Group membership (the group's `members` set)."""

    __tablename__ = "group_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[str] = mapped_column(
        Text, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    username: Mapped[str] = mapped_column(Text, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("group_id", "username", name="uq_group_members_group_username"),
        Index("idx_group_members_username", "username"),
    )

    group: Mapped["Group"] = relationship("Group", back_populates="members")


class Invitation(Base):
    """Invitation for a user to join a group."""

    __tablename__ = "invitations"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    group_id: Mapped[str] = mapped_column(
        Text, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    invited_by: Mapped[str] = mapped_column(Text, nullable=False)
    invited_user: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("'pending'")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'accepted', 'declined')",
            name="ck_invitations_status",
        ),
        Index("idx_invitations_invited_user_status", "invited_user", "status"),
        Index("idx_invitations_group_status", "group_id", "status"),
    )


# =============================================================================
# Queues
# =============================================================================


class Queue(Base):
    """One queue per (media type, owner). group_id NULL means a personal queue."""

    __tablename__ = "queues"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    media_type: Mapped[str] = mapped_column(Text, nullable=False)
    media: Mapped[str] = mapped_column(Text, nullable=False)
    group_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "media_type IN ('Movie', 'TV', 'Album', 'Book', 'VideoGame', 'Podcast')",
            name="ck_queues_media_type",
        ),
        Index("idx_queues_media_type_group", "media_type", "group_id"),
    )

    users: Mapped[list["QueueUser"]] = relationship(
        "QueueUser", back_populates="queue", cascade="all, delete-orphan"
    )
    items: Mapped[list["QueueItem"]] = relationship(
        "QueueItem", back_populates="queue", cascade="all, delete-orphan"
    )


class QueueUser(Base):
    """A username in a queue's `users` set."""

    __tablename__ = "queue_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    queue_id: Mapped[str] = mapped_column(
        Text, ForeignKey("queues.id", ondelete="CASCADE"), nullable=False
    )
    username: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint("queue_id", "username", name="uq_queue_users_queue_username"),
        Index("idx_queue_users_username", "username"),
    )

    queue: Mapped["Queue"] = relationship("Queue", back_populates="users")


class QueueItem(Base):
    """A media id in a queue's current or history bucket."""

    __tablename__ = "queue_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    queue_id: Mapped[str] = mapped_column(
        Text, ForeignKey("queues.id", ondelete="CASCADE"), nullable=False
    )
    media_id: Mapped[str] = mapped_column(Text, nullable=False)
    bucket: Mapped[str] = mapped_column(Text, nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("queue_id", "media_id", name="uq_queue_items_queue_media"),
        CheckConstraint("bucket IN ('current', 'history')", name="ck_queue_items_bucket"),
        Index("idx_queue_items_media", "media_id"),
    )

    queue: Mapped["Queue"] = relationship("Queue", back_populates="items")


# =============================================================================
# Media cache (one table per media type)
# =============================================================================


class MediaRecordMixin:
    """Columns shared by every cached media table.

    `id` is the external-API id; `num_queues` counts the queues whose
    current or history references the record.
    """

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str | None] = mapped_column(Text)
    source_url: Mapped[str | None] = mapped_column(Text)
    num_queues: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    cached_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Movie(MediaRecordMixin, Base):
    __tablename__ = "movies"

    director: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    release_date: Mapped[str | None] = mapped_column(Text)
    poster_path: Mapped[str | None] = mapped_column(Text)
    cast: Mapped[list | None] = mapped_column(JSON)
    genres: Mapped[list | None] = mapped_column(JSON)
    runtime: Mapped[int | None] = mapped_column(Integer)


class TVShow(MediaRecordMixin, Base):
    __tablename__ = "tv_shows"

    description: Mapped[str | None] = mapped_column(Text)
    poster_path: Mapped[str | None] = mapped_column(Text)
    first_air_date: Mapped[str | None] = mapped_column(Text)
    last_air_date: Mapped[str | None] = mapped_column(Text)
    cast: Mapped[list | None] = mapped_column(JSON)
    genres: Mapped[list | None] = mapped_column(JSON)
    creator: Mapped[str | None] = mapped_column(Text)
    total_episodes: Mapped[int | None] = mapped_column(Integer)
    total_seasons: Mapped[int | None] = mapped_column(Integer)


class Album(MediaRecordMixin, Base):
    __tablename__ = "albums"

    artist: Mapped[str | None] = mapped_column(Text)
    label: Mapped[str | None] = mapped_column(Text)
    cover_art: Mapped[str | None] = mapped_column(Text)
    release_date: Mapped[str | None] = mapped_column(Text)
    tracks: Mapped[list | None] = mapped_column(JSON)


class Book(MediaRecordMixin, Base):
    __tablename__ = "books"

    authors: Mapped[list | None] = mapped_column(JSON)
    synopsis: Mapped[str | None] = mapped_column(Text)
    publisher: Mapped[str | None] = mapped_column(Text)
    cover_art: Mapped[str | None] = mapped_column(Text)
    date_published: Mapped[str | None] = mapped_column(Text)
    pages: Mapped[int | None] = mapped_column(Integer)


class VideoGame(MediaRecordMixin, Base):
    __tablename__ = "video_games"

    summary: Mapped[str | None] = mapped_column(Text)
    release_date: Mapped[str | None] = mapped_column(Text)
    cover_art: Mapped[str | None] = mapped_column(Text)
    genres: Mapped[list | None] = mapped_column(JSON)
    companies: Mapped[list | None] = mapped_column(JSON)
    platforms: Mapped[list | None] = mapped_column(JSON)


class Podcast(MediaRecordMixin, Base):
    __tablename__ = "podcasts"

    description: Mapped[str | None] = mapped_column(Text)
    cover_art: Mapped[str | None] = mapped_column(Text)
    publisher: Mapped[str | None] = mapped_column(Text)
    latest_episode_date: Mapped[str | None] = mapped_column(Text)
    episodes: Mapped[list | None] = mapped_column(JSON)
