"""Database module for UpNext.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from upnext.db.engine import create_db_engine, get_engine
from upnext.db.models import (
    Album,
    Base,
    Book,
    Group,
    GroupMember,
    Invitation,
    InvitationStatus,
    Movie,
    Podcast,
    Queue,
    QueueBucket,
    QueueItem,
    QueueUser,
    TVShow,
    User,
    VideoGame,
)
from upnext.db.session import get_db, session_scope, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "get_db",
    "session_scope",
    "transaction",
    # Base
    "Base",
    # Enums
    "QueueBucket",
    "InvitationStatus",
    # Models
    "User",
    "Group",
    "GroupMember",
    "Invitation",
    "Queue",
    "QueueUser",
    "QueueItem",
    # Media cache
    "Movie",
    "TVShow",
    "Album",
    "Book",
    "VideoGame",
    "Podcast",
]
