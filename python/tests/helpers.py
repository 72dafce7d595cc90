"""Test helpers for common setup and assertions.

Provides:
- Queue / user / group creation through the real services
- Direct reads of queue buckets and media counters
"""

from sqlalchemy import text
from sqlalchemy.orm import Session

from upnext.media_types import get_descriptor
from upnext.schemas.group import GroupOut
from upnext.schemas.queue import QueueOut
from upnext.services import groups, queues, users


def create_queue(
    db: Session, media_type: str = "Movie", owner: str | list[str] = "alice", group_id=None
) -> QueueOut:
    """Create a queue through the engine and return it (fails the test on error)."""
    result = queues.create_queue(db, media_type, owner, group_id)
    assert result.ok, result.error
    return result.value


def create_user(db: Session, username: str = "alice"):
    """Sign up a user (creates the six personal queues)."""
    return users.sign_up_user(db, username)


def create_group(db: Session, name: str = "Movie Night", creator: str = "alice") -> GroupOut:
    """Sign up the creator if needed and create a group."""
    if not users.user_exists(db, creator):
        users.sign_up_user(db, creator)
    return groups.create_group(db, name, creator)


def num_queues(db: Session, media_type: str, media_id: str) -> int | None:
    """Current num_queues of a cached record, or None if it is not cached."""
    table = get_descriptor(media_type).table_name
    row = db.execute(
        text(f"SELECT num_queues FROM {table} WHERE id = :id"), {"id": media_id}
    ).fetchone()
    return row[0] if row is not None else None


def count_rows(db: Session, table: str, **filters) -> int:
    """COUNT(*) over a table with equality filters."""
    where = " AND ".join(f"{column} = :{column}" for column in filters) or "1 = 1"
    return db.execute(text(f"SELECT COUNT(*) FROM {table} WHERE {where}"), filters).scalar()


def group_queue(db: Session, media_type: str, group_id: str) -> QueueOut:
    """Load a group's queue of one media type."""
    row = db.execute(
        text("SELECT id FROM queues WHERE media_type = :media_type AND group_id = :group_id"),
        {"media_type": media_type, "group_id": group_id},
    ).fetchone()
    assert row is not None, f"no {media_type} queue for group {group_id}"
    result = queues.get_queue_by_id(db, row[0])
    assert result.ok, result.error
    return result.value
