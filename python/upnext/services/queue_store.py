"""Queue store.

Persistence for the polymorphic queue collection: one queue per
(media type, owner), where the owner is a single user (group_id NULL) or a
group's member list.

Every mutation here is one statement whose effect is enforced by the
database:
- add-to-set on users / items is INSERT ... ON CONFLICT DO NOTHING
- pull is a DELETE
- the (queue_id, media_id) unique key keeps a media id in at most one
  bucket, so duplicate membership cannot be written even by racing callers

Nothing in this module commits. Callers wrap mutations in
``transaction(db)``.
"""

from dataclasses import dataclass

from sqlalchemy import bindparam, text
from sqlalchemy.orm import Session

from upnext.db.models import QueueBucket
from upnext.media_types import MediaType, MediaTypeDescriptor
from upnext.schemas.queue import QueueOut
from upnext.services import media_cache


@dataclass(frozen=True)
class QueueFilter:
    """Selects queues by any combination of id, media type, member and group.

    `group_id=None` means "personal queues only" unless `any_group` is set,
    in which case the group column is not constrained at all.
    """

    queue_id: str | None = None
    media_type: MediaType | None = None
    username: str | None = None
    group_id: str | None = None
    any_group: bool = False

    @classmethod
    def by_id(cls, queue_id: str) -> "QueueFilter":
        return cls(queue_id=queue_id, any_group=True)

    @classmethod
    def for_owner(
        cls, media_type: MediaType, username: str, group_id: str | None
    ) -> "QueueFilter":
        return cls(media_type=media_type, username=username, group_id=group_id)

    @classmethod
    def for_group(cls, media_type: MediaType, group_id: str) -> "QueueFilter":
        return cls(media_type=media_type, group_id=group_id)

    def where_clause(self) -> tuple[str, dict]:
        """Render as a SQL condition over alias `q` plus bind parameters."""
        clauses: list[str] = []
        params: dict = {}

        if self.queue_id is not None:
            clauses.append("q.id = :queue_id")
            params["queue_id"] = self.queue_id
        if self.media_type is not None:
            clauses.append("q.media_type = :media_type")
            params["media_type"] = self.media_type.value
        if self.username is not None:
            clauses.append(
                "EXISTS (SELECT 1 FROM queue_users qu"
                " WHERE qu.queue_id = q.id AND qu.username = :username)"
            )
            params["username"] = self.username
        if not self.any_group:
            if self.group_id is None:
                clauses.append("q.group_id IS NULL")
            else:
                clauses.append("q.group_id = :group_id")
                params["group_id"] = self.group_id

        return " AND ".join(clauses) or "1 = 1", params


# =============================================================================
# Create / read
# =============================================================================


def insert_queue(
    db: Session,
    queue_id: str,
    descriptor: MediaTypeDescriptor,
    usernames: list[str],
    group_id: str | None,
) -> None:
    """Write a new, empty queue and its users set."""
    db.execute(
        text("""
            INSERT INTO queues (id, media_type, media, group_id)
            VALUES (:id, :media_type, :media, :group_id)
        """),
        {
            "id": queue_id,
            "media_type": descriptor.name,
            "media": descriptor.media,
            "group_id": group_id,
        },
    )
    for username in usernames:
        add_user(db, queue_id, username)


def find_queue_ids(db: Session, queue_filter: QueueFilter) -> list[str]:
    """Ids of every queue matching the filter, oldest first."""
    where, params = queue_filter.where_clause()
    rows = db.execute(
        text(f"SELECT q.id FROM queues q WHERE {where} ORDER BY q.created_at ASC, q.id ASC"),
        params,
    ).fetchall()
    return [row[0] for row in rows]


def load_queue(db: Session, queue_id: str, populate: bool = False) -> QueueOut | None:
    """Assemble the queue document for one id.

    Args:
        db: Database session.
        queue_id: Queue id.
        populate: Resolve current/history ids against the media cache.

    Returns:
        The queue, or None if it does not exist.
    """
    row = db.execute(
        text("SELECT id, media_type, media, group_id FROM queues WHERE id = :id"),
        {"id": queue_id},
    ).fetchone()
    if row is None:
        return None

    users = [
        r[0]
        for r in db.execute(
            text("SELECT username FROM queue_users WHERE queue_id = :id ORDER BY id ASC"),
            {"id": queue_id},
        ).fetchall()
    ]

    current: list[str] = []
    history: list[str] = []
    for media_id, bucket in db.execute(
        text("SELECT media_id, bucket FROM queue_items WHERE queue_id = :id ORDER BY id ASC"),
        {"id": queue_id},
    ).fetchall():
        (current if bucket == QueueBucket.current.value else history).append(media_id)

    queue = QueueOut(
        id=row[0],
        media_type=row[1],
        media=row[2],
        group=row[3],
        users=users,
        current=current,
        history=history,
    )
    if populate:
        queue = populate_queue(db, queue)
    return queue


def populate_queue(db: Session, queue: QueueOut) -> QueueOut:
    """Attach cached media records for the queue's current and history ids."""
    cached = media_cache.find_many(db, queue.media_type, queue.current + queue.history)
    return queue.model_copy(
        update={
            "current_media": [
                cached[mid].model_dump(mode="json") for mid in queue.current if mid in cached
            ],
            "history_media": [
                cached[mid].model_dump(mode="json") for mid in queue.history if mid in cached
            ],
        }
    )


def find_one(db: Session, queue_filter: QueueFilter, populate: bool = False) -> QueueOut | None:
    """The oldest queue matching the filter, or None."""
    ids = find_queue_ids(db, queue_filter)
    if not ids:
        return None
    return load_queue(db, ids[0], populate=populate)


# =============================================================================
# Set mutations
# =============================================================================


def add_user(db: Session, queue_id: str, username: str) -> bool:
    """Add a username to a queue's users set. Returns True if it was new."""
    result = db.execute(
        text("""
            INSERT INTO queue_users (queue_id, username)
            VALUES (:queue_id, :username)
            ON CONFLICT (queue_id, username) DO NOTHING
        """),
        {"queue_id": queue_id, "username": username},
    )
    return result.rowcount == 1


def pull_user(db: Session, queue_id: str, username: str) -> bool:
    """Remove a username from a queue's users set. Returns True if it was present."""
    result = db.execute(
        text("DELETE FROM queue_users WHERE queue_id = :queue_id AND username = :username"),
        {"queue_id": queue_id, "username": username},
    )
    return result.rowcount == 1


def add_item(
    db: Session, queue_id: str, media_id: str, bucket: QueueBucket = QueueBucket.current
) -> bool:
    """Append a media id to a bucket unless the queue already holds it anywhere.

    Returns:
        True if the id was appended, False if the queue already had it
        (in either bucket).
    """
    result = db.execute(
        text("""
            INSERT INTO queue_items (queue_id, media_id, bucket)
            VALUES (:queue_id, :media_id, :bucket)
            ON CONFLICT (queue_id, media_id) DO NOTHING
        """),
        {"queue_id": queue_id, "media_id": media_id, "bucket": bucket.value},
    )
    return result.rowcount == 1


def pull_item(db: Session, queue_id: str, media_id: str, bucket: QueueBucket) -> bool:
    """Remove a media id from one bucket. Returns True if it was there."""
    result = db.execute(
        text("""
            DELETE FROM queue_items
            WHERE queue_id = :queue_id AND media_id = :media_id AND bucket = :bucket
        """),
        {"queue_id": queue_id, "media_id": media_id, "bucket": bucket.value},
    )
    return result.rowcount == 1


def move_to_history(db: Session, queue_id: str, media_ids: list[str]) -> list[str]:
    """Pull ids out of current and append them to history.

    Ids not in current are ignored, and an id already in history stays
    where it is. Moved ids land at the end of history in the given order.
    Must run inside one transaction.

    Returns:
        The ids actually moved.
    """
    moved: list[str] = []
    for media_id in dict.fromkeys(media_ids):
        if pull_item(db, queue_id, media_id, QueueBucket.current):
            add_item(db, queue_id, media_id, QueueBucket.history)
            moved.append(media_id)
    return moved


def delete_many(db: Session, queue_filter: QueueFilter) -> int:
    """Delete every queue matching the filter with its users and items.

    Returns:
        Number of queues deleted.
    """
    queue_ids = find_queue_ids(db, queue_filter)
    if not queue_ids:
        return 0

    params = {"ids": queue_ids}
    for table in ("queue_items", "queue_users"):
        db.execute(
            text(f"DELETE FROM {table} WHERE queue_id IN :ids").bindparams(
                bindparam("ids", expanding=True)
            ),
            params,
        )
    result = db.execute(
        text("DELETE FROM queues WHERE id IN :ids").bindparams(bindparam("ids", expanding=True)),
        params,
    )
    return result.rowcount
