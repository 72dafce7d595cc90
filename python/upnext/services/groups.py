"""Group service layer.

A group owns one shared queue per media type whose `users` mirror the
group's members. Membership changes here are propagated to those queues
through the queue engine's fan-out / fan-in operations.

Routes may not contain domain logic or raw DB access - they must call these functions.
"""

from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.orm import Session

from upnext.db.session import transaction
from upnext.errors import (
    ApiErrorCode,
    InvalidRequestError,
    NotFoundError,
    QueueCreationError,
    UpstreamStoreError,
)
from upnext.logging import get_logger
from upnext.schemas.group import GroupOut
from upnext.services import queues
from upnext.services.users import get_user

logger = get_logger(__name__)


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name or len(name) > 100:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "Name must be 1-100 characters")
    return name


def _members(db: Session, group_id: str) -> list[str]:
    rows = db.execute(
        text("SELECT username FROM group_members WHERE group_id = :group_id ORDER BY id ASC"),
        {"group_id": group_id},
    ).fetchall()
    return [row[0] for row in rows]


def _is_member(db: Session, group_id: str, username: str) -> bool:
    row = db.execute(
        text("""
            SELECT 1 FROM group_members
            WHERE group_id = :group_id AND username = :username
        """),
        {"group_id": group_id, "username": username},
    ).fetchone()
    return row is not None


def _delete_group_rows(db: Session, group_id: str) -> None:
    for table in ("invitations", "group_members"):
        db.execute(text(f"DELETE FROM {table} WHERE group_id = :group_id"), {"group_id": group_id})
    db.execute(text("DELETE FROM groups WHERE id = :group_id"), {"group_id": group_id})


def get_group(db: Session, group_id: str) -> GroupOut:
    """Get a group with its members.

    Raises:
        NotFoundError: If the group does not exist.
    """
    row = db.execute(
        text("SELECT id, name, creator, created_at FROM groups WHERE id = :group_id"),
        {"group_id": group_id},
    ).fetchone()
    if row is None:
        raise NotFoundError(ApiErrorCode.E_GROUP_NOT_FOUND, "Group not found")

    return GroupOut(
        id=row[0],
        name=row[1],
        creator=row[2],
        members=_members(db, group_id),
        created_at=row[3],
    )


def create_group(db: Session, name: str, creator: str) -> GroupOut:
    """Create a group with its creator as sole member, plus its six queues.

    Args:
        db: Database session.
        name: Group name (trimmed, 1-100 characters).
        creator: Username of the creating user.

    Returns:
        The created group.

    Raises:
        InvalidRequestError: If name is invalid.
        NotFoundError: If the creator is not a user.
        QueueCreationError: If any group queue could not be created. The
            group and the queues already created are removed first.
    """
    name = _validate_name(name)
    get_user(db, creator)

    group_id = str(uuid4())
    with transaction(db):
        db.execute(
            text("INSERT INTO groups (id, name, creator) VALUES (:id, :name, :creator)"),
            {"id": group_id, "name": name, "creator": creator},
        )
        db.execute(
            text("INSERT INTO group_members (group_id, username) VALUES (:group_id, :username)"),
            {"group_id": group_id, "username": creator},
        )

    results = queues.create_all_queues(db, _members(db, group_id), group_id)
    failed = queues.failed_types(results)
    if failed:
        logger.error("group_queue_setup_failed", group_id=group_id, failed=failed)
        queues.delete_all_queues(db, group_id=group_id)
        with transaction(db):
            _delete_group_rows(db, group_id)
        raise QueueCreationError("Failed to create group and corresponding queues")

    logger.info("group_created", group_id=group_id, creator=creator)
    return get_group(db, group_id)


def list_groups(db: Session) -> list[GroupOut]:
    """All groups, oldest first."""
    rows = db.execute(text("SELECT id FROM groups ORDER BY created_at ASC, id ASC")).fetchall()
    return [get_group(db, row[0]) for row in rows]


def list_groups_for_user(db: Session, username: str) -> list[GroupOut]:
    """Groups the user is a member of, oldest first."""
    rows = db.execute(
        text("""
            SELECT g.id
            FROM groups g
            JOIN group_members gm ON gm.group_id = g.id
            WHERE gm.username = :username
            ORDER BY g.created_at ASC, g.id ASC
        """),
        {"username": username},
    ).fetchall()
    return [get_group(db, row[0]) for row in rows]


def rename_group(db: Session, group_id: str, name: str) -> GroupOut:
    """Rename a group.

    Raises:
        InvalidRequestError: If name is invalid.
        NotFoundError: If the group does not exist.
    """
    name = _validate_name(name)

    with transaction(db):
        result = db.execute(
            text("UPDATE groups SET name = :name WHERE id = :group_id"),
            {"name": name, "group_id": group_id},
        )
        if result.rowcount == 0:
            raise NotFoundError(ApiErrorCode.E_GROUP_NOT_FOUND, "Group not found")

    return get_group(db, group_id)


def add_member(db: Session, group_id: str, username: str) -> GroupOut:
    """Add a user to a group and to each of the group's queues.

    Adding an existing member is a no-op for the member list; the queue
    fan-out still runs so a previously missed queue catches up.

    Raises:
        NotFoundError: If the group or user does not exist.
        UpstreamStoreError: If some of the group queues could not be updated.
            The membership itself is kept.
    """
    get_group(db, group_id)
    get_user(db, username)

    with transaction(db):
        db.execute(
            text("""
                INSERT INTO group_members (group_id, username)
                VALUES (:group_id, :username)
                ON CONFLICT (group_id, username) DO NOTHING
            """),
            {"group_id": group_id, "username": username},
        )

    results = queues.add_user_to_all_group_queues(db, username, group_id)
    failed = queues.failed_types(results)
    if failed:
        raise UpstreamStoreError(
            f"Failed to add {username} to group queues: {', '.join(failed)}"
        )

    logger.info("group_member_added", group_id=group_id, username=username)
    return get_group(db, group_id)


def leave_group(db: Session, group_id: str, username: str) -> GroupOut:
    """Remove a member from a group and from each of the group's queues.

    The user's pending invitations to the group are removed as well. The
    group and its queues persist even when no members remain.

    Raises:
        NotFoundError: If the group does not exist or the user is not a member.
        UpstreamStoreError: If some of the group queues could not be updated.
    """
    get_group(db, group_id)
    if not _is_member(db, group_id, username):
        raise NotFoundError(ApiErrorCode.E_NOT_FOUND, "User is not a member of this group")

    with transaction(db):
        db.execute(
            text("DELETE FROM group_members WHERE group_id = :group_id AND username = :username"),
            {"group_id": group_id, "username": username},
        )
        db.execute(
            text("""
                DELETE FROM invitations
                WHERE group_id = :group_id AND invited_user = :username
                  AND status = 'pending'
            """),
            {"group_id": group_id, "username": username},
        )

    results = queues.remove_user_from_all_group_queues(db, username, group_id)
    failed = queues.failed_types(results)
    if failed:
        raise UpstreamStoreError(
            f"Failed to remove {username} from group queues: {', '.join(failed)}"
        )

    logger.info("group_member_left", group_id=group_id, username=username)
    return get_group(db, group_id)


def delete_group(db: Session, group_id: str) -> GroupOut:
    """Delete a group, its six queues, its invitations and its memberships.

    Raises:
        NotFoundError: If the group does not exist.
        ApiError: E_STORE_UNAVAILABLE if the queues could not be removed; the
            group is kept in that case.
    """
    group = get_group(db, group_id)

    queues.delete_all_queues(db, group_id=group_id).unwrap()

    with transaction(db):
        _delete_group_rows(db, group_id)

    logger.info("group_deleted", group_id=group_id)
    return group
