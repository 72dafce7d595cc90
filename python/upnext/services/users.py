"""User service layer.

Signing up a user also creates their six personal queues. Queue creation
runs through the queue engine, whose Results are checked here; a partial
failure removes whatever was created and surfaces as QueueCreationError.
"""

from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from upnext.db.session import transaction
from upnext.errors import (
    ApiErrorCode,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    QueueCreationError,
)
from upnext.logging import get_logger
from upnext.schemas.user import UserOut
from upnext.services import queues

logger = get_logger(__name__)

_USER_COLUMNS = "id, username, email, first_name, last_name, date_joined"
_UPDATABLE_FIELDS = frozenset({"email", "first_name", "last_name"})


def _user_from_row(row) -> UserOut:
    return UserOut(
        id=row[0],
        username=row[1],
        email=row[2],
        first_name=row[3],
        last_name=row[4],
        date_joined=row[5],
    )


def _find_user(db: Session, username: str) -> UserOut | None:
    row = db.execute(
        text(f"SELECT {_USER_COLUMNS} FROM users WHERE username = :username"),
        {"username": username},
    ).fetchone()
    return _user_from_row(row) if row is not None else None


def user_exists(db: Session, username: str) -> bool:
    return _find_user(db, username) is not None


def sign_up_user(
    db: Session,
    username: str,
    email: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> UserOut:
    """Create a user and their personal queues.

    Args:
        db: Database session.
        username: Unique username (trimmed).
        email: Optional email.
        first_name: Optional first name.
        last_name: Optional last name.

    Returns:
        The created user.

    Raises:
        InvalidRequestError: If username is empty.
        ConflictError: If the username is taken.
        QueueCreationError: If any personal queue could not be created. The
            user and any queues already created are removed first.
    """
    username = (username or "").strip()
    if not username:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "username is required")

    if user_exists(db, username):
        raise ConflictError(ApiErrorCode.E_CONFLICT, "User already exists")

    user_id = str(uuid4())
    try:
        with transaction(db):
            db.execute(
                text("""
                    INSERT INTO users (id, username, email, first_name, last_name)
                    VALUES (:id, :username, :email, :first_name, :last_name)
                """),
                {
                    "id": user_id,
                    "username": username,
                    "email": email,
                    "first_name": first_name,
                    "last_name": last_name,
                },
            )
    except IntegrityError:
        # Lost a race with a concurrent sign-up of the same username.
        raise ConflictError(ApiErrorCode.E_CONFLICT, "User already exists") from None

    results = queues.create_all_queues(db, username, None)
    failed = queues.failed_types(results)
    if failed:
        logger.error("user_queue_setup_failed", username=username, failed=failed)
        queues.delete_all_queues(db, username=username)
        with transaction(db):
            db.execute(text("DELETE FROM users WHERE id = :id"), {"id": user_id})
        raise QueueCreationError(f"Error creating queues for user {username}")

    logger.info("user_signed_up", username=username)
    return get_user(db, username)


def get_user(db: Session, username: str) -> UserOut:
    """Get a user by username.

    Raises:
        NotFoundError: If no such user exists.
    """
    user = _find_user(db, username)
    if user is None:
        raise NotFoundError(ApiErrorCode.E_USER_NOT_FOUND, "User not found")
    return user


def list_users(db: Session) -> list[UserOut]:
    """All users, oldest first."""
    rows = db.execute(
        text(f"SELECT {_USER_COLUMNS} FROM users ORDER BY date_joined ASC, username ASC")
    ).fetchall()
    return [_user_from_row(row) for row in rows]


def update_user(db: Session, username: str, updates: dict) -> UserOut:
    """Update a user's profile fields.

    Only email, first_name and last_name can change. The username is the
    key queues and groups refer to, so it is immutable.

    Raises:
        InvalidRequestError: If updates name any other field.
        NotFoundError: If no such user exists.
    """
    unknown = sorted(set(updates) - _UPDATABLE_FIELDS)
    if unknown:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST, f"Cannot update field(s): {', '.join(unknown)}"
        )

    user = get_user(db, username)
    if not updates:
        return user

    assignments = ", ".join(f"{field} = :{field}" for field in sorted(updates))
    with transaction(db):
        db.execute(
            text(f"UPDATE users SET {assignments} WHERE id = :id"),
            {**updates, "id": user.id},
        )

    logger.info("user_updated", username=username, fields=sorted(updates))
    return get_user(db, username)


def delete_user(db: Session, username: str) -> UserOut:
    """Delete a user and their personal queues.

    Group queues the user belongs to are left alone; leaving groups is a
    separate operation.

    Raises:
        NotFoundError: If no such user exists.
        ApiError: E_STORE_UNAVAILABLE if the personal queues could not be removed.
    """
    user = get_user(db, username)

    queues.delete_all_queues(db, username=username).unwrap()

    with transaction(db):
        db.execute(text("DELETE FROM users WHERE id = :id"), {"id": user.id})

    logger.info("user_deleted", username=username)
    return user
