"""Queue engine.

Every public operation here returns a Result instead of raising: callers
check ``result.ok`` / ``result.error`` (or ``unwrap()`` in routes). Store
failures become E_STORE_UNAVAILABLE failures and the session is rolled back.

Consistency model between the queue tables and the media cache:
- Set membership (users, current, history) is store-enforced by unique keys,
  so concurrent identical adds are safe.
- The media cache write and its num_queues increment commit before the
  queue item insert. A crash in between leaves the counter one too high,
  never a broken queue. If the item insert loses a race to an identical
  enqueue, the increment is reverted.
- Bucket deletes decrement num_queues only when a row was actually removed.
- Queue deletion leaves counters alone; see
  ``media_cache.reconcile_queue_counts``.
"""

from collections.abc import Iterable
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from upnext.config import get_settings
from upnext.db.models import QueueBucket
from upnext.db.session import transaction
from upnext.errors import (
    ApiErrorCode,
    DuplicateMediaError,
    InvalidRequestError,
    NotFoundError,
    QueueCreationError,
)
from upnext.logging import get_logger
from upnext.media_types import MediaType, MediaTypeDescriptor, all_descriptors, get_descriptor
from upnext.result import Result, returns_result
from upnext.schemas.media import MediaPayload
from upnext.schemas.queue import DeleteQueuesOut, QueueOut
from upnext.services import media_cache, queue_store
from upnext.services.queue_store import QueueFilter

logger = get_logger(__name__)


# =============================================================================
# Helpers
# =============================================================================


def _require(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, f"{field} is required")
    return value


def _normalize_users(users_or_username: str | Iterable[str]) -> list[str]:
    """Accept one username or several; return a de-duplicated ordered list."""
    if isinstance(users_or_username, str):
        usernames = [users_or_username]
    elif users_or_username is None:
        usernames = []
    elif isinstance(users_or_username, Iterable):
        usernames = list(users_or_username)
    else:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST, "users must be a username or a list of usernames"
        )

    if not usernames:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "At least one user is required")
    for username in usernames:
        _require(username, "username")
    return list(dict.fromkeys(usernames))


def _require_ids(media_ids: list[str] | None) -> list[str]:
    if isinstance(media_ids, str) or not isinstance(media_ids, (list, tuple)):
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST, "media_ids must be a list of ids"
        )
    for media_id in media_ids:
        _require(media_id, "media_id")
    return list(media_ids)


def _owner_not_found(
    descriptor: MediaTypeDescriptor, username: str, group_id: str | None
) -> NotFoundError:
    return NotFoundError(
        ApiErrorCode.E_QUEUE_NOT_FOUND,
        f"{descriptor.name} Queue not found for user {username} and group {group_id}",
    )


def _load_typed_queue(db: Session, descriptor: MediaTypeDescriptor, queue_id: str) -> QueueOut:
    """Load a queue by id and check it belongs to the given media type."""
    _require(queue_id, "queue_id")
    queue = queue_store.load_queue(db, queue_id)
    if queue is None:
        raise NotFoundError(ApiErrorCode.E_QUEUE_NOT_FOUND, "Queue not found")
    if queue.media_type != descriptor.name:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_MEDIA_TYPE,
            f"Queue {queue_id} is a {queue.media_type} queue, not {descriptor.name}",
        )
    return queue


def _validate_payload(
    descriptor: MediaTypeDescriptor, payload: MediaPayload | dict
) -> MediaPayload:
    if isinstance(payload, descriptor.payload_schema):
        return payload
    data = payload.model_dump() if isinstance(payload, MediaPayload) else payload
    try:
        return descriptor.payload_schema.model_validate(data)
    except ValidationError as exc:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST,
            f"Invalid {descriptor.label} payload: {exc.error_count()} validation error(s)",
        ) from exc


def failed_types(results: dict[str, Result]) -> list[str]:
    """Media types whose entry in a per-type result map is a failure."""
    return [name for name, result in results.items() if not result.ok]


# =============================================================================
# Creation
# =============================================================================


@returns_result()
def create_queue(
    db: Session,
    media_type: MediaType | str,
    users_or_username: str | Iterable[str],
    group_id: str | None = None,
) -> QueueOut:
    """Create an empty queue of one media type.

    Args:
        db: Database session.
        media_type: Media type of the queue.
        users_or_username: The owner (personal queue) or the group's members.
        group_id: Owning group, or None for a personal queue.

    Returns (as Result):
        The new queue with empty current and history.

    Failures:
        E_INVALID_REQUEST if a username or the group id is empty.
        E_QUEUE_CREATION_FAILED if the store write fails.
    """
    descriptor = get_descriptor(media_type)
    usernames = _normalize_users(users_or_username)
    if group_id is not None:
        _require(group_id, "group_id")

    queue_id = str(uuid4())
    try:
        with transaction(db):
            queue_store.insert_queue(db, queue_id, descriptor, usernames, group_id)
    except SQLAlchemyError as exc:
        logger.error(
            "queue_creation_failed",
            media_type=descriptor.name,
            group_id=group_id,
            error=str(exc),
        )
        raise QueueCreationError(f"Error creating {descriptor.label} queue") from exc

    logger.info(
        "queue_created",
        queue_id=queue_id,
        media_type=descriptor.name,
        group_id=group_id,
        user_count=len(usernames),
    )
    return QueueOut(
        id=queue_id,
        media_type=descriptor.name,
        media=descriptor.media,
        users=usernames,
        group=group_id,
    )


def create_movie_queue(
    db: Session, users_or_username: str | Iterable[str], group_id: str | None = None
) -> Result[QueueOut]:
    return create_queue(db, MediaType.MOVIE, users_or_username, group_id)


def create_tv_queue(
    db: Session, users_or_username: str | Iterable[str], group_id: str | None = None
) -> Result[QueueOut]:
    return create_queue(db, MediaType.TV, users_or_username, group_id)


def create_album_queue(
    db: Session, users_or_username: str | Iterable[str], group_id: str | None = None
) -> Result[QueueOut]:
    return create_queue(db, MediaType.ALBUM, users_or_username, group_id)


def create_book_queue(
    db: Session, users_or_username: str | Iterable[str], group_id: str | None = None
) -> Result[QueueOut]:
    return create_queue(db, MediaType.BOOK, users_or_username, group_id)


def create_video_game_queue(
    db: Session, users_or_username: str | Iterable[str], group_id: str | None = None
) -> Result[QueueOut]:
    return create_queue(db, MediaType.VIDEO_GAME, users_or_username, group_id)


def create_podcast_queue(
    db: Session, users_or_username: str | Iterable[str], group_id: str | None = None
) -> Result[QueueOut]:
    return create_queue(db, MediaType.PODCAST, users_or_username, group_id)


def create_all_queues(
    db: Session, users_or_username: str | Iterable[str], group_id: str | None = None
) -> dict[str, Result[QueueOut]]:
    """Create one queue per media type for the same owner.

    The six creations are independent: a failure in one does not undo the
    others. Callers inspect the returned map and clean up themselves.
    """
    try:
        usernames = _normalize_users(users_or_username)
    except InvalidRequestError as exc:
        return {d.name: Result.failure(exc.code, exc.message) for d in all_descriptors()}

    results = {
        descriptor.name: create_queue(db, descriptor.media_type, usernames, group_id)
        for descriptor in all_descriptors()
    }
    failed = failed_types(results)
    if failed:
        logger.warning("queue_creation_partial_failure", group_id=group_id, failed=failed)
    return results


# =============================================================================
# Lookup
# =============================================================================


@returns_result()
def get_queue_by_media_type_and_username_and_group(
    db: Session,
    media_type: MediaType | str,
    username: str,
    group_id: str | None = None,
    populate: bool = True,
) -> QueueOut:
    """Find the queue of a media type that `username` belongs to.

    `group_id=None` selects the user's personal queue.

    Failures:
        E_QUEUE_NOT_FOUND naming the media type, user and group.
    """
    descriptor = get_descriptor(media_type)
    _require(username, "username")

    queue = queue_store.find_one(
        db, QueueFilter.for_owner(descriptor.media_type, username, group_id), populate=populate
    )
    if queue is None:
        raise _owner_not_found(descriptor, username, group_id)
    return queue


@returns_result()
def get_queue_by_id(
    db: Session, queue_id: str, media_type: MediaType | str | None = None
) -> QueueOut:
    """A populated queue by id.

    When `media_type` is given, a queue of another type fails with
    E_INVALID_MEDIA_TYPE.
    """
    if media_type is not None:
        _load_typed_queue(db, get_descriptor(media_type), queue_id)
    else:
        _require(queue_id, "queue_id")
    queue = queue_store.load_queue(db, queue_id, populate=True)
    if queue is None:
        raise NotFoundError(ApiErrorCode.E_QUEUE_NOT_FOUND, "Queue not found")
    return queue


def _preview(
    db: Session,
    media_type: MediaType | str,
    username: str,
    group_id: str | None,
    bucket: QueueBucket,
) -> QueueOut:
    descriptor = get_descriptor(media_type)
    _require(username, "username")

    queue = queue_store.find_one(
        db, QueueFilter.for_owner(descriptor.media_type, username, group_id)
    )
    if queue is None:
        raise _owner_not_found(descriptor, username, group_id)

    size = get_settings().queue_preview_size
    if bucket == QueueBucket.current:
        partial = queue.model_copy(update={"current": queue.current[:size], "history": []})
    else:
        partial = queue.model_copy(update={"current": [], "history": queue.history[:size]})
    return queue_store.populate_queue(db, partial)


@returns_result()
def retrieve_top3_in_current_queue(
    db: Session, media_type: MediaType | str, username: str, group_id: str | None = None
) -> QueueOut:
    """The first items of a queue's current bucket, populated.

    Only `current` is filled; `history` is returned empty. The slice size is
    QUEUE_PREVIEW_SIZE (3 by default) and follows insertion order.
    """
    return _preview(db, media_type, username, group_id, QueueBucket.current)


@returns_result()
def retrieve_top3_in_personal_history(
    db: Session, media_type: MediaType | str, username: str, group_id: str | None = None
) -> QueueOut:
    """The first items of a queue's history bucket, populated (`current` empty)."""
    return _preview(db, media_type, username, group_id, QueueBucket.history)


# =============================================================================
# Queue contents
# =============================================================================


@returns_result()
def add_media_to_queue(
    db: Session,
    media_type: MediaType | str,
    queue_id: str,
    payload: MediaPayload | dict,
) -> QueueOut:
    """Enqueue a media item into a queue's current bucket.

    The payload comes from an external API adapter. Its record is cached on
    first sight and its num_queues counter is incremented before the queue
    item is written.

    Args:
        db: Database session.
        media_type: Media type of the queue and the payload.
        queue_id: Target queue.
        payload: Normalized media record, including its `_id`.

    Returns (as Result):
        The updated, populated queue.

    Failures:
        E_QUEUE_NOT_FOUND if the queue does not exist.
        E_MEDIA_ALREADY_IN_QUEUE if the id is in current or history.
        E_INVALID_REQUEST if the payload does not validate.
    """
    descriptor = get_descriptor(media_type)
    record = _validate_payload(descriptor, payload)
    queue = _load_typed_queue(db, descriptor, queue_id)

    if record.id in queue.current or record.id in queue.history:
        logger.info("media_already_in_queue", queue_id=queue_id, media_id=record.id)
        raise DuplicateMediaError()

    with transaction(db):
        media_cache.upsert_if_absent(db, descriptor.media_type, record)
        media_cache.increment_queue_count(db, descriptor.media_type, record.id, 1)

    with transaction(db):
        inserted = queue_store.add_item(db, queue_id, record.id, QueueBucket.current)

    if not inserted:
        # A concurrent identical enqueue won the insert.
        with transaction(db):
            media_cache.increment_queue_count(db, descriptor.media_type, record.id, -1)
        logger.info("queue_counter_compensated", queue_id=queue_id, media_id=record.id)
        raise DuplicateMediaError()

    logger.info(
        "media_enqueued",
        queue_id=queue_id,
        media_type=descriptor.name,
        media_id=record.id,
    )
    return queue_store.load_queue(db, queue_id, populate=True)


@returns_result()
def move_media_from_current_to_history(
    db: Session, media_type: MediaType | str, queue_id: str, media_ids: list[str]
) -> QueueOut:
    """Mark items consumed: move them from current to the end of history.

    Ids that are not in current are ignored. num_queues is unchanged, since
    the media is still referenced by the queue.
    """
    descriptor = get_descriptor(media_type)
    media_ids = _require_ids(media_ids)
    _load_typed_queue(db, descriptor, queue_id)

    with transaction(db):
        moved = queue_store.move_to_history(db, queue_id, media_ids)

    logger.info(
        "media_moved_to_history",
        queue_id=queue_id,
        requested=len(media_ids),
        moved=len(moved),
    )
    return queue_store.load_queue(db, queue_id, populate=True)


def _delete_from_bucket(
    db: Session,
    media_type: MediaType | str,
    queue_id: str,
    media_id: str,
    bucket: QueueBucket,
) -> QueueOut:
    descriptor = get_descriptor(media_type)
    _require(media_id, "media_id")
    _load_typed_queue(db, descriptor, queue_id)

    with transaction(db):
        removed = queue_store.pull_item(db, queue_id, media_id, bucket)
        if removed:
            media_cache.increment_queue_count(db, descriptor.media_type, media_id, -1)

    logger.info(
        "media_deleted_from_queue",
        queue_id=queue_id,
        media_id=media_id,
        bucket=bucket.value,
        removed=removed,
    )
    return queue_store.load_queue(db, queue_id, populate=True)


@returns_result(failure_context="Failed to delete media from current queue")
def delete_media_from_current_queue(
    db: Session, media_type: MediaType | str, queue_id: str, media_id: str
) -> QueueOut:
    """Remove one id from current. Decrements num_queues only if it was there."""
    return _delete_from_bucket(db, media_type, queue_id, media_id, QueueBucket.current)


@returns_result(failure_context="Failed to delete media from history queue")
def delete_media_from_history_queue(
    db: Session, media_type: MediaType | str, queue_id: str, media_id: str
) -> QueueOut:
    """Remove one id from history. Decrements num_queues only if it was there."""
    return _delete_from_bucket(db, media_type, queue_id, media_id, QueueBucket.history)


# =============================================================================
# Cascading delete
# =============================================================================


@returns_result()
def delete_queue_by_media_type_and_group(
    db: Session, media_type: MediaType | str, group_id: str
) -> DeleteQueuesOut:
    """Delete a group's queue(s) of one media type. Counters are not touched."""
    descriptor = get_descriptor(media_type)
    _require(group_id, "group_id")

    with transaction(db):
        deleted = queue_store.delete_many(
            db, QueueFilter.for_group(descriptor.media_type, group_id)
        )

    logger.info(
        "queues_deleted", media_type=descriptor.name, group_id=group_id, deleted_count=deleted
    )
    return DeleteQueuesOut(deleted_count=deleted)


@returns_result()
def delete_queue_by_media_type_and_username_and_group(
    db: Session, media_type: MediaType | str, username: str, group_id: str | None = None
) -> DeleteQueuesOut:
    """Delete the queue(s) of one media type owned by a user (personal when group is None)."""
    descriptor = get_descriptor(media_type)
    _require(username, "username")

    with transaction(db):
        deleted = queue_store.delete_many(
            db, QueueFilter.for_owner(descriptor.media_type, username, group_id)
        )

    logger.info(
        "queues_deleted",
        media_type=descriptor.name,
        username=username,
        group_id=group_id,
        deleted_count=deleted,
    )
    return DeleteQueuesOut(deleted_count=deleted)


@returns_result()
def delete_all_queues(
    db: Session, group_id: str | None = None, username: str | None = None
) -> DeleteQueuesOut:
    """Delete every queue of a group, or every personal queue of a user.

    Exactly one of `group_id` / `username` must be given.
    """
    if (group_id is None) == (username is None):
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST, "Exactly one of group_id or username is required"
        )

    if group_id is not None:
        _require(group_id, "group_id")
    else:
        _require(username, "username")

    deleted = 0
    with transaction(db):
        for descriptor in all_descriptors():
            if group_id is not None:
                queue_filter = QueueFilter.for_group(descriptor.media_type, group_id)
            else:
                queue_filter = QueueFilter.for_owner(descriptor.media_type, username, None)
            deleted += queue_store.delete_many(db, queue_filter)

    logger.info("all_queues_deleted", group_id=group_id, username=username, deleted_count=deleted)
    return DeleteQueuesOut(deleted_count=deleted)


# =============================================================================
# Group membership fan-out / fan-in
# =============================================================================


@returns_result()
def _add_user_to_group_queue(
    db: Session, descriptor: MediaTypeDescriptor, username: str, group_id: str
) -> QueueOut:
    queue_filter = QueueFilter.for_group(descriptor.media_type, group_id)
    queue_ids = queue_store.find_queue_ids(db, queue_filter)
    if not queue_ids:
        raise NotFoundError(
            ApiErrorCode.E_QUEUE_NOT_FOUND,
            f"{descriptor.name} Queue not found for group {group_id}",
        )
    with transaction(db):
        queue_store.add_user(db, queue_ids[0], username)
    return queue_store.load_queue(db, queue_ids[0])


@returns_result()
def _remove_user_from_group_queue(
    db: Session, descriptor: MediaTypeDescriptor, username: str, group_id: str
) -> QueueOut:
    queue_filter = QueueFilter.for_group(descriptor.media_type, group_id)
    queue_ids = queue_store.find_queue_ids(db, queue_filter)
    if not queue_ids:
        raise NotFoundError(
            ApiErrorCode.E_QUEUE_NOT_FOUND,
            f"{descriptor.name} Queue not found for group {group_id}",
        )
    with transaction(db):
        for queue_id in queue_ids:
            queue_store.pull_user(db, queue_id, username)
    return queue_store.load_queue(db, queue_ids[0])


def _fan_out(db: Session, operation, username: str, group_id: str, event: str) -> dict[str, Result]:
    try:
        _require(username, "username")
        _require(group_id, "group_id")
    except InvalidRequestError as exc:
        return {d.name: Result.failure(exc.code, exc.message) for d in all_descriptors()}

    results = {
        descriptor.name: operation(db, descriptor, username, group_id)
        for descriptor in all_descriptors()
    }
    failed = failed_types(results)
    if failed:
        logger.warning(event, username=username, group_id=group_id, failed=failed)
    return results


def add_user_to_all_group_queues(
    db: Session, username: str, group_id: str
) -> dict[str, Result[QueueOut]]:
    """Add a username to the users of each of a group's six queues.

    Each media type is handled independently and reported in the returned
    map; nothing is rolled back when some of them fail.
    """
    return _fan_out(
        db, _add_user_to_group_queue, username, group_id, "group_queue_fanout_partial_failure"
    )


def remove_user_from_all_group_queues(
    db: Session, username: str, group_id: str
) -> dict[str, Result[QueueOut]]:
    """Pull a username from the users of each of a group's queues. Queues persist."""
    return _fan_out(
        db, _remove_user_from_group_queue, username, group_id, "group_queue_fanin_partial_failure"
    )
