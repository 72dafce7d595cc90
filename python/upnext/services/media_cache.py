"""Media cache store.

One table per media type holds the normalized metadata supplied by the
external API adapters plus the `num_queues` popularity counter.

Records are created lazily the first time an item is enqueued and are
never deleted here. Insertion is insert-if-absent: when two enqueues race
on a brand new id, the losing insert is a no-op rather than an error.

Functions in the "store" section below do not commit; callers own the
transaction. The Result-returning functions at the bottom are the public
read operations used by routes.
"""

from sqlalchemy import Table, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from upnext.config import get_settings
from upnext.db.session import transaction
from upnext.errors import ApiErrorCode, NotFoundError
from upnext.logging import get_logger
from upnext.media_types import MediaType, MediaTypeDescriptor, all_descriptors, get_descriptor
from upnext.result import returns_result
from upnext.schemas.media import MediaPayload

logger = get_logger(__name__)


def _table(descriptor: MediaTypeDescriptor) -> Table:
    return descriptor.model.__table__  # type: ignore[attr-defined]


def _to_payload(descriptor: MediaTypeDescriptor, row) -> MediaPayload:
    values = {key: value for key, value in row.items() if value is not None}
    return descriptor.payload_schema.model_validate(values)


def _insert_if_absent(db: Session, table: Table, values: dict) -> bool:
    """INSERT ... ON CONFLICT (id) DO NOTHING. Returns True if a row was written."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(table).values(**values).on_conflict_do_nothing(
            index_elements=[table.c.id]
        )
    elif dialect == "sqlite":
        stmt = sqlite.insert(table).values(**values).on_conflict_do_nothing(
            index_elements=[table.c.id]
        )
    else:
        # No native upsert: a duplicate-key failure means the record exists.
        try:
            with db.begin_nested():
                db.execute(table.insert().values(**values))
            return True
        except IntegrityError:
            return False

    return db.execute(stmt).rowcount == 1


# =============================================================================
# Store operations
# =============================================================================


def find_by_id(db: Session, media_type: MediaType | str, media_id: str) -> MediaPayload | None:
    """Fetch one cached record, or None if it has never been cached."""
    descriptor = get_descriptor(media_type)
    table = _table(descriptor)
    row = db.execute(select(table).where(table.c.id == media_id)).mappings().first()
    if row is None:
        return None
    return _to_payload(descriptor, row)


def find_many(
    db: Session, media_type: MediaType | str, media_ids: list[str]
) -> dict[str, MediaPayload]:
    """Fetch cached records keyed by id. Unknown ids are absent from the result."""
    if not media_ids:
        return {}
    descriptor = get_descriptor(media_type)
    table = _table(descriptor)
    rows = db.execute(select(table).where(table.c.id.in_(set(media_ids)))).mappings().all()
    return {row["id"]: _to_payload(descriptor, row) for row in rows}


def upsert_if_absent(
    db: Session, media_type: MediaType | str, payload: MediaPayload | dict
) -> bool:
    """Cache a media record unless one with the same id already exists.

    Idempotent under concurrent calls: a conflicting insert is treated as
    success because another caller already produced the same record.

    Args:
        db: Database session (not committed here).
        media_type: Media type of the record.
        payload: Normalized record, as a schema instance or a raw dict.

    Returns:
        True if this call inserted the row, False if it already existed.
    """
    descriptor = get_descriptor(media_type)
    if not isinstance(payload, descriptor.payload_schema):
        data = payload.model_dump() if isinstance(payload, MediaPayload) else payload
        payload = descriptor.payload_schema.model_validate(data)

    inserted = _insert_if_absent(db, _table(descriptor), payload.cache_values())
    if not inserted:
        logger.debug("media_cache_hit", media_type=descriptor.name, media_id=payload.id)
    return inserted


def increment_queue_count(
    db: Session, media_type: MediaType | str, media_id: str, delta: int
) -> bool:
    """Atomically add `delta` to a record's num_queues.

    A negative delta is only applied when it cannot take the counter below
    zero.

    Returns:
        True if a row was updated.
    """
    descriptor = get_descriptor(media_type)
    table = _table(descriptor)
    stmt = (
        update(table)
        .where(table.c.id == media_id)
        .values(num_queues=table.c.num_queues + delta)
    )
    if delta < 0:
        stmt = stmt.where(table.c.num_queues >= -delta)

    updated = db.execute(stmt).rowcount == 1
    if not updated:
        logger.warning(
            "queue_count_not_updated",
            media_type=descriptor.name,
            media_id=media_id,
            delta=delta,
        )
    return updated


def top_by_popularity(db: Session, media_type: MediaType | str, limit: int) -> list[MediaPayload]:
    """Cached records ordered by num_queues descending (ties by id)."""
    descriptor = get_descriptor(media_type)
    table = _table(descriptor)
    rows = (
        db.execute(
            select(table).order_by(table.c.num_queues.desc(), table.c.id.asc()).limit(limit)
        )
        .mappings()
        .all()
    )
    return [_to_payload(descriptor, row) for row in rows]


def reconcile_queue_counts(
    db: Session, media_type: MediaType | str | None = None
) -> dict[str, int]:
    """Recompute num_queues from actual queue membership.

    Bulk queue deletion does not touch the counters, so they drift upward
    over time; this brings every record back to the number of queues of its
    type whose current or history references it.

    Args:
        db: Database session.
        media_type: Restrict to one media type; None reconciles all six.

    Returns:
        Mapping of media type to the number of records whose counter changed.
    """
    descriptors = [get_descriptor(media_type)] if media_type is not None else all_descriptors()
    corrected: dict[str, int] = {}

    with transaction(db):
        for descriptor in descriptors:
            table_name = descriptor.table_name
            actual = f"""
                (SELECT COUNT(*)
                 FROM queue_items qi
                 JOIN queues q ON q.id = qi.queue_id
                 WHERE qi.media_id = {table_name}.id AND q.media_type = :media_type)
            """
            result = db.execute(
                text(f"""
                    UPDATE {table_name}
                    SET num_queues = {actual}
                    WHERE num_queues <> {actual}
                """),
                {"media_type": descriptor.name},
            )
            corrected[descriptor.name] = result.rowcount

    logger.info("queue_counts_reconciled", corrected=corrected)
    return corrected


# =============================================================================
# Public read operations
# =============================================================================


@returns_result()
def retrieve_popular_media(
    db: Session, media_type: MediaType | str, limit: int | None = None
) -> list[MediaPayload]:
    """The most queued records of a media type.

    Raises (converted to Result):
        NotFoundError: If nothing of this type has been cached yet.
    """
    descriptor = get_descriptor(media_type)
    if limit is None:
        limit = get_settings().popular_media_limit

    records = top_by_popularity(db, descriptor.media_type, limit)
    if not records:
        raise NotFoundError(
            ApiErrorCode.E_MEDIA_NOT_FOUND, f"No popular {descriptor.plural} found."
        )
    return records


@returns_result()
def get_media(db: Session, media_type: MediaType | str, media_id: str) -> MediaPayload:
    """A single cached record.

    Raises (converted to Result):
        NotFoundError: If the id has never been cached.
    """
    descriptor = get_descriptor(media_type)
    record = find_by_id(db, descriptor.media_type, media_id)
    if record is None:
        raise NotFoundError(
            ApiErrorCode.E_MEDIA_NOT_FOUND, f"{descriptor.name} {media_id} not found"
        )
    return record
