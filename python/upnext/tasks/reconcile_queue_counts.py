"""Celery task recomputing media popularity counters.

Deleting a user or group removes its queues without decrementing the
num_queues of the media they referenced. This job recomputes every counter
from actual queue membership. It is idempotent and safe to run while
requests are being served; an enqueue racing with it is corrected on the
next run.
"""

from upnext.celery import celery_app
from upnext.db.session import get_session_factory
from upnext.logging import clear_task_context, configure_task_logging, get_logger
from upnext.media_types import get_descriptor
from upnext.services import media_cache

logger = get_logger(__name__)


@celery_app.task(bind=True, max_retries=0, name="reconcile_queue_counts")
def reconcile_queue_counts_job(
    self,
    media_type: str | None = None,
    request_id: str | None = None,
) -> dict:
    """Reconcile num_queues for one media type, or all of them.

    Args:
        media_type: Media type literal ("Movie", ...), or None for all six.
        request_id: Optional request ID for log correlation.

    Returns:
        {"status": "ok", "updated": {media_type: rows_corrected}}
    """
    configure_task_logging(
        request_id=request_id, task_name="reconcile_queue_counts", task_id=self.request.id
    )
    if media_type is not None:
        media_type = get_descriptor(media_type).name

    logger.info("reconcile_started", media_type=media_type)

    session_factory = get_session_factory()
    db = session_factory()
    try:
        updated = media_cache.reconcile_queue_counts(db, media_type)
        logger.info("reconcile_completed", updated=updated)
        return {"status": "ok", "updated": updated}
    except Exception as e:
        logger.error("reconcile_failed", media_type=media_type, error=str(e))
        raise
    finally:
        db.close()
        clear_task_context()
