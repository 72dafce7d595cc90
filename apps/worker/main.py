"""Celery worker entrypoint.

Run with: celery -A apps.worker.main:celery_app worker -Q default --loglevel=info

This module imports the Celery app and explicitly registers all tasks.
Task definitions are in the upnext.tasks package - no autodiscovery.

Logging Convention:
- All task log entries include request_id, task_name, task_id when available
- Tasks accept `request_id: str | None = None` parameter for correlation
"""

from celery.signals import worker_process_init

from upnext.celery import celery_app
from upnext.config import get_settings
from upnext.logging import configure_logging, get_logger

# Import tasks to register them with Celery
from upnext.tasks import reconcile_queue_counts_job  # noqa: F401


@worker_process_init.connect
def setup_worker_logging(**kwargs):
    """Configure structlog when a worker process starts."""
    settings = get_settings()
    configure_logging(json_format=settings.log_json_enabled, level=settings.log_level.upper())
    logger = get_logger(__name__)
    logger.info("celery_worker_started", queue="default")


__all__ = ["celery_app"]
