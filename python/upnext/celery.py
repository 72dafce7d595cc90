"""Celery application configuration.

Central configuration for Celery used by both the API (for enqueuing) and
the worker (for executing tasks).

Usage:
    from upnext.tasks import reconcile_queue_counts_job

    reconcile_queue_counts_job.apply_async(kwargs={"media_type": "Movie"})
"""

from celery import Celery

from upnext.config import get_settings

settings = get_settings()

celery_app = Celery("upnext")

celery_app.conf.broker_url = settings.effective_celery_broker_url
celery_app.conf.result_backend = settings.effective_celery_result_backend

# Task configuration
celery_app.conf.task_serializer = "json"
celery_app.conf.result_serializer = "json"
celery_app.conf.accept_content = ["json"]
celery_app.conf.timezone = "UTC"
celery_app.conf.enable_utc = True

celery_app.conf.task_default_queue = "default"

# Tests run tasks by calling them directly
celery_app.conf.task_always_eager = False


def get_celery_app() -> Celery:
    """Get the Celery application instance."""
    return celery_app
