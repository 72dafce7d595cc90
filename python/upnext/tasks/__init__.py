"""Celery tasks for UpNext.

Tasks are explicitly imported here to register them with Celery.
No autodiscovery - all tasks must be imported in this module.

Usage in API or scripts (enqueue):
    from upnext.tasks import reconcile_queue_counts_job
    reconcile_queue_counts_job.apply_async(kwargs={"request_id": request_id})
"""

from upnext.tasks.reconcile_queue_counts import reconcile_queue_counts_job

__all__ = ["reconcile_queue_counts_job"]
