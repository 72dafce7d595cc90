"""Tests for the reconcile_queue_counts Celery task."""

import pytest
from sqlalchemy.orm import Session

from tests.fixtures import MOVIE_BATMAN
from tests.helpers import create_queue, num_queues
from upnext.errors import InvalidRequestError
from upnext.services import queues
from upnext.tasks import reconcile_queue_counts as reconcile_module
from upnext.tasks.reconcile_queue_counts import reconcile_queue_counts_job


@pytest.fixture(autouse=True)
def task_session_factory(monkeypatch, session_factory):
    """Point the task at the per-test database."""
    monkeypatch.setattr(reconcile_module, "get_session_factory", lambda: session_factory)


class TestReconcileQueueCountsJob:
    """Tests for reconcile_queue_counts_job."""

    def test_corrects_counters(self, db_session: Session):
        """A counter left high by a queue delete is recomputed."""
        queue = create_queue(db_session, "Movie", ["alice"], "group-1")
        queues.add_media_to_queue(db_session, "Movie", queue.id, MOVIE_BATMAN).unwrap()
        queues.delete_all_queues(db_session, group_id="group-1").unwrap()

        result = reconcile_queue_counts_job.apply(kwargs={"media_type": "Movie"}).get()

        assert result == {"status": "ok", "updated": {"Movie": 1}}
        db_session.expire_all()
        assert num_queues(db_session, "Movie", "414906") == 0

    def test_all_types_when_unspecified(self):
        result = reconcile_queue_counts_job.apply(kwargs={"request_id": "req-1"}).get()

        assert result["status"] == "ok"
        assert set(result["updated"]) == {"Movie", "TV", "Album", "Book", "VideoGame", "Podcast"}

    def test_unknown_media_type(self):
        with pytest.raises(InvalidRequestError):
            reconcile_queue_counts_job.apply(kwargs={"media_type": "Comic"}).get()
