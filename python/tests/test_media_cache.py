"""Tests for the media cache store.

Tests cover:
- Insert-if-absent caching and payload normalization
- num_queues increments and the non-negative guard
- Popular listings and single-record reads
- Counter reconciliation after bulk queue deletes
"""

from sqlalchemy.orm import Session

from tests.fixtures import ALBUM_BLONDE, MOVIE_ARRIVAL, MOVIE_BATMAN, MOVIE_DUNE, MOVIE_HEAT
from tests.helpers import count_rows, create_queue, num_queues
from upnext.errors import ApiErrorCode
from upnext.schemas.media import MoviePayload
from upnext.services import media_cache, queues


class TestUpsertIfAbsent:
    """Tests for lazy media caching."""

    def test_first_insert_writes_row(self, db_session: Session):
        """A new id is cached with a zero counter."""
        inserted = media_cache.upsert_if_absent(db_session, "Movie", MOVIE_BATMAN)
        db_session.commit()

        assert inserted is True
        record = media_cache.find_by_id(db_session, "Movie", "414906")
        assert record.title == "The Batman"
        assert record.release_date == "2022-03-01"
        assert record.cast == ["Robert Pattinson", "Zoë Kravitz"]
        assert record.num_queues == 0

    def test_second_insert_is_a_no_op(self, db_session: Session):
        """An existing record is never overwritten."""
        media_cache.upsert_if_absent(db_session, "Movie", MOVIE_BATMAN)
        inserted = media_cache.upsert_if_absent(
            db_session, "Movie", {**MOVIE_BATMAN, "title": "Other"}
        )
        db_session.commit()

        assert inserted is False
        assert count_rows(db_session, "movies") == 1
        assert media_cache.find_by_id(db_session, "Movie", "414906").title == "The Batman"

    def test_incoming_counter_is_ignored(self, db_session: Session):
        """A payload's num_queues never seeds the cached counter."""
        media_cache.upsert_if_absent(db_session, "Movie", {**MOVIE_HEAT, "numQueues": 7})
        db_session.commit()

        assert num_queues(db_session, "Movie", "949") == 0

    def test_accepts_schema_instance(self, db_session: Session):
        """Payloads may already be validated schema instances."""
        payload = MoviePayload.model_validate(MOVIE_DUNE)

        assert media_cache.upsert_if_absent(db_session, "Movie", payload) is True

    def test_types_are_separate_tables(self, db_session: Session):
        """The same id can be cached under two media types."""
        media_cache.upsert_if_absent(db_session, "Movie", {"_id": "1", "title": "A movie"})
        media_cache.upsert_if_absent(db_session, "Album", {**ALBUM_BLONDE, "_id": "1"})
        db_session.commit()

        assert media_cache.find_by_id(db_session, "Movie", "1").title == "A movie"
        assert media_cache.find_by_id(db_session, "Album", "1").artist == "Frank Ocean"


class TestIncrementQueueCount:
    """Tests for num_queues updates."""

    def test_increment_and_decrement(self, db_session: Session):
        media_cache.upsert_if_absent(db_session, "Movie", MOVIE_BATMAN)
        media_cache.increment_queue_count(db_session, "Movie", "414906", 1)
        media_cache.increment_queue_count(db_session, "Movie", "414906", 1)
        media_cache.increment_queue_count(db_session, "Movie", "414906", -1)
        db_session.commit()

        assert num_queues(db_session, "Movie", "414906") == 1

    def test_decrement_never_goes_below_zero(self, db_session: Session):
        """A decrement that would go negative is not applied."""
        media_cache.upsert_if_absent(db_session, "Movie", MOVIE_BATMAN)

        updated = media_cache.increment_queue_count(db_session, "Movie", "414906", -1)
        db_session.commit()

        assert updated is False
        assert num_queues(db_session, "Movie", "414906") == 0

    def test_unknown_id_updates_nothing(self, db_session: Session):
        assert media_cache.increment_queue_count(db_session, "Movie", "missing", 1) is False


class TestRetrievePopularMedia:
    """Tests for retrieve_popular_media."""

    def test_empty_cache(self, db_session: Session):
        """No cached records is a not-found failure naming the type."""
        result = media_cache.retrieve_popular_media(db_session, "Movie")

        assert result.to_dict() == {"error": "No popular movies found."}
        assert result.code == ApiErrorCode.E_MEDIA_NOT_FOUND

    def test_label_per_type(self, db_session: Session):
        result = media_cache.retrieve_popular_media(db_session, "VideoGame")

        assert result.error == "No popular video games found."

    def test_ordered_by_num_queues(self, db_session: Session):
        """Most queued first; limit caps the list."""
        alice = create_queue(db_session, "Movie", "alice")
        bob = create_queue(db_session, "Movie", "bob")
        for payload in (MOVIE_DUNE, MOVIE_BATMAN, MOVIE_ARRIVAL):
            queues.add_media_to_queue(db_session, "Movie", alice.id, payload).unwrap()
        queues.add_media_to_queue(db_session, "Movie", bob.id, MOVIE_BATMAN).unwrap()

        records = media_cache.retrieve_popular_media(db_session, "Movie", limit=2).unwrap()

        assert [r.id for r in records] == ["414906", "329865"]
        assert records[0].num_queues == 2

    def test_default_limit_from_settings(self, db_session: Session, monkeypatch):
        """POPULAR_MEDIA_LIMIT is used when no limit is given."""
        from upnext.config import clear_settings_cache

        for payload in (MOVIE_DUNE, MOVIE_BATMAN, MOVIE_ARRIVAL, MOVIE_HEAT):
            media_cache.upsert_if_absent(db_session, "Movie", payload)
        db_session.commit()
        monkeypatch.setenv("POPULAR_MEDIA_LIMIT", "3")
        clear_settings_cache()

        records = media_cache.retrieve_popular_media(db_session, "Movie").unwrap()

        assert len(records) == 3

    def test_result_renders_as_list_of_records(self, db_session: Session):
        media_cache.upsert_if_absent(db_session, "Movie", MOVIE_HEAT)
        db_session.commit()

        rendered = media_cache.retrieve_popular_media(db_session, "Movie").to_dict()

        assert rendered[0]["id"] == "949"
        assert rendered[0]["title"] == "Heat"


class TestGetMedia:
    """Tests for get_media."""

    def test_cached_record(self, db_session: Session):
        media_cache.upsert_if_absent(db_session, "Movie", MOVIE_BATMAN)
        db_session.commit()

        record = media_cache.get_media(db_session, "Movie", "414906").unwrap()

        assert record.director == "Matt Reeves"

    def test_unknown_id(self, db_session: Session):
        result = media_cache.get_media(db_session, "Book", "missing")

        assert result.code == ApiErrorCode.E_MEDIA_NOT_FOUND
        assert result.error == "Book missing not found"

    def test_invalid_media_type(self, db_session: Session):
        result = media_cache.get_media(db_session, "Comic", "1")

        assert result.code == ApiErrorCode.E_INVALID_MEDIA_TYPE


class TestReconcileQueueCounts:
    """Tests for reconcile_queue_counts."""

    def test_recomputes_after_queue_delete(self, db_session: Session):
        """Counters left high by a queue delete are brought back to membership."""
        alice = create_queue(db_session, "Movie", "alice")
        bob = create_queue(db_session, "Movie", "bob")
        queues.add_media_to_queue(db_session, "Movie", alice.id, MOVIE_BATMAN).unwrap()
        queues.add_media_to_queue(db_session, "Movie", bob.id, MOVIE_BATMAN).unwrap()
        queues.add_media_to_queue(db_session, "Movie", bob.id, MOVIE_DUNE).unwrap()
        queues.delete_queue_by_media_type_and_username_and_group(
            db_session, "Movie", "bob", None
        ).unwrap()
        assert num_queues(db_session, "Movie", "414906") == 2

        corrected = media_cache.reconcile_queue_counts(db_session)

        assert corrected["Movie"] == 2
        assert corrected["TV"] == 0
        assert num_queues(db_session, "Movie", "414906") == 1
        assert num_queues(db_session, "Movie", "438631") == 0

    def test_history_items_count(self, db_session: Session):
        """Items in history still reference the record."""
        queue = create_queue(db_session)
        queues.add_media_to_queue(db_session, "Movie", queue.id, MOVIE_BATMAN).unwrap()
        queues.move_media_from_current_to_history(db_session, "Movie", queue.id, ["414906"])

        corrected = media_cache.reconcile_queue_counts(db_session, "Movie")

        assert corrected == {"Movie": 0}
        assert num_queues(db_session, "Movie", "414906") == 1
