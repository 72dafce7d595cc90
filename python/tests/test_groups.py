"""Tests for the group service.

Tests cover:
- Group creation with six shared queues
- Name validation and rename
- Membership changes propagating to the group queues
- Group deletion and compensation on failed queue setup
"""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from tests.fixtures import MOVIE_BATMAN
from tests.helpers import count_rows, create_group, create_user, group_queue, num_queues
from upnext.errors import (
    ApiErrorCode,
    InvalidRequestError,
    NotFoundError,
    QueueCreationError,
    UpstreamStoreError,
)
from upnext.services import groups, queue_store, queues


class TestCreateGroup:
    """Tests for create_group."""

    def test_creates_group_and_queues(self, db_session: Session):
        """The creator is the only member of the group and of its six queues."""
        group = create_group(db_session, "Movie Night", "alice")

        assert group.name == "Movie Night"
        assert group.creator == "alice"
        assert group.members == ["alice"]
        assert count_rows(db_session, "queues", group_id=group.id) == 6
        assert group_queue(db_session, "Album", group.id).users == ["alice"]

    def test_name_is_trimmed(self, db_session: Session):
        group = create_group(db_session, "  Book Club  ")

        assert group.name == "Book Club"

    @pytest.mark.parametrize("name", ["", "   ", "x" * 101])
    def test_invalid_name(self, db_session: Session, name):
        create_user(db_session, "alice")

        with pytest.raises(InvalidRequestError) as exc_info:
            groups.create_group(db_session, name, "alice")

        assert exc_info.value.message == "Name must be 1-100 characters"

    def test_unknown_creator(self, db_session: Session):
        with pytest.raises(NotFoundError) as exc_info:
            groups.create_group(db_session, "Movie Night", "nobody")

        assert exc_info.value.code == ApiErrorCode.E_USER_NOT_FOUND
        assert count_rows(db_session, "groups") == 0

    def test_failed_queue_setup_removes_group(self, db_session: Session, monkeypatch):
        """A failed group queue leaves neither the group nor its other queues."""
        create_user(db_session, "alice")
        original = queue_store.insert_queue

        def flaky_insert(db, queue_id, descriptor, usernames, group_id):
            if group_id is not None and descriptor.name == "Podcast":
                raise OperationalError("INSERT", {}, Exception("disk full"))
            return original(db, queue_id, descriptor, usernames, group_id)

        monkeypatch.setattr(queue_store, "insert_queue", flaky_insert)

        with pytest.raises(QueueCreationError) as exc_info:
            groups.create_group(db_session, "Movie Night", "alice")

        assert exc_info.value.message == "Failed to create group and corresponding queues"
        assert count_rows(db_session, "groups") == 0
        assert count_rows(db_session, "group_members") == 0
        assert count_rows(db_session, "queues") == 6


class TestRenameAndList:
    """Tests for rename_group / list_groups_for_user."""

    def test_rename(self, db_session: Session):
        group = create_group(db_session)

        renamed = groups.rename_group(db_session, group.id, "Film Club")

        assert renamed.name == "Film Club"
        assert groups.get_group(db_session, group.id).name == "Film Club"

    def test_rename_unknown_group(self, db_session: Session):
        with pytest.raises(NotFoundError) as exc_info:
            groups.rename_group(db_session, "missing", "Film Club")

        assert exc_info.value.code == ApiErrorCode.E_GROUP_NOT_FOUND

    def test_list_all_groups(self, db_session: Session):
        create_group(db_session, "One", "alice")
        create_group(db_session, "Two", "bob")

        listed = groups.list_groups(db_session)

        assert {g.name for g in listed} == {"One", "Two"}

    def test_list_groups_for_user(self, db_session: Session):
        first = create_group(db_session, "One", "alice")
        create_group(db_session, "Two", "bob")
        create_user(db_session, "carol")
        groups.add_member(db_session, first.id, "carol")

        listed = groups.list_groups_for_user(db_session, "carol")

        assert [g.name for g in listed] == ["One"]
        assert listed[0].members == ["alice", "carol"]


class TestMembership:
    """Tests for add_member / leave_group."""

    def test_add_member_fans_out(self, db_session: Session):
        """A new member is added to every group queue."""
        group = create_group(db_session)
        create_user(db_session, "bob")

        updated = groups.add_member(db_session, group.id, "bob")

        assert updated.members == ["alice", "bob"]
        for media_type in ("Movie", "TV", "Album", "Book", "VideoGame", "Podcast"):
            assert group_queue(db_session, media_type, group.id).users == ["alice", "bob"]

    def test_add_member_twice_is_idempotent(self, db_session: Session):
        group = create_group(db_session)
        create_user(db_session, "bob")

        groups.add_member(db_session, group.id, "bob")
        updated = groups.add_member(db_session, group.id, "bob")

        assert updated.members == ["alice", "bob"]
        assert count_rows(db_session, "queue_users", username="bob") == 12

    def test_new_member_sees_group_queue(self, db_session: Session):
        """After joining, lookup by (media type, user, group) finds the shared queue."""
        group = create_group(db_session)
        create_user(db_session, "bob")
        groups.add_member(db_session, group.id, "bob")

        result = queues.get_queue_by_media_type_and_username_and_group(
            db_session, "TV", "bob", group.id
        )

        assert result.ok
        assert result.value.group == group.id

    def test_add_member_with_missing_group_queue(self, db_session: Session):
        """A missing group queue is reported; the membership is kept."""
        group = create_group(db_session)
        create_user(db_session, "bob")
        queues.delete_queue_by_media_type_and_group(db_session, "Book", group.id).unwrap()

        with pytest.raises(UpstreamStoreError) as exc_info:
            groups.add_member(db_session, group.id, "bob")

        assert "Book" in exc_info.value.message
        assert groups.get_group(db_session, group.id).members == ["alice", "bob"]
        assert group_queue(db_session, "Movie", group.id).users == ["alice", "bob"]

    def test_add_unknown_user(self, db_session: Session):
        group = create_group(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            groups.add_member(db_session, group.id, "nobody")

        assert exc_info.value.code == ApiErrorCode.E_USER_NOT_FOUND

    def test_leave_group_fans_in(self, db_session: Session):
        """Leaving removes the member from every group queue; queues persist."""
        group = create_group(db_session)
        create_user(db_session, "bob")
        groups.add_member(db_session, group.id, "bob")

        updated = groups.leave_group(db_session, group.id, "bob")

        assert updated.members == ["alice"]
        assert count_rows(db_session, "queues", group_id=group.id) == 6
        assert group_queue(db_session, "Movie", group.id).users == ["alice"]
        result = queues.get_queue_by_media_type_and_username_and_group(
            db_session, "Movie", "bob", group.id
        )
        assert result.code == ApiErrorCode.E_QUEUE_NOT_FOUND

    def test_last_member_leaving_keeps_group(self, db_session: Session):
        group = create_group(db_session)

        updated = groups.leave_group(db_session, group.id, "alice")

        assert updated.members == []
        assert group_queue(db_session, "Movie", group.id).users == []

    def test_leave_when_not_member(self, db_session: Session):
        group = create_group(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            groups.leave_group(db_session, group.id, "bob")

        assert exc_info.value.message == "User is not a member of this group"


class TestDeleteGroup:
    """Tests for delete_group."""

    def test_deletes_queues_and_memberships(self, db_session: Session):
        """Group rows and the six queues go; media counters stay until reconciled."""
        group = create_group(db_session)
        movie_queue = group_queue(db_session, "Movie", group.id)
        queues.add_media_to_queue(db_session, "Movie", movie_queue.id, MOVIE_BATMAN).unwrap()

        deleted = groups.delete_group(db_session, group.id)

        assert deleted.id == group.id
        assert count_rows(db_session, "groups") == 0
        assert count_rows(db_session, "group_members") == 0
        assert count_rows(db_session, "queues", group_id=group.id) == 0
        assert num_queues(db_session, "Movie", "414906") == 1

    def test_personal_queues_untouched(self, db_session: Session):
        group = create_group(db_session)

        groups.delete_group(db_session, group.id)

        assert count_rows(db_session, "queue_users", username="alice") == 6

    def test_unknown_group(self, db_session: Session):
        with pytest.raises(NotFoundError) as exc_info:
            groups.delete_group(db_session, "missing")

        assert exc_info.value.message == "Group not found"
