"""HTTP tests for the queue, media, user, group and invitation routes.

Tests cover:
- Success and error envelopes
- Engine failures mapped to their HTTP status
- An end-to-end group flow through the API
"""

from fastapi.testclient import TestClient

from tests.fixtures import MOVIE_BATMAN, MOVIE_DUNE


def _sign_up(client: TestClient, username: str = "alice") -> dict:
    response = client.post("/users", json={"username": username})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _personal_queue(client: TestClient, media_type: str = "Movie", username: str = "alice"):
    response = client.get(f"/queues/{media_type}", params={"username": username})
    assert response.status_code == 200, response.text
    return response.json()["data"]


class TestQueueRoutes:
    """Tests for /queues."""

    def test_get_personal_queue(self, client: TestClient):
        _sign_up(client)

        queue = _personal_queue(client)

        assert queue["users"] == ["alice"]
        assert queue["group"] is None
        assert queue["media"] == "MovieModel"
        assert queue["current"] == []

    def test_enqueue_and_duplicate(self, client: TestClient):
        """Second enqueue of the same id is a 409 with the duplicate message."""
        _sign_up(client)
        queue_id = _personal_queue(client)["id"]

        first = client.post(f"/queues/Movie/{queue_id}/media", json=MOVIE_BATMAN)
        second = client.post(f"/queues/Movie/{queue_id}/media", json=MOVIE_BATMAN)

        assert first.status_code == 200
        assert first.json()["data"]["current"] == ["414906"]
        assert first.json()["data"]["current_media"][0]["title"] == "The Batman"
        assert second.status_code == 409
        error = second.json()["error"]
        assert error["code"] == "E_MEDIA_ALREADY_IN_QUEUE"
        assert error["message"] == "Media already in queue"

    def test_invalid_media_type(self, client: TestClient):
        response = client.get("/queues/Comic", params={"username": "alice"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_INVALID_MEDIA_TYPE"

    def test_queue_not_found(self, client: TestClient):
        response = client.get("/queues/Movie", params={"username": "nobody"})

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "E_QUEUE_NOT_FOUND"
        assert error["message"].startswith("Movie Queue not found")

    def test_unknown_queue_id(self, client: TestClient):
        response = client.get("/queues/Movie/missing")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Queue not found"

    def test_queue_id_of_another_media_type(self, client: TestClient):
        _sign_up(client)
        queue_id = _personal_queue(client)["id"]

        response = client.get(f"/queues/Book/{queue_id}")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_INVALID_MEDIA_TYPE"

    def test_missing_username(self, client: TestClient):
        response = client.get("/queues/Movie")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_INVALID_REQUEST"

    def test_move_preview_and_delete(self, client: TestClient):
        """History move, history preview and a history delete through the API."""
        _sign_up(client)
        queue_id = _personal_queue(client)["id"]
        client.post(f"/queues/Movie/{queue_id}/media", json=MOVIE_BATMAN)
        client.post(f"/queues/Movie/{queue_id}/media", json=MOVIE_DUNE)

        moved = client.post(f"/queues/Movie/{queue_id}/history", json={"media_ids": ["414906"]})
        assert moved.status_code == 200
        assert moved.json()["data"]["current"] == ["438631"]
        assert moved.json()["data"]["history"] == ["414906"]

        preview = client.get(
            "/queues/Movie/top", params={"username": "alice", "bucket": "history"}
        )
        assert preview.status_code == 200
        assert preview.json()["data"]["history"] == ["414906"]
        assert preview.json()["data"]["current"] == []

        deleted = client.delete(f"/queues/Movie/{queue_id}/history/414906")
        assert deleted.status_code == 200
        assert deleted.json()["data"]["history"] == []

    def test_move_requires_ids(self, client: TestClient):
        _sign_up(client)
        queue_id = _personal_queue(client)["id"]

        response = client.post(f"/queues/Movie/{queue_id}/history", json={"media_ids": []})

        assert response.status_code == 400

    def test_enqueue_payload_without_id(self, client: TestClient):
        _sign_up(client)
        queue_id = _personal_queue(client)["id"]

        response = client.post(f"/queues/Movie/{queue_id}/media", json={"title": "No id"})

        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("Invalid movie payload")

    def test_delete_from_missing_queue(self, client: TestClient):
        response = client.delete("/queues/Movie/missing/current/414906")

        assert response.status_code == 404
        assert response.json()["error"]["message"].startswith(
            "Failed to delete media from current queue"
        )


class TestMediaRoutes:
    """Tests for /media."""

    def test_popular_empty(self, client: TestClient):
        response = client.get("/media/Podcast/popular")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "No popular podcasts found."

    def test_popular_and_single_record(self, client: TestClient):
        _sign_up(client)
        queue_id = _personal_queue(client)["id"]
        client.post(f"/queues/Movie/{queue_id}/media", json=MOVIE_BATMAN)

        popular = client.get("/media/Movie/popular", params={"limit": 1})
        record = client.get("/media/Movie/414906")

        assert popular.status_code == 200
        assert popular.json()["data"][0]["num_queues"] == 1
        assert record.json()["data"]["title"] == "The Batman"


class TestUserRoutes:
    """Tests for /users."""

    def test_duplicate_sign_up(self, client: TestClient):
        _sign_up(client)

        response = client.post("/users", json={"username": "alice"})

        assert response.status_code == 409
        assert response.json()["error"]["message"] == "User already exists"

    def test_get_list_and_delete(self, client: TestClient):
        _sign_up(client)
        _sign_up(client, "bob")

        assert client.get("/users/alice").json()["data"]["username"] == "alice"
        assert len(client.get("/users").json()["data"]) == 2

        updated = client.patch("/users/alice", json={"first_name": "Alice"})
        assert updated.json()["data"]["first_name"] == "Alice"
        renamed = client.patch("/users/alice", json={"username": "carol"})
        assert renamed.status_code == 400

        assert client.delete("/users/alice").status_code == 200
        assert client.get("/users/alice").status_code == 404
        assert client.get("/queues/Movie", params={"username": "alice"}).status_code == 404


class TestGroupFlow:
    """End-to-end group, invitation and shared-queue flow."""

    def test_invite_accept_and_leave(self, client: TestClient):
        _sign_up(client)
        _sign_up(client, "bob")

        created = client.post("/groups", json={"name": "Movie Night", "creator": "alice"})
        assert created.status_code == 201
        group_id = created.json()["data"]["id"]

        invited = client.post(
            "/invitations",
            json={"group_id": group_id, "invited_by": "alice", "invited_user": "bob"},
        )
        assert invited.status_code == 201
        invitation_id = invited.json()["data"]["id"]
        pending = client.get("/invitations", params={"username": "bob"}).json()["data"]
        assert [i["id"] for i in pending] == [invitation_id]

        accepted = client.put(f"/invitations/{invitation_id}", json={"status": "accepted"})
        assert accepted.json()["data"]["status"] == "accepted"

        shared = client.get("/queues/TV", params={"username": "bob", "group_id": group_id})
        assert shared.status_code == 200
        assert shared.json()["data"]["users"] == ["alice", "bob"]

        left = client.post(f"/groups/{group_id}/leave", json={"username": "bob"})
        assert left.json()["data"]["members"] == ["alice"]
        gone = client.get("/queues/TV", params={"username": "bob", "group_id": group_id})
        assert gone.status_code == 404

    def test_rename_list_and_delete(self, client: TestClient):
        _sign_up(client)
        created = client.post("/groups", json={"name": "One", "creator": "alice"})
        group_id = created.json()["data"]["id"]

        renamed = client.patch(f"/groups/{group_id}", json={"name": "Two"})
        listed = client.get("/groups", params={"username": "alice"})

        assert renamed.json()["data"]["name"] == "Two"
        assert [g["name"] for g in listed.json()["data"]] == ["Two"]
        assert [g["id"] for g in client.get("/groups").json()["data"]] == [group_id]
        assert client.delete(f"/groups/{group_id}").status_code == 200
        assert client.get(f"/groups/{group_id}").status_code == 404

    def test_invalid_invitation_status(self, client: TestClient):
        response = client.put("/invitations/whatever", json={"status": "maybe"})

        assert response.status_code == 400
