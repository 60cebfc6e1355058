"""Tests for participation request admission and cancellation."""
from tests.conftest import (
    create_published_event,
    create_test_event,
    create_test_user,
    request_participation,
)


def _event_state(client, event_id):
    return client.get(f"/events/{event_id}").json()


class TestCreate:
    def test_unlimited_event_confirms_immediately(self, client):
        owner = create_test_user(client, "Owner")
        guest = create_test_user(client, "Guest")
        ev = create_published_event(client, owner["id"], participant_limit=0, request_moderation=True)

        resp = request_participation(client, guest["id"], ev["id"])
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "CONFIRMED"
        assert data["requester_id"] == guest["id"]
        assert data["event_id"] == ev["id"]
        assert _event_state(client, ev["id"])["confirmed_requests"] == 1

    def test_without_moderation_confirms_immediately(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        ev = create_published_event(client, owner["id"], participant_limit=2, request_moderation=False)
        resp = request_participation(client, guest["id"], ev["id"])
        assert resp.json()["status"] == "CONFIRMED"

    def test_moderated_event_queues_request(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        ev = create_published_event(client, owner["id"], participant_limit=2, request_moderation=True)
        resp = request_participation(client, guest["id"], ev["id"])
        assert resp.status_code == 201
        assert resp.json()["status"] == "PENDING"
        assert _event_state(client, ev["id"])["confirmed_requests"] == 0

    def test_own_event_conflict(self, client):
        owner = create_test_user(client)
        ev = create_published_event(client, owner["id"])
        resp = request_participation(client, owner["id"], ev["id"])
        assert resp.status_code == 409
        assert "initiator" in resp.json()["message"]

    def test_unpublished_event_conflict(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        ev = create_test_event(client, owner["id"])
        assert request_participation(client, guest["id"], ev["id"]).status_code == 409

    def test_duplicate_conflict(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        ev = create_published_event(client, owner["id"], participant_limit=5)
        assert request_participation(client, guest["id"], ev["id"]).status_code == 201
        resp = request_participation(client, guest["id"], ev["id"])
        assert resp.status_code == 409
        assert "already" in resp.json()["message"]

    def test_request_again_after_cancel(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        ev = create_published_event(client, owner["id"], participant_limit=5)
        first = request_participation(client, guest["id"], ev["id"]).json()
        client.patch(f"/users/{guest['id']}/requests/{first['id']}/cancel")

        again = request_participation(client, guest["id"], ev["id"])
        assert again.status_code == 201
        assert again.json()["id"] != first["id"]

    def test_limit_reached_conflict(self, client):
        owner = create_test_user(client)
        first = create_test_user(client)
        second = create_test_user(client)
        ev = create_published_event(client, owner["id"], participant_limit=1, request_moderation=False)
        assert request_participation(client, first["id"], ev["id"]).status_code == 201
        resp = request_participation(client, second["id"], ev["id"])
        assert resp.status_code == 409
        assert "limit" in resp.json()["message"]
        assert _event_state(client, ev["id"])["confirmed_requests"] == 1

    def test_unknown_event_or_user(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        ev = create_published_event(client, owner["id"])
        assert request_participation(client, guest["id"], 9999).status_code == 404
        assert request_participation(client, 9999, ev["id"]).status_code == 404

    def test_event_id_is_required(self, client):
        guest = create_test_user(client)
        assert client.post(f"/users/{guest['id']}/requests").status_code == 400


class TestCancel:
    def test_cancel_pending(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        ev = create_published_event(client, owner["id"], participant_limit=3)
        req = request_participation(client, guest["id"], ev["id"]).json()

        resp = client.patch(f"/users/{guest['id']}/requests/{req['id']}/cancel")
        assert resp.status_code == 200
        assert resp.json()["status"] == "CANCELED"

    def test_cancel_confirmed_conflict(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        ev = create_published_event(client, owner["id"])
        req = request_participation(client, guest["id"], ev["id"]).json()
        assert req["status"] == "CONFIRMED"

        resp = client.patch(f"/users/{guest['id']}/requests/{req['id']}/cancel")
        assert resp.status_code == 409
        assert _event_state(client, ev["id"])["confirmed_requests"] == 1

    def test_cancel_rejected_request(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        ev = create_published_event(client, owner["id"], participant_limit=3)
        req = request_participation(client, guest["id"], ev["id"]).json()
        client.patch(
            f"/users/{owner['id']}/events/{ev['id']}/requests",
            json={"request_ids": [req["id"]], "status": "REJECTED"},
        )
        resp = client.patch(f"/users/{guest['id']}/requests/{req['id']}/cancel")
        assert resp.status_code == 200
        assert resp.json()["status"] == "CANCELED"

    def test_cancel_someone_elses_request(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        intruder = create_test_user(client)
        ev = create_published_event(client, owner["id"], participant_limit=3)
        req = request_participation(client, guest["id"], ev["id"]).json()
        resp = client.patch(f"/users/{intruder['id']}/requests/{req['id']}/cancel")
        assert resp.status_code == 403

    def test_cancel_unknown_request(self, client):
        guest = create_test_user(client)
        assert client.patch(f"/users/{guest['id']}/requests/9999/cancel").status_code == 404


class TestListings:
    def test_list_for_user(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        first = create_published_event(client, owner["id"])
        second = create_published_event(client, owner["id"], participant_limit=4)
        request_participation(client, guest["id"], first["id"])
        request_participation(client, guest["id"], second["id"])

        resp = client.get(f"/users/{guest['id']}/requests")
        assert resp.status_code == 200
        assert [r["event_id"] for r in resp.json()] == [first["id"], second["id"]]
        assert client.get(f"/users/{owner['id']}/requests").json() == []
        assert client.get("/users/9999/requests").status_code == 404

    def test_list_for_event_is_organizer_only(self, client):
        owner = create_test_user(client)
        guest = create_test_user(client)
        ev = create_published_event(client, owner["id"], participant_limit=4)
        req = request_participation(client, guest["id"], ev["id"]).json()

        resp = client.get(f"/users/{owner['id']}/events/{ev['id']}/requests")
        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()] == [req["id"]]
        assert client.get(f"/users/{guest['id']}/events/{ev['id']}/requests").status_code == 403
        assert client.get(f"/users/{owner['id']}/events/9999/requests").status_code == 404
