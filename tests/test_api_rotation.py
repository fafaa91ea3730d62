"""
HTTP-level tests for the coordinator API.

Covers status codes and payload shape for groups, participants, periods,
progress and the share endpoint, plus the error envelope:
400 malformed body, 404 unknown id, 409 already locked, 422 validation.
"""

import pytest

from tilawah.models import db
from tilawah.models.rotation import Assignment, Participant

SUNDAY = "2026-10-18"
NEXT_SUNDAY = "2026-10-25"
MONDAY = "2026-10-19"


def _make_group(client, name="Halaqah Subuh"):
    res = client.post("/api/v1/groups", json={"name": name})
    assert res.status_code == 201
    return res.get_json()


def _enroll(client, group_id, *names):
    res = client.post(
        f"/api/v1/groups/{group_id}/participants/bulk",
        json={"participants": [{"name": n} for n in names]},
    )
    assert res.status_code == 201
    return res.get_json()


def _open(client, group_id, start=SUNDAY):
    return client.post(f"/api/v1/groups/{group_id}/periods", json={"start_date": start})


# ═════════════════════════════════════════════════════════════════════════════
# Groups
# ═════════════════════════════════════════════════════════════════════════════


class TestGroupApi:

    def test_create_returns_token(self, client):
        data = _make_group(client)
        assert data["name"] == "Halaqah Subuh"
        assert len(data["public_token"]) == 32
        assert data["public_token"].isalnum()

    def test_tokens_differ_between_groups(self, client):
        first = _make_group(client, "Group One")
        second = _make_group(client, "Group Two")
        assert first["public_token"] != second["public_token"]

    @pytest.mark.parametrize("payload", [{}, {"name": ""}, {"name": "ab"}, {"name": 42}])
    def test_create_invalid_name_422(self, client, payload):
        res = client.post("/api/v1/groups", json=payload)
        assert res.status_code == 422
        assert "error" in res.get_json()

    def test_create_non_json_body_400(self, client):
        res = client.post("/api/v1/groups", data="name=x", content_type="text/plain")
        assert res.status_code == 400

    def test_list_includes_counts(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A", "B")
        _open(client, group["id"])

        listed = client.get("/api/v1/groups").get_json()
        assert len(listed) == 1
        assert listed[0]["participant_count"] == 2
        assert listed[0]["period_count"] == 1
        assert listed[0]["has_active_period"] is True

    def test_detail_includes_latest_period(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A")
        _open(client, group["id"])
        detail = client.get(f"/api/v1/groups/{group['id']}").get_json()
        assert detail["latest_period"]["period_number"] == 1

    def test_rename(self, client):
        group = _make_group(client)
        res = client.patch(f"/api/v1/groups/{group['id']}", json={"name": "Halaqah Maghrib"})
        assert res.status_code == 200
        assert res.get_json()["name"] == "Halaqah Maghrib"
        assert res.get_json()["public_token"] == group["public_token"]

    def test_delete_cascades(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A", "B")
        _open(client, group["id"])

        res = client.delete(f"/api/v1/groups/{group['id']}")
        assert res.status_code == 200
        assert res.get_json() == {"deleted": True}
        assert client.get(f"/api/v1/groups/{group['id']}").status_code == 404
        assert db.session.query(Participant).count() == 0
        assert db.session.query(Assignment).count() == 0

    def test_unknown_group_404(self, client):
        res = client.get("/api/v1/groups/999")
        assert res.status_code == 404
        assert "not found" in res.get_json()["error"]


# ═════════════════════════════════════════════════════════════════════════════
# Participants
# ═════════════════════════════════════════════════════════════════════════════


class TestParticipantApi:

    def test_enroll_without_period(self, client):
        group = _make_group(client)
        res = client.post(
            f"/api/v1/groups/{group['id']}/participants",
            json={"name": "Maryam", "contact": "081234567890"},
        )
        assert res.status_code == 201
        data = res.get_json()
        assert data["participant"]["contact"] == "+081234567890"
        assert data["assignment"] is None

    def test_enroll_during_active_period(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A", "B", "C")
        _open(client, group["id"])

        res = client.post(f"/api/v1/groups/{group['id']}/participants", json={"name": "D"})
        assert res.status_code == 201
        assert res.get_json()["assignment"]["slot_number"] == 4

    def test_duplicate_name_422(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "Hafsah")
        res = client.post(f"/api/v1/groups/{group['id']}/participants", json={"name": "hafsah"})
        assert res.status_code == 422
        assert res.get_json()["details"] == {"name": "hafsah"}

    def test_bulk_response_shape(self, client):
        group = _make_group(client)
        data = _enroll(client, group["id"], "A", "B", "C")
        assert data["count"] == 3
        assert [p["participant"]["name"] for p in data["participants"]] == ["A", "B", "C"]

    def test_bulk_empty_422(self, client):
        group = _make_group(client)
        res = client.post(f"/api/v1/groups/{group['id']}/participants/bulk", json={"participants": []})
        assert res.status_code == 422

    def test_list_and_include_inactive(self, client):
        group = _make_group(client)
        data = _enroll(client, group["id"], "A", "B")
        b_id = data["participants"][1]["participant"]["id"]
        assert client.delete(f"/api/v1/participants/{b_id}").status_code == 200

        active = client.get(f"/api/v1/groups/{group['id']}/participants").get_json()
        assert [p["name"] for p in active] == ["A"]
        everyone = client.get(
            f"/api/v1/groups/{group['id']}/participants?include_inactive=true"
        ).get_json()
        assert len(everyone) == 2

    def test_update_participant(self, client):
        group = _make_group(client)
        pid = _enroll(client, group["id"], "A")["participants"][0]["participant"]["id"]
        res = client.patch(f"/api/v1/participants/{pid}", json={"name": "Abdullah"})
        assert res.status_code == 200
        assert client.get(f"/api/v1/participants/{pid}").get_json()["name"] == "Abdullah"

    def test_unknown_participant_404(self, client):
        assert client.get("/api/v1/participants/404").status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# Periods
# ═════════════════════════════════════════════════════════════════════════════


class TestPeriodApi:

    def test_open_period_201(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A", "B")
        res = _open(client, group["id"])
        assert res.status_code == 201
        data = res.get_json()
        assert data["end_date"] == "2026-10-24"
        assert data["assignment_count"] == 2

    def test_open_wrong_weekday_422(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A")
        res = _open(client, group["id"], MONDAY)
        assert res.status_code == 422
        assert "Sunday" in res.get_json()["error"]

    def test_open_second_active_422(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A")
        assert _open(client, group["id"]).status_code == 201
        res = _open(client, group["id"], NEXT_SUNDAY)
        assert res.status_code == 422
        assert "already an active period" in res.get_json()["error"]

    def test_open_without_participants_422(self, client):
        group = _make_group(client)
        assert _open(client, group["id"]).status_code == 422

    def test_open_missing_start_date_422(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A")
        res = client.post(f"/api/v1/groups/{group['id']}/periods", json={})
        assert res.status_code == 422

    def test_open_unknown_group_404(self, client):
        assert _open(client, 12345).status_code == 404

    def test_detail_groups_by_slot(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A", "B")
        period = _open(client, group["id"]).get_json()

        data = client.get(f"/api/v1/periods/{period['id']}").get_json()
        assert data["stats"]["total"] == 2
        assert len(data["by_slot"]) == 30
        assert data["by_slot"]["1"][0]["participant"]["name"] == "A"

    def test_lock_then_relock_409(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A", "B")
        period = _open(client, group["id"]).get_json()

        res = client.post(f"/api/v1/periods/{period['id']}/lock")
        assert res.status_code == 200
        assert res.get_json()["status_counts"] == {"completed": 0, "pending": 0, "missed": 2}

        again = client.post(f"/api/v1/periods/{period['id']}/lock")
        assert again.status_code == 409
        assert again.get_json()["code"] == "already_locked"

    def test_lock_unknown_period_404(self, client):
        assert client.post("/api/v1/periods/999/lock").status_code == 404

    def test_list_periods_limit(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A")
        first = _open(client, group["id"]).get_json()
        client.post(f"/api/v1/periods/{first['id']}/lock")
        _open(client, group["id"], NEXT_SUNDAY)

        assert len(client.get(f"/api/v1/groups/{group['id']}/periods").get_json()) == 2
        limited = client.get(f"/api/v1/groups/{group['id']}/periods?limit=1").get_json()
        assert [p["period_number"] for p in limited] == [2]

    def test_share(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A")
        period = _open(client, group["id"]).get_json()
        res = client.post(f"/api/v1/periods/{period['id']}/share", json={"custom_message": "Ayo!"})
        assert res.status_code == 200
        data = res.get_json()
        assert "Halaqah Subuh" in data["text"]
        assert data["url"].startswith("https://wa.me/")


# ═════════════════════════════════════════════════════════════════════════════
# Progress
# ═════════════════════════════════════════════════════════════════════════════


class TestProgressApi:

    def _assignment_id(self, client):
        group = _make_group(client)
        _enroll(client, group["id"], "A")
        period = _open(client, group["id"]).get_json()
        detail = client.get(f"/api/v1/periods/{period['id']}").get_json()
        return detail["assignments"][0]["id"], period["id"]

    def test_set_status(self, client):
        assignment_id, _ = self._assignment_id(client)
        res = client.patch(f"/api/v1/progress/{assignment_id}", json={"status": "completed"})
        assert res.status_code == 200
        assert res.get_json()["status"] == "completed"

    def test_invalid_status_422(self, client):
        assignment_id, _ = self._assignment_id(client)
        res = client.patch(f"/api/v1/progress/{assignment_id}", json={"status": "done"})
        assert res.status_code == 422

    @pytest.mark.parametrize("status", [["completed"], {"value": "completed"}, 3])
    def test_non_string_status_422(self, client, status):
        assignment_id, _ = self._assignment_id(client)
        res = client.patch(f"/api/v1/progress/{assignment_id}", json={"status": status})
        assert res.status_code == 422
        assert "Invalid status" in res.get_json()["error"]

    def test_set_slot(self, client):
        assignment_id, _ = self._assignment_id(client)
        res = client.patch(f"/api/v1/progress/{assignment_id}/slot", json={"slot_number": 17})
        assert res.status_code == 200
        assert res.get_json()["slot_number"] == 17

    def test_slot_out_of_range_422(self, client):
        assignment_id, _ = self._assignment_id(client)
        res = client.patch(f"/api/v1/progress/{assignment_id}/slot", json={"slot_number": 31})
        assert res.status_code == 422

    def test_locked_period_422(self, client):
        assignment_id, period_id = self._assignment_id(client)
        client.post(f"/api/v1/periods/{period_id}/lock")
        res = client.patch(f"/api/v1/progress/{assignment_id}", json={"status": "completed"})
        assert res.status_code == 422
        assert "locked" in res.get_json()["error"]

    def test_unknown_assignment_404(self, client):
        res = client.patch("/api/v1/progress/999", json={"status": "completed"})
        assert res.status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# Health / app-level errors
# ═════════════════════════════════════════════════════════════════════════════


class TestHealthAndErrors:

    def test_ready(self, client):
        assert client.get("/api/v1/health/ready").get_json() == {"status": "ok"}

    def test_live_checks_database(self, client):
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        assert res.get_json()["checks"]["database"]["status"] == "ok"

    def test_unknown_route_json_404(self, client):
        res = client.get("/api/v1/nothing-here")
        assert res.status_code == 404
        assert res.is_json

    def test_method_not_allowed_405(self, client):
        assert client.put("/api/v1/groups").status_code == 405

    def test_request_id_header(self, client):
        res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers
