import pytest

from src.shift_tracker.shift_tracker import create_app

HQ = {"latitude": 10.7769, "longitude": 106.7009, "address": "HQ"}


@pytest.fixture()
def app():
    return create_app("config.testing")


@pytest.fixture()
def client(app):
    return app.test_client()


def login(client, user_id, role="employee"):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role


def test_requires_login(client):
    resp = client.get("/api/shifts/current")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHENTICATED"


def test_employee_day_over_http(client):
    login(client, 3)

    assert client.get("/api/shifts/current").get_json() == {"active": False}

    resp = client.post("/api/shifts/start", json=HQ)
    assert resp.status_code == 201
    shift = resp.get_json()["shift"]
    assert shift["status"] == "ACTIVE"
    assert shift["startTime"]["location"]["address"] == "HQ"

    resp = client.post("/api/shifts/break/start", json={**HQ, "type": "Lunch"})
    assert resp.status_code == 200
    assert resp.get_json()["breakDetails"]["type"] == "LUNCH"

    live = client.get("/api/shifts/live").get_json()
    assert live["active"] is True
    assert live["live"]["workMinutes"] >= 0

    resp = client.post("/api/shifts/break/end", json=HQ)
    assert resp.status_code == 200
    assert resp.get_json()["exceeded"] is False

    resp = client.post("/api/shifts/end", json={**HQ, "notes": "quiet day"})
    assert resp.status_code == 200
    body = resp.get_json()["shift"]
    assert body["status"] == "COMPLETED"
    assert body["notes"] == "quiet day"

    history = client.get("/api/shifts/history").get_json()
    assert history["pagination"]["total"] == 1
    detail = client.get(f"/api/shifts/{body['id']}")
    assert detail.status_code == 200
    assert detail.get_json()["success"] is True
    assert detail.get_json()["shift"]["id"] == body["id"]

    kinds = [n["type"] for n in client.get("/api/notifications").get_json()["data"]]
    assert kinds == ["shift_completed"]


@pytest.mark.parametrize(
    "path, body, status, code",
    [
        ("/api/shifts/break/start", {**HQ, "type": "short"}, 404, "NO_ACTIVE_SHIFT"),
        ("/api/shifts/break/end", HQ, 404, "NO_ACTIVE_SHIFT"),
        ("/api/shifts/end", HQ, 404, "NO_ACTIVE_SHIFT"),
        ("/api/shifts/start", {"latitude": 95, "longitude": 0}, 400, "VALIDATION_ERROR"),
        ("/api/shifts/start", {"longitude": 0}, 400, "VALIDATION_ERROR"),
    ],
)
def test_rejected_actions(client, path, body, status, code):
    login(client, 3)
    resp = client.post(path, json=body)
    assert resp.status_code == status
    assert resp.get_json()["error"] == code
    assert resp.get_json()["success"] is False


def test_duplicate_start_and_bad_break_type(client):
    login(client, 3)
    client.post("/api/shifts/start", json=HQ)

    resp = client.post("/api/shifts/start", json=HQ)
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "DUPLICATE_ACTIVE_SHIFT"

    resp = client.post("/api/shifts/break/start", json={**HQ, "type": "nap"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_BREAK_TYPE"


def test_end_break_without_open_break(client):
    login(client, 3)
    client.post("/api/shifts/start", json=HQ)

    resp = client.post("/api/shifts/break/end", json=HQ)
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "NO_OPEN_BREAK"


def test_stats_endpoint(client):
    login(client, 3)
    assert client.get("/api/shifts/stats/week?date=2025-03-03").get_json()["startDate"] == "2025-03-02"
    assert client.get("/api/shifts/stats/year").status_code == 400
    assert client.get("/api/shifts/stats/day?date=03/03/2025").status_code == 400


def test_admin_routes(client):
    login(client, 3)
    shift_id = client.post("/api/shifts/start", json=HQ).get_json()["shift"]["id"]

    assert client.get("/api/admin/shifts").status_code == 403

    login(client, 1, role="admin")
    listing = client.get("/api/admin/shifts?employeeId=3").get_json()
    assert listing["pagination"]["total"] == 1

    resp = client.put(f"/api/admin/shifts/{shift_id}", json={"notes": "checked"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["notes"] == "checked"

    assert client.put(f"/api/admin/shifts/{shift_id}", json={}).status_code == 400
    assert client.delete(f"/api/admin/shifts/{shift_id}").status_code == 200
    assert client.get(f"/api/admin/shifts/{shift_id}").status_code == 404


def test_other_employees_shift_is_not_found(client):
    login(client, 3)
    shift_id = client.post("/api/shifts/start", json=HQ).get_json()["shift"]["id"]

    login(client, 4)
    assert client.get(f"/api/shifts/{shift_id}").status_code == 404
    assert client.put(f"/api/shifts/{shift_id}/notes", json={"notes": "x"}).status_code == 404


def test_admin_active_shifts_carry_live_durations(client):
    login(client, 3)
    client.post("/api/shifts/start", json=HQ)
    login(client, 4)
    client.post("/api/shifts/start", json=HQ)
    client.post("/api/shifts/break/start", json={**HQ, "type": "short"})
    login(client, 5)
    client.post("/api/shifts/start", json=HQ)
    client.post("/api/shifts/end", json=HQ)

    assert client.get("/api/admin/shifts/active").status_code == 403

    login(client, 1, role="admin")
    body = client.get("/api/admin/shifts/active").get_json()
    assert body["count"] == 2
    assert {s["employeeId"]: s["status"] for s in body["data"]} == {3: "ACTIVE", 4: "ON_BREAK"}
    assert all(s["live"]["workMinutes"] >= 0 for s in body["data"])


def test_mark_read_of_missing_or_foreign_notification_is_not_found(client):
    login(client, 3)
    client.post("/api/shifts/start", json=HQ)
    client.post("/api/shifts/end", json=HQ)
    nid = client.get("/api/notifications").get_json()["data"][0]["id"]

    resp = client.put("/api/notifications/999/read")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NOTIFICATION_NOT_FOUND"

    login(client, 4)
    resp = client.put(f"/api/notifications/{nid}/read")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NOTIFICATION_NOT_FOUND"

    login(client, 3)
    assert client.put(f"/api/notifications/{nid}/read").status_code == 200
    assert client.get("/api/notifications?unread=1").get_json()["count"] == 0
