# tests/test_events_checkins.py
from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from checkin_api.db import SessionLocal
from checkin_api.main import app
from checkin_api.services import events as events_svc

client = TestClient(app)


def _event(auth, **overrides):
    payload = {"title": "Sunday Service", "event_date": "2026-03-01", "event_time": "09:00", "location": "Main Hall"}
    payload.update(overrides)
    r = client.post("/api/events", json=payload, headers=auth)
    assert r.status_code == 201, r.text
    return r.json()


def test_event_date_and_time_are_normalized(auth):
    ev = _event(auth, event_date="2026-03-09T00:00:00Z", event_time="18:30:45")
    assert ev["event_date"] == "2026-03-09"
    assert ev["event_time"] == "18:30"

    r = client.get(f"/api/events/{ev['id']}")
    assert r.json()["event_date"] == "2026-03-09"


def test_event_requires_title_and_date(auth):
    r = client.post("/api/events", json={"title": "No date"}, headers=auth)
    assert r.status_code == 400
    assert r.json()["detail"] == "title and event_date are required"

    r = client.post("/api/events", json={"title": "x", "event_date": "2026-03-01", "event_time": "soon"}, headers=auth)
    assert r.status_code == 400


def test_event_writes_need_auth():
    r = client.post("/api/events", json={"title": "x", "event_date": "2026-03-01"})
    assert r.status_code == 401


def test_list_is_newest_first_with_untimed_last(auth):
    _event(auth, title="old", event_date="2026-01-01")
    _event(auth, title="untimed", event_date="2026-02-01", event_time=None)
    _event(auth, title="timed", event_date="2026-02-01", event_time="10:00")
    titles = [e["title"] for e in client.get("/api/events").json()]
    assert titles == ["timed", "untimed", "old"]


def test_upcoming_includes_the_last_hour(auth):
    now = datetime(2026, 5, 10, 12, 0)
    _event(auth, title="started", event_date="2026-05-10", event_time="11:30")
    _event(auth, title="too old", event_date="2026-05-10", event_time="10:30")
    _event(auth, title="tomorrow", event_date="2026-05-11", event_time=None)
    with SessionLocal() as s:
        titles = [ev.title for ev in events_svc.upcoming(s, now)]
    assert titles == ["started", "tomorrow"]


def test_checkin_duplicate_is_409(auth):
    ev = _event(auth)
    uid = client.post("/api/users", json={"first_name": "A", "last_name": "B", "role": "member"},
                      headers=auth).json()["id"]

    r = client.post("/api/checkins", json={"user_id": uid, "event_id": ev["id"]}, headers=auth)
    assert r.status_code == 201, r.text
    assert r.json()["checkin"]["is_elder"] is False

    r = client.post("/api/checkins", json={"user_id": uid, "event_id": ev["id"]}, headers=auth)
    assert r.status_code == 409
    assert r.json()["duplicate"] is True
    assert r.json()["user_id"] == uid


def test_checkin_validation(auth):
    ev = _event(auth)
    r = client.post("/api/checkins", json={"event_id": ev["id"]}, headers=auth)
    assert r.status_code == 400
    r = client.post("/api/checkins", json={"user_id": 42, "event_id": ev["id"]}, headers=auth)
    assert r.json()["detail"] == "Invalid user or elder ID."
    uid = client.post("/api/users", json={"first_name": "A", "last_name": "B", "role": "member"},
                      headers=auth).json()["id"]
    r = client.post("/api/checkins", json={"user_id": uid, "event_id": 999}, headers=auth)
    assert r.json()["detail"] == "Invalid event ID."


def test_elder_checkin_detail_and_bulk_checkout(auth):
    ev = _event(auth)
    eid = client.post("/api/users", json={"first_name": "Rosa", "last_name": "S", "role": "elder"},
                      headers=auth).json()["id"]
    r = client.post("/api/checkins", json={"elder_id": eid, "user_id": 77, "event_id": ev["id"]}, headers=auth)
    assert r.status_code == 201, r.text
    checkin = r.json()["checkin"]
    assert checkin["elder_id"] == eid
    assert checkin["is_elder"] is True

    detailed = client.get(f"/api/checkins/event/{ev['id']}/detailed", headers=auth).json()
    assert detailed[0]["elder_first_name"] == "Rosa"
    assert detailed[0]["event_time"] == "09:00"

    r = client.post("/api/checkins/bulk-checkout", json={"ids": [checkin["id"], 999]}, headers=auth)
    assert r.json()["removed"] == 1
    assert client.post("/api/checkins/bulk-checkout", json={"ids": "1"}, headers=auth).status_code == 400
    assert client.get("/api/checkins/all", headers=auth).json() == []


def test_dashboard_summary(auth):
    today = datetime.now().date()
    ev = _event(auth, event_date=str(today + timedelta(days=1)))
    uid = client.post("/api/users", json={"first_name": "A", "last_name": "B", "role": "member"},
                      headers=auth).json()["id"]
    client.post("/api/checkins", json={"user_id": uid, "event_id": ev["id"]}, headers=auth)

    body = client.get("/api/dashboard", headers=auth).json()
    assert body["stats"]["totalUsers"] == 1
    assert body["stats"]["checkInsToday"] == 1
    assert body["stats"]["upcomingEvents"] >= 1
    assert body["upcomingEvents"][0]["title"] == "Sunday Service"
