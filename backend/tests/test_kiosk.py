# tests/test_kiosk.py
from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy import select

from checkin_api.db import SessionLocal
from checkin_api.main import app
from checkin_api.models.admin import Kiosk
from checkin_api.models.checkin import CheckIn
from checkin_api.services import kiosk as kiosk_svc

client = TestClient(app)


def _kiosk_headers(code=None):
    r = client.post("/api/kiosk/session/start", json={"kiosk_code": code} if code else {})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


def _seed(auth):
    fid = client.post("/api/families", json={"family_name": "Santos"}, headers=auth).json()["id"]
    client.post("/api/users", json={"first_name": "Ana", "last_name": "Santos", "role": "member",
                                    "family_id": fid, "phone": "0917-111-2222"}, headers=auth)
    client.post("/api/users", json={"first_name": "Rey", "last_name": "Santos", "role": "elder",
                                    "family_id": fid}, headers=auth)
    client.post("/api/users", json={"first_name": "Lone", "last_name": "Santos", "role": "member"}, headers=auth)
    today = datetime.now().date()
    r = client.post("/api/events", json={"title": "Prayer Night", "event_date": str(today + timedelta(days=1)),
                                         "location": "Chapel"}, headers=auth)
    return r.json()["id"]


def test_session_code_must_be_known_and_active(db):
    db.add_all([Kiosk(code="LOBBY", name="Lobby", is_active=True), Kiosk(code="OLD", is_active=False)])
    db.commit()

    r = client.post("/api/kiosk/session/start", json={"kiosk_code": "LOBBY"})
    assert r.status_code == 200
    assert r.json()["kiosk"]["id"] is not None

    assert client.post("/api/kiosk/session/start", json={"kiosk_code": "OLD"}).status_code == 401
    r = client.post("/api/kiosk/session/start")
    assert r.json()["kiosk"]["anonymous"] is True


def test_kiosk_routes_reject_staff_tokens(auth):
    assert client.get("/api/kiosk/events", headers=auth).status_code == 403
    assert client.get("/api/kiosk/events").status_code == 401


def test_search_groups_by_family(auth):
    _seed(auth)
    headers = _kiosk_headers()
    groups = client.get("/api/kiosk/search", params={"q": "santos"}, headers=headers).json()
    assert [g["label"] for g in groups] == ["Santos", kiosk_svc.NO_FAMILY_LABEL]
    assert {m["id"] for m in groups[0]["members"]} == {"member-1", "elder-1"}
    assert groups[1]["members"][0]["last_checkin"] is None

    by_phone = client.get("/api/kiosk/search", params={"q": "1112222", "mode": "phone"}, headers=headers).json()
    assert [m["first_name"] for g in by_phone for m in g["members"]] == ["Ana"]
    assert client.get("/api/kiosk/search", params={"q": "  "}, headers=headers).json() == []


def test_checkin_then_search_shows_last_checkin(auth):
    event_id = _seed(auth)
    headers = _kiosk_headers()

    r = client.post("/api/kiosk/checkins", json={"event_id": event_id, "entity_id": "elder-1"}, headers=headers)
    assert r.status_code == 201, r.text
    assert r.json()["checkin"]["location"] == "Chapel"

    # second attempt is a no-op
    r = client.post("/api/kiosk/checkins", json={"event_id": event_id, "entity_id": "elder-1"}, headers=headers)
    assert r.json()["checkin"] is None

    with SessionLocal() as s:
        row = s.execute(select(CheckIn)).scalars().one()
        assert row.elder_id == 1 and row.is_elder is True

    groups = client.get("/api/kiosk/search", params={"q": "rey", "event_id": event_id}, headers=headers).json()
    last = groups[0]["members"][0]["last_checkin"]
    assert last["checked_in"] is True
    assert last["event"]["title"] == "Prayer Night"
    assert last["venue"] == "Chapel"


def test_bulk_checkin_and_checkout(auth):
    event_id = _seed(auth)
    headers = _kiosk_headers()

    r = client.post("/api/kiosk/checkins/bulk",
                    json={"event_id": event_id, "entity_ids": ["member-1", "elder-1", "member-99"]},
                    headers=headers)
    assert r.status_code == 201, r.text
    assert r.json() == {"ok": True, "inserted": 2, "skipped": 1}

    r = client.post("/api/kiosk/checkins/bulk", json={"event_id": 999, "entity_ids": ["member-1"]}, headers=headers)
    assert r.status_code == 400

    r = client.post("/api/kiosk/checkouts/bulk", json={"event_id": event_id, "entity_ids": ["member-1", "member-2"]},
                    headers=headers)
    assert r.json() == {"ok": True, "affected": 1}


def test_recent_events_window_and_order(auth):
    now = datetime(2026, 5, 10, 10, 0)
    for title, d, t in [("stale", "2026-05-09", "07:00"), ("morning", "2026-05-10", "09:00"),
                        ("all day", "2026-05-10", None), ("later", "2026-05-11", "08:00")]:
        client.post("/api/events", json={"title": title, "event_date": d, "event_time": t}, headers=auth)
    with SessionLocal() as s:
        titles = [e["title"] for e in kiosk_svc.recent_events(s, now)]
    assert titles == ["all day", "morning", "later"]


def test_clamp_limit():
    assert kiosk_svc.clamp_limit(None) == 50
    assert kiosk_svc.clamp_limit("500") == 100
    assert kiosk_svc.clamp_limit("0") == 1
    assert kiosk_svc.clamp_limit("abc") == 50
