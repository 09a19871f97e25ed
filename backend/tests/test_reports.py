# tests/test_reports.py
import csv
import io
import zipfile

from fastapi.testclient import TestClient

from checkin_api.main import app

client = TestClient(app)


def _person(auth, first, role="member"):
    r = client.post("/api/users", json={"first_name": first, "last_name": "Tester", "role": role,
                                        "email": f"{first.lower()}@example.com"}, headers=auth)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _setup(auth):
    ushers = client.post("/api/ministries", json={"name": "Ushers & Greeters", "active": True}, headers=auth).json()["id"]
    client.post("/api/ministries", json={"name": "Old Choir", "active": False}, headers=auth)
    event_id = client.post("/api/events", json={"title": "Service", "event_date": "2026-04-05"},
                           headers=auth).json()["id"]

    present = _person(auth, "Present")
    absent = _person(auth, "Absent")
    _person(auth, "Loose")
    elder = _person(auth, "Overseer", role="elder")
    for ref in (f"user-{present}", f"user-{absent}", f"elder-{elder}"):
        client.put(f"/api/users/{ref}", json={"ministry_ids": [ushers]}, headers=auth)

    client.post("/api/checkins", json={"user_id": present, "event_id": event_id}, headers=auth)
    # an elder check-in leaves a NULL user_id in check_ins
    client.post("/api/checkins", json={"elder_id": elder, "event_id": event_id}, headers=auth)
    return {"ushers": ushers, "event": event_id, "elder": elder, "absent": absent}


def test_reports_require_auth():
    assert client.get("/api/reports/attendees").status_code == 401


def test_attendance_and_absence(auth):
    ids = _setup(auth)

    attendees = client.get("/api/reports/attendees", headers=auth).json()
    assert sorted(a["type"] for a in attendees) == ["elder", "user"]
    assert attendees[0]["event_date"] == "2026-04-05"

    present = client.get(f"/api/reports/ministry-attendance/{ids['ushers']}",
                         params={"event_id": ids["event"]}, headers=auth).json()
    assert [r["first_name"] for r in present] == ["Present"]

    absent = client.get(f"/api/reports/ministry-absent/{ids['event']}", headers=auth).json()
    assert [r["first_name"] for r in absent] == ["Absent"]

    overseen = client.get(f"/api/reports/elder/{ids['elder']}", headers=auth).json()
    assert [r["first_name"] for r in overseen] == ["Present"]
    assert overseen[0]["ministry_name"] == "Ushers & Greeters"

    missing = client.get(f"/api/reports/elder-absent/{ids['elder']}/{ids['event']}", headers=auth).json()
    assert [r["first_name"] for r in missing] == ["Absent"]

    roster = client.get(f"/api/reports/roster/{ids['ushers']}", headers=auth).json()
    assert sorted(r["first_name"] for r in roster) == ["Absent", "Present"]


def test_membership_reports(auth):
    ids = _setup(auth)
    loose = client.get("/api/reports/users-without-ministry", headers=auth).json()
    assert [r["first_name"] for r in loose] == ["Loose"]

    client.patch(f"/api/users/user-{ids['absent']}/active", json={"active": False}, headers=auth)
    inactive = client.get("/api/reports/inactive-members", headers=auth).json()
    assert inactive == [{
        "id": ids["absent"], "first_name": "Absent", "last_name": "Tester",
        "email": "absent@example.com", "phone": None, "active": False,
        "ministries": "Ushers & Greeters",
    }]

    active_names = [m["name"] for m in client.get("/api/reports/ministries", headers=auth).json()]
    assert active_names == ["Ushers & Greeters"]


def test_generate_all_zip(auth):
    ids = _setup(auth)
    r = client.post("/api/reports/generate-all", json={"event_id": ids["event"]}, headers=auth)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/zip"
    assert "all-ministries-reports.zip" in r.headers["content-disposition"]

    with zipfile.ZipFile(io.BytesIO(r.content)) as zf:
        names = sorted(zf.namelist())
        assert names == ["absent_Ushers_Greeters.csv", "attendance_Ushers_Greeters.csv"]
        attendance = list(csv.DictReader(io.StringIO(zf.read("attendance_Ushers_Greeters.csv").decode())))
        absent = list(csv.DictReader(io.StringIO(zf.read("absent_Ushers_Greeters.csv").decode())))

    assert [row["first_name"] for row in attendance] == ["Present"]
    assert attendance[0]["event_date"] == "2026-04-05"
    assert [row["first_name"] for row in absent] == ["Absent"]


def test_generate_all_with_no_rows_still_has_headers(auth):
    client.post("/api/ministries", json={"name": "Parking", "active": True}, headers=auth)
    r = client.post("/api/reports/generate-all", headers=auth)
    with zipfile.ZipFile(io.BytesIO(r.content)) as zf:
        header = zf.read("absent_Parking.csv").decode().strip()
    assert header == "first_name,last_name,email,phone"
