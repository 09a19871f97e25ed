# tests/test_import_uploads.py
import os

from fastapi.testclient import TestClient
from sqlalchemy import select

from checkin_api import config
from checkin_api.db import SessionLocal
from checkin_api.main import app
from checkin_api.models.family import Family
from checkin_api.models.person import Elder, User
from checkin_api.services import importer

client = TestClient(app)

CSV = (
    "\ufefffirst_name,last_name,email,phone,role,family_name,gender,status\n"
    "Ana,Santos,ana@example.com,0917 111 2222,member,Santos,F,\n"
    "Rey,Santos,rey@example.com,,elder,Santos,male,inactive\n"
    "Lia,Reyes,,,volunteer,,prefer not to say,active\n"
)


def _upload(text, auth):
    return client.post(
        "/api/import/users",
        files={"file": ("people.csv", text.encode("utf-8"), "text/csv")},
        headers=auth,
    )


def test_import_creates_people_and_families(auth):
    r = _upload(CSV, auth)
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "Import complete", "imported": 3, "skipped": 0, "errors": []}

    with SessionLocal() as s:
        families = s.execute(select(Family)).scalars().all()
        assert [f.family_name for f in families] == ["Santos"]
        ana = s.execute(select(User).where(User.email == "ana@example.com")).scalars().one()
        assert ana.gender == "female" and ana.role == "user" and ana.active is True
        assert ana.family_id == families[0].id
        rey = s.execute(select(Elder)).scalars().one()
        assert rey.active is False
        lia = s.execute(select(User).where(User.first_name == "Lia")).scalars().one()
        assert lia.gender == "prefer_not_to_say" and lia.role == "volunteer"


def test_import_upserts_by_email(auth):
    _upload(CSV, auth)
    r = _upload("first_name,last_name,email,phone\nAna,Santos-Cruz,ANA@example.com,0999\n", auth)
    assert r.json()["imported"] == 1
    with SessionLocal() as s:
        users = s.execute(select(User).where(User.first_name == "Ana")).scalars().all()
        assert len(users) == 1
        assert users[0].last_name == "Santos-Cruz"


def test_import_rejects_rows_without_names(auth):
    r = _upload("first_name,last_name\nAna,\n", auth)
    assert r.status_code == 400
    assert client.post("/api/import/users", headers=auth).status_code == 400


def test_normalizers():
    assert importer.normalize_gender("M") == "male"
    assert importer.normalize_gender("unknown") is None
    assert importer.normalize_status("") is True
    assert importer.normalize_status("No") is False


def test_avatar_upload(auth):
    r = client.post("/api/uploads/avatar", files={"avatar": ("me.PNG", b"\x89PNG fake", "image/png")}, headers=auth)
    assert r.status_code == 200, r.text
    url = r.json()["url"]
    assert url.startswith("/uploads/avatar-") and url.endswith(".png")
    assert os.path.exists(os.path.join(config.upload_dir(), url.rsplit("/", 1)[1]))

    served = client.get(url)
    assert served.status_code == 200
    assert served.content == b"\x89PNG fake"


def test_avatar_rejects_bad_type_and_size(auth):
    r = client.post("/api/uploads/avatar", files={"avatar": ("a.txt", b"hi", "text/plain")}, headers=auth)
    assert r.status_code == 400
    big = b"0" * (2 * 1024 * 1024 + 1)
    r = client.post("/api/uploads/avatar", files={"avatar": ("a.jpg", big, "image/jpeg")}, headers=auth)
    assert r.status_code == 413


def test_send_reports_stub(auth):
    assert client.post("/api/email/send-reports", json={}, headers=auth).status_code == 400
    r = client.post("/api/email/send-reports", json={"event_id": 3, "ministries": [1, 2]}, headers=auth)
    assert r.json()["ok"] is True
    assert r.json()["event_id"] == 3
