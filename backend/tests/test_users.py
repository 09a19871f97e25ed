# tests/test_users.py
from fastapi.testclient import TestClient
from sqlalchemy import select

from checkin_api.db import SessionLocal
from checkin_api.main import app
from checkin_api.models.checkin import CheckIn
from checkin_api.models.ministry import ElderMinistry, UserMinistry
from checkin_api.models.person import Elder, User
from checkin_api.services import people as people_svc

client = TestClient(app)


def _member(auth, **extra):
    payload = {"first_name": "Juan", "last_name": "Dela Cruz", "role": "member",
               "phone": "(0917) 555-1234", "email": "juan@example.com"}
    payload.update(extra)
    r = client.post("/api/users", json=payload, headers=auth)
    assert r.status_code == 201, r.text
    return r.json()


def _ministry(auth, name="Ushers"):
    r = client.post("/api/ministries", json={"name": name, "active": True}, headers=auth)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _event(auth):
    r = client.post("/api/events", json={"title": "Sunday Service", "event_date": "2026-03-01",
                                         "event_time": "09:00"}, headers=auth)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def test_create_validates_role_and_required_fields(auth):
    r = client.post("/api/users", json={"first_name": "A", "last_name": "B", "role": "pastor"}, headers=auth)
    assert r.status_code == 400
    assert "Role must be one of" in r.json()["detail"]

    r = client.post("/api/users", json={"first_name": "A", "role": "member"}, headers=auth)
    assert r.status_code == 400


def test_member_is_stored_as_user_and_elder_goes_to_elders(auth):
    member = _member(auth)
    assert member["kind"] == "user"
    assert member["role"] == "user"

    elder = _member(auth, first_name="Rosa", email="rosa@example.com", role="elder")
    assert elder["kind"] == "elder"

    with SessionLocal() as s:
        assert s.get(User, member["id"]) is not None
        assert s.get(Elder, elder["id"]) is not None


def test_duplicate_email_is_conflict(auth):
    _member(auth)
    r = client.post("/api/users", json={"first_name": "X", "last_name": "Y", "role": "member",
                                        "email": "juan@example.com"}, headers=auth)
    assert r.status_code == 409


def test_search_matches_name_and_phone_digits(auth):
    _member(auth)
    _member(auth, first_name="Rosa", last_name="Santos", email="rosa@example.com", role="elder",
            phone="0918-000-0000")

    r = client.get("/api/users", params={"search": "5551234"}, headers=auth)
    ids = [p["id"] for p in r.json()]
    assert ids == ["user-1"]

    r = client.get("/api/users", params={"search": "santos"}, headers=auth)
    assert [p["id"] for p in r.json()] == ["elder-1"]

    r = client.get("/api/users/lookup", params={"phone": "555 1234"}, headers=auth)
    assert len(r.json()) == 1


def test_details_lists_ministries_and_overseeing_elders(auth):
    member = _member(auth)
    mid = _ministry(auth)
    elder = _member(auth, first_name="Rosa", last_name="Santos", email="rosa@example.com", role="elder")
    client.put(f"/api/users/user-{member['id']}", json={"ministry_ids": [mid]}, headers=auth)
    client.put(f"/api/users/elder-{elder['id']}", json={"ministry_ids": [mid]}, headers=auth)

    r = client.get(f"/api/users/user-{member['id']}/details", headers=auth)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["ministries"] == ["Ushers"]
    assert body["elders"] == ["Rosa Santos"]

    assert client.get("/api/users/user-999/details", headers=auth).status_code == 404


def test_partial_update_keeps_untouched_fields_and_links(auth):
    member = _member(auth)
    mid = _ministry(auth)
    client.put(f"/api/users/user-{member['id']}", json={"ministry_ids": [mid]}, headers=auth)

    r = client.put(f"/api/users/user-{member['id']}", json={"phone": "0999"}, headers=auth)
    assert r.status_code == 200, r.text
    user = r.json()["user"]
    assert user["phone"] == "0999"
    assert user["first_name"] == "Juan"

    with SessionLocal() as s:
        links = s.execute(select(UserMinistry).where(UserMinistry.user_id == member["id"])).scalars().all()
        assert [link.ministry_id for link in links] == [mid]


def test_role_change_moves_person_links_and_checkins(auth):
    member = _member(auth)
    mid = _ministry(auth)
    eid = _event(auth)
    client.put(f"/api/users/user-{member['id']}", json={"ministry_ids": [mid]}, headers=auth)
    r = client.post("/api/checkins", json={"user_id": member["id"], "event_id": eid}, headers=auth)
    assert r.status_code == 201, r.text

    r = client.put(f"/api/users/user-{member['id']}", json={"role": "elder"}, headers=auth)
    assert r.status_code == 200, r.text
    new_ref = r.json()["user"]["id"]
    assert new_ref.startswith("elder-")
    new_id = int(new_ref.split("-")[1])

    with SessionLocal() as s:
        assert s.get(User, member["id"]) is None
        elder = s.get(Elder, new_id)
        assert elder.email == "juan@example.com"
        assert elder.role == "elder"
        assert s.get(ElderMinistry, (new_id, mid)) is not None
        checkin = s.execute(select(CheckIn)).scalars().one()
        assert checkin.elder_id == new_id
        assert checkin.user_id is None
        assert checkin.is_elder is True


def test_failed_role_change_leaves_everything_in_place(auth, monkeypatch):
    member = _member(auth)
    eid = _event(auth)
    client.post("/api/checkins", json={"user_id": member["id"], "event_id": eid}, headers=auth)

    def boom(*args, **kwargs):
        raise RuntimeError("link failure")

    monkeypatch.setattr(people_svc, "_link_ministries", boom)
    r = client.put(f"/api/users/user-{member['id']}", json={"role": "elder"}, headers=auth)
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to update user"

    with SessionLocal() as s:
        assert s.get(User, member["id"]) is not None
        assert s.execute(select(Elder)).scalars().all() == []
        checkin = s.execute(select(CheckIn)).scalars().one()
        assert checkin.user_id == member["id"]


def test_update_uses_body_id_when_path_is_mangled(auth):
    member = _member(auth)
    r = client.put("/api/users/undefined", json={"id": f"user-{member['id']}", "last_name": "Reyes"}, headers=auth)
    assert r.status_code == 200, r.text
    assert r.json()["user"]["last_name"] == "Reyes"

    assert client.put("/api/users/user-404", json={"last_name": "X"}, headers=auth).status_code == 404


def test_active_flag_and_delete(auth):
    member = _member(auth)
    r = client.patch(f"/api/users/user-{member['id']}/active", json={"active": False}, headers=auth)
    assert r.json() == {"success": True}

    masterlist = client.get("/api/users/masterlist", headers=auth).json()
    assert masterlist[0]["active"] is False
    assert masterlist[0]["role"] == "member"

    client.patch(f"/api/users/user-{member['id']}/active", json={"active": True}, headers=auth)
    # an empty body must not flip the flag
    r = client.patch(f"/api/users/user-{member['id']}/active", json={}, headers=auth)
    assert r.status_code == 422
    assert client.get("/api/users/masterlist", headers=auth).json()[0]["active"] is True

    r = client.delete(f"/api/users/{member['id']}", params={"role": "member"}, headers=auth)
    assert r.status_code == 200
    assert client.delete(f"/api/users/{member['id']}", headers=auth).status_code == 404


def test_parse_person_ref():
    assert people_svc.parse_person_ref("elder-3") == ("elder", 3)
    assert people_svc.parse_person_ref("member-12") == ("user", 12)
    assert people_svc.parse_person_ref("7") == ("user", 7)
    assert people_svc.parse_person_ref("NaN") == ("user", None)


def test_elders_routes(auth, staff_auth):
    r = client.post("/api/elders", json={"first_name": "Rosa", "last_name": "S", "role": "member"}, headers=auth)
    assert r.status_code == 400
    r = client.post("/api/elders", json={"first_name": "Rosa", "last_name": "S", "role": "elder"}, headers=auth)
    assert r.status_code == 201, r.text
    eid = r.json()["id"]

    assert [e["first_name"] for e in client.get("/api/elders", headers=auth).json()] == ["Rosa"]
    assert client.get(f"/api/elders/{eid}/details", headers=auth).json()["ministries"] == []

    assert client.delete(f"/api/elders/{eid}", headers=staff_auth).status_code == 403
    assert client.patch(f"/api/elders/{eid}/active", json={"active": "false"}, headers=auth).json() == {"success": True}
    assert client.delete(f"/api/elders/{eid}", headers=auth).status_code == 200
    assert client.get(f"/api/elders/{eid}/details", headers=auth).status_code == 404
