# tests/test_auth.py
from fastapi.testclient import TestClient

from checkin_api.main import app

client = TestClient(app)


def test_health_and_root():
    for path in ("/", "/api/health"):
        r = client.get(path)
        assert r.status_code == 200, r.text
        body = r.json()
        assert body["ok"] is True
        assert body["name"] == "Check-in API"
        assert "time" in body


def test_login_returns_token_and_user(admin):
    r = client.post("/api/auth/login", json={"username": "Grace", "password": "s3cret"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["token"]
    assert body["user"]["role"] == "admin"
    assert body["user"]["name"] == "Grace Admin"

    # the token works on a protected route
    r = client.get("/api/families", headers={"Authorization": f"Bearer {body['token']}"})
    assert r.status_code == 200


def test_login_wrong_password(admin):
    r = client.post("/api/auth/login", json={"username": "grace", "password": "nope"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid credentials"


def test_protected_routes_need_a_token():
    assert client.get("/api/families").status_code == 401
    assert client.get("/api/families", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_admin_only_route_rejects_staff(staff_auth):
    r = client.post("/api/ministries", json={"name": "Ushers", "active": True}, headers=staff_auth)
    assert r.status_code == 403


def test_create_admin_and_duplicate_username(auth):
    payload = {"first_name": "Ana", "last_name": "Cruz", "username": "ana", "password": "pw123"}
    r = client.post("/api/admins", json=payload, headers=auth)
    assert r.status_code == 201, r.text
    assert r.json()["username"] == "ana"
    assert "password_hash" not in r.json()

    r = client.post("/api/admins", json={**payload, "username": "ANA"}, headers=auth)
    assert r.status_code == 409

    r = client.post("/api/admins", json={"username": "x"}, headers=auth)
    assert r.status_code == 400
