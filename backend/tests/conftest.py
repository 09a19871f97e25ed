# tests/conftest.py
import os
import tempfile

# Settings must be in place before checkin_api.db builds its engine.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["COGNITO_WEBHOOK_SECRET"] = "hook-secret"
os.environ["COGNITO_ACK_FIRST"] = "true"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="checkin-uploads-")

import pytest  # noqa: E402

import checkin_api.models  # noqa: E402,F401
from checkin_api.api import integrations_cognito  # noqa: E402
from checkin_api.db import Base, SessionLocal, engine  # noqa: E402
from checkin_api.models.admin import Admin  # noqa: E402
from checkin_api.security import create_staff_token, hash_password  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    integrations_cognito.dedup.clear()
    yield
    integrations_cognito.dedup.clear()


@pytest.fixture
def db():
    with SessionLocal() as session:
        yield session


@pytest.fixture
def admin(db):
    row = Admin(
        first_name="Grace",
        last_name="Admin",
        username="grace",
        password_hash=hash_password("s3cret"),
        role="admin",
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def auth(admin):
    return {"Authorization": f"Bearer {create_staff_token(admin)}"}


@pytest.fixture
def staff_auth(db):
    row = Admin(first_name="Sam", last_name="Staff", username="sam",
                password_hash=hash_password("pw"), role="staff")
    db.add(row)
    db.commit()
    db.refresh(row)
    return {"Authorization": f"Bearer {create_staff_token(row)}"}
