# checkin_api/security.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import bcrypt
from fastapi import Depends, Header, HTTPException, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from checkin_api import config
from checkin_api.db import get_db
from checkin_api.models.admin import Admin
from checkin_api.models.person import User

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"
STAFF_TOKEN_TTL = timedelta(days=1)
KIOSK_TOKEN_TTL = timedelta(hours=12)
ADMIN_ROLES = ("admin", "super_admin")


@dataclass
class Principal:
    """The authenticated caller, whichever table it was found in."""

    id: int
    role: str
    email: Optional[str] = None
    source: str = "admin"  # "admin" | "user"


# ---- Passwords ----------------------------------------------------------------

def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the DB (e.g. legacy plaintext); treat as mismatch.
        return False


# ---- Tokens -------------------------------------------------------------------

def create_token(claims: Dict[str, Any], ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = dict(claims)
    payload.update({"iat": now, "exp": now + ttl})
    return jwt.encode(payload, config.jwt_secret(), algorithm=_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Raise JWTError on a bad signature or expired token."""
    return jwt.decode(token, config.jwt_secret(), algorithms=[_ALGORITHM])


def create_staff_token(admin: Admin) -> str:
    return create_token(
        {"id": admin.id, "email": admin.username, "role": admin.role or "staff"},
        STAFF_TOKEN_TTL,
    )


def create_kiosk_token(kiosk_id: Optional[int]) -> str:
    sub = f"kiosk:{kiosk_id}" if kiosk_id else "kiosk:anon"
    return create_token({"sub": sub, "role": "kiosk"}, KIOSK_TOKEN_TTL)


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


# ---- Dependencies -------------------------------------------------------------

def authenticate(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> Principal:
    """Resolve the bearer token to an admin (preferred) or a member account."""
    token = _bearer(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid token")

    try:
        claims = decode_token(token)
    except JWTError:
        logger.info("authenticate: rejected token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    subject_id = claims.get("id")
    if subject_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    admin = db.get(Admin, subject_id)
    if admin:
        return Principal(id=admin.id, role=admin.role, email=admin.email, source="admin")

    user = db.get(User, subject_id)
    if user:
        return Principal(id=user.id, role=user.role or "member", email=user.email, source="user")

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")


def require_roles(*allowed: str) -> Callable[..., Principal]:
    """Dependency factory: the caller's role must be one of `allowed` (case-insensitive)."""
    allow = {r.lower() for r in allowed}

    def _inner(principal: Principal = Depends(authenticate)) -> Principal:
        role = (principal.role or "").lower()
        if not role:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated")
        if allow and role not in allow:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Forbidden for role: {role}")
        return principal

    return _inner


def kiosk_auth(authorization: Optional[str] = Header(default=None)) -> Dict[str, Any]:
    token = _bearer(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing kiosk token")
    try:
        claims = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid kiosk token")
    if claims.get("role") != "kiosk":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a kiosk token")
    return claims
