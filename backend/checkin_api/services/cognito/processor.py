# checkin_api/services/cognito/processor.py
"""
Database side of the Cognito webhooks: resolve the person, then attach or
detach ministries.

Validation failures raise `WebhookError` (status + message). Anything the
form makes ambiguous resolves to a logged no-op rather than a write.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from checkin_api.db import SessionLocal
from checkin_api.models.person import User
from checkin_api.services import ministries as ministries_svc
from checkin_api.services.cognito.mapping import is_membership_removal
from checkin_api.services.people import digits_only, phone_digits

logger = logging.getLogger(__name__)


class WebhookError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


# ---- Validation ----------------------------------------------------------------------

def require_identity(email: Optional[str], phone: Optional[str]) -> None:
    if not email and not phone:
        raise WebhookError(400, "Missing identifier (email or phone)")


def validate_attach(mapped: Dict[str, Any]) -> None:
    if not mapped.get("ministry"):
        raise WebhookError(400, "Missing ministry")
    require_identity(mapped.get("email"), mapped.get("phone"))


def validate_removal(mapped: Dict[str, Any]) -> bool:
    """Returns False (no-op) when the form is not asking for a membership removal."""
    require_identity(mapped.get("email"), mapped.get("phone"))
    if not is_membership_removal(mapped.get("change_types") or [], mapped.get("membership_action")):
        return False
    if not mapped.get("ministries"):
        raise WebhookError(400, "Missing ministry")
    return True


# ---- Identity --------------------------------------------------------------------------

def find_user(db: Session, email: Optional[str], phone: Optional[str]) -> Optional[User]:
    """Lower-cased email first, then digit-only phone."""
    email_norm = (email or "").strip().lower()
    if email_norm:
        user = db.execute(
            select(User).where(func.lower(User.email) == email_norm).limit(1)
        ).scalars().first()
        if user:
            return user

    digits = digits_only(phone)
    if digits:
        return db.execute(
            select(User).where(phone_digits(User.phone) == digits).limit(1)
        ).scalars().first()
    return None


def create_user(db: Session, first_name: str, last_name: str,
                email: Optional[str], phone: Optional[str]) -> User:
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=(email or "").strip().lower() or None,
        phone=phone or None,
        role="volunteer",
        active=True,
    )
    db.add(user)
    db.flush()
    logger.info("cognito: created user id=%s (%s %s)", user.id, first_name, last_name)
    return user


# ---- Operations ------------------------------------------------------------------------

def handle_add_or_attach(db: Session, mapped: Dict[str, Any], allow_create: bool) -> Dict[str, Any]:
    validate_attach(mapped)

    created = False
    user = find_user(db, mapped.get("email"), mapped.get("phone"))
    if not user:
        if not allow_create:
            raise WebhookError(404, "User not found (and creation disabled for this request).")
        if not mapped.get("first_name") or not mapped.get("last_name"):
            raise WebhookError(
                400, "User not found; first_name and last_name are required to create a new user."
            )
        user = create_user(db, mapped["first_name"], mapped["last_name"], mapped.get("email"), mapped.get("phone"))
        created = True

    ministry = ministries_svc.find_or_create(db, mapped["ministry"])
    ministries_svc.attach_user(db, user.id, ministry.id)
    db.commit()

    return {
        "ok": True,
        "action": "attached",
        "user_id": user.id,
        "ministry_id": ministry.id,
        "ministry_name": ministry.name,
        "created_user": created,
    }


def handle_legacy_remove(db: Session, mapped: Dict[str, Any]) -> Dict[str, Any]:
    """Detach one ministry. Unknown person or ministry is a no-op; nothing is ever created."""
    if not mapped.get("ministry"):
        raise WebhookError(400, "Missing ministry")
    require_identity(mapped.get("email"), mapped.get("phone"))

    user = find_user(db, mapped.get("email"), mapped.get("phone"))
    if not user:
        return {"ok": True, "action": "noop", "message": "User not found"}

    ministry = ministries_svc.find_by_name(db, mapped["ministry"])
    if not ministry:
        logger.info("cognito remove: ministry %r does not exist; nothing to detach", mapped["ministry"])
        return {"ok": True, "action": "noop", "message": "Ministry not found", "user_id": user.id}

    ministries_svc.detach_user(db, user.id, ministry.id)
    db.commit()
    return {
        "ok": True,
        "action": "removed",
        "user_id": user.id,
        "ministry_id": ministry.id,
        "ministry_name": ministry.name,
    }


def handle_removal(db: Session, mapped: Dict[str, Any]) -> Dict[str, Any]:
    if not validate_removal(mapped):
        logger.info(
            "cognito removal: not a membership removal (change_types=%s, action=%r); ignoring",
            mapped.get("change_types"), mapped.get("membership_action"),
        )
        return {"ok": True, "action": "noop", "message": "Not a membership removal"}

    user = find_user(db, mapped.get("email"), mapped.get("phone"))
    if not user:
        return {"ok": True, "action": "noop", "message": "User not found"}

    outcome = ministries_svc.detach_user_many(db, user.id, mapped["ministries"])
    db.commit()
    if outcome["not_found"]:
        logger.info("cognito removal: unknown ministries %s for user %s", outcome["not_found"], user.id)
    return {"ok": True, "action": "removed", "user_id": user.id, **outcome}


# ---- Deferred execution ----------------------------------------------------------------

def run_detached(label: str, operation: Callable[..., Dict[str, Any]], *args: Any) -> None:
    """
    Background-task body: own session (the request's is already closed),
    failures are logged and never reach the caller.
    """
    db = SessionLocal()
    try:
        result = operation(db, *args)
        logger.info("[Cognito %s] processed: %s", label, result)
    except WebhookError as exc:
        db.rollback()
        logger.warning("[Cognito %s] rejected after ack: %s %s", label, exc.status_code, exc.message)
    except Exception:
        db.rollback()
        logger.exception("[Cognito %s] background processing failed", label)
    finally:
        db.close()
