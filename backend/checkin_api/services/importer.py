# checkin_api/services/importer.py
"""Roster import from a CSV export (one person per row)."""
from __future__ import annotations

import csv
import logging
from io import StringIO
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from checkin_api.models.person import Elder, User
from checkin_api.services import families as families_svc
from checkin_api.services.people import stored_role

logger = logging.getLogger(__name__)

_GENDERS = {
    "male": "male", "m": "male",
    "female": "female", "f": "female",
    "other": "other", "o": "other",
    "prefer not to say": "prefer_not_to_say",
    "prefer_not_to_say": "prefer_not_to_say",
    "prefer-not-to-say": "prefer_not_to_say",
    "n/a": "prefer_not_to_say",
}
_INACTIVE = {"inactive", "false", "0", "no"}


class MissingRequiredColumns(ValueError):
    pass


def normalize_gender(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return _GENDERS.get(value.strip().lower())


def normalize_status(value: Optional[str]) -> bool:
    """Blank means active."""
    if not value:
        return True
    return value.strip().lower() not in _INACTIVE


def normalize_phone(value: Optional[str]) -> Optional[str]:
    clean = (value or "").strip()
    return clean or None


def parse_csv(text: str) -> List[Dict[str, str]]:
    reader = csv.DictReader(StringIO(text.lstrip("\ufeff")))
    rows = [{k.strip(): (v or "").strip() for k, v in r.items() if k is not None} for r in reader]
    if any(not r.get("first_name") or not r.get("last_name") for r in rows):
        raise MissingRequiredColumns("Missing required user fields in CSV (first_name, last_name)")
    return rows


def _upsert(db: Session, row: Dict[str, str]) -> None:
    role = (row.get("role") or "").lower()
    model = Elder if role == "elder" else User
    family = families_svc.find_or_create(db, row.get("family_name"))

    values: Dict[str, Any] = {
        "first_name": row["first_name"],
        "last_name": row["last_name"],
        "phone": normalize_phone(row.get("phone")),
        "role": "elder" if model is Elder else (stored_role(role) or "user"),
        "family_id": family.id if family else None,
        "gender": normalize_gender(row.get("gender")),
        "active": normalize_status(row.get("status")),
    }

    email = row.get("email") or None
    existing = None
    if email:
        existing = db.execute(
            select(model).where(func.lower(model.email) == email.lower())
        ).scalars().first()

    if existing:
        for k, v in values.items():
            setattr(existing, k, v)
    else:
        db.add(model(email=email, **values))


def import_people(db: Session, text: str) -> Dict[str, Any]:
    """
    Each row is committed on its own; a failing row is rolled back, reported
    in `errors`, and the import carries on.
    """
    rows = parse_csv(text)
    imported = 0
    errors: List[Dict[str, Any]] = []

    for row in rows:
        try:
            _upsert(db, row)
            db.commit()
            imported += 1
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("import: row %s %s failed: %s", row.get("first_name"), row.get("last_name"), exc)
            errors.append(
                {
                    "user": f"{row.get('first_name')} {row.get('last_name')}",
                    "phone": normalize_phone(row.get("phone")),
                    "error": str(getattr(exc, "orig", None) or exc),
                }
            )

    return {"message": "Import complete", "imported": imported, "skipped": len(errors), "errors": errors}
