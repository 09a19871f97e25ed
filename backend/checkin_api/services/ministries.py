# checkin_api/services/ministries.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from checkin_api.models.ministry import ElderMinistry, Ministry, UserMinistry

logger = logging.getLogger(__name__)


class DuplicateMinistryName(ValueError):
    """Another ministry already uses this name (case-insensitive)."""


def list_ministries(db: Session) -> List[Ministry]:
    return list(db.execute(select(Ministry).order_by(Ministry.name)).scalars().all())


def find_by_name(db: Session, name: Optional[str]) -> Optional[Ministry]:
    """Case-insensitive exact match. Never creates."""
    clean = (name or "").strip()
    if not clean:
        return None
    return db.execute(
        select(Ministry).where(func.lower(Ministry.name) == clean.lower())
    ).scalars().first()


def _ensure_name_free(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    existing = find_by_name(db, name)
    if existing and existing.id != exclude_id:
        raise DuplicateMinistryName(name)


def create_ministry(db: Session, name: str, active: bool) -> Ministry:
    name = name.strip()
    _ensure_name_free(db, name)
    ministry = Ministry(name=name, is_active=bool(active))
    db.add(ministry)
    db.commit()
    db.refresh(ministry)
    return ministry


def update_ministry(db: Session, ministry_id: int, name: str, active: bool) -> Optional[Ministry]:
    ministry = db.get(Ministry, ministry_id)
    if not ministry:
        return None
    name = name.strip()
    _ensure_name_free(db, name, exclude_id=ministry_id)
    ministry.name = name
    ministry.is_active = bool(active)
    db.commit()
    db.refresh(ministry)
    return ministry


def is_referenced(db: Session, ministry_id: int) -> bool:
    for link in (UserMinistry, ElderMinistry):
        hit = db.execute(select(link.ministry_id).where(link.ministry_id == ministry_id).limit(1)).first()
        if hit:
            return True
    return False


def delete_ministry(db: Session, ministry_id: int) -> bool:
    ministry = db.get(Ministry, ministry_id)
    if not ministry:
        return False
    db.delete(ministry)
    db.commit()
    return True


# ---- Link maintenance (used by the webhook layer) --------------------------------

def find_or_create(db: Session, name: str) -> Ministry:
    """Case-insensitive lookup; a missing ministry is created active."""
    ministry = find_by_name(db, name)
    if ministry:
        return ministry
    ministry = Ministry(name=name.strip(), is_active=True)
    db.add(ministry)
    db.flush()
    logger.info("ministries: created %r (id=%s)", ministry.name, ministry.id)
    return ministry


def attach_user(db: Session, user_id: int, ministry_id: int) -> bool:
    """Link a user to a ministry. Returns False when the link already existed."""
    if db.get(UserMinistry, (user_id, ministry_id)):
        return False
    db.add(UserMinistry(user_id=user_id, ministry_id=ministry_id))
    db.flush()
    return True


def detach_user(db: Session, user_id: int, ministry_id: int) -> int:
    result = db.execute(
        delete(UserMinistry).where(
            UserMinistry.user_id == user_id, UserMinistry.ministry_id == ministry_id
        )
    )
    return result.rowcount or 0


def detach_user_many(db: Session, user_id: int, names: Iterable[str]) -> Dict[str, object]:
    """
    Remove a user from several ministries by name.

    One lookup query resolves every name, the names are split into found and
    not_found, and one delete statement removes the found links.
    """
    wanted: Dict[str, str] = {}
    for n in names:
        clean = (n or "").strip()
        if clean and clean.lower() not in wanted:
            wanted[clean.lower()] = clean

    if not wanted:
        return {"found": [], "not_found": [], "removed": 0}

    rows = db.execute(
        select(Ministry.id, Ministry.name).where(func.lower(Ministry.name).in_(list(wanted)))
    ).all()
    by_lower = {name.lower(): (mid, name) for mid, name in rows}

    found = [by_lower[k][1] for k in wanted if k in by_lower]
    not_found = [wanted[k] for k in wanted if k not in by_lower]
    ids = [by_lower[k][0] for k in wanted if k in by_lower]

    removed = 0
    if ids:
        result = db.execute(
            delete(UserMinistry).where(
                UserMinistry.user_id == user_id, UserMinistry.ministry_id.in_(ids)
            )
        )
        removed = result.rowcount or 0

    return {"found": found, "not_found": not_found, "removed": removed}
