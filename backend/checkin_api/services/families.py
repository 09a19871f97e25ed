# checkin_api/services/families.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from checkin_api.models.family import Family
from checkin_api.models.person import Elder, User


def list_families(db: Session) -> List[Family]:
    return list(db.execute(select(Family).order_by(Family.family_name)).scalars().all())


def create_family(db: Session, family_name: str) -> Family:
    family = Family(family_name=family_name.strip())
    db.add(family)
    db.commit()
    db.refresh(family)
    return family


def find_or_create(db: Session, family_name: Optional[str]) -> Optional[Family]:
    """Exact-name lookup used by the CSV import. Blank names yield None."""
    clean = (family_name or "").strip()
    if not clean:
        return None
    family = db.execute(select(Family).where(Family.family_name == clean)).scalars().first()
    if family:
        return family
    family = Family(family_name=clean)
    db.add(family)
    db.flush()
    return family


def _member_row(kind: str, p) -> Dict[str, Any]:
    return {
        "id": f"{kind}-{p.id}",
        "first_name": p.first_name,
        "last_name": p.last_name,
        "phone": p.phone,
        "email": p.email,
        "role": "member" if p.role == "user" else p.role,
        "avatar": p.avatar,
        "family_id": p.family_id,
    }


def members_of(db: Session, family_id: int) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for kind, model in (("user", User), ("elder", Elder)):
        rows = db.execute(
            select(model).where(model.family_id == family_id).order_by(model.last_name, model.first_name)
        ).scalars().all()
        out.extend(_member_row(kind, p) for p in rows)
    return out


def search_by_name(db: Session, name: str) -> List[Dict[str, Any]]:
    like = f"%{name.strip().lower()}%"
    out: List[Dict[str, Any]] = []
    for kind, model in (("user", User), ("elder", Elder)):
        full = func.lower(model.first_name + " " + model.last_name)
        rows = db.execute(
            select(model).where(full.like(like)).order_by(model.last_name, model.first_name)
        ).scalars().all()
        out.extend(_member_row(kind, p) for p in rows)
    return out
