# checkin_api/services/people.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, Union

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from checkin_api.models.checkin import CheckIn
from checkin_api.models.family import Family
from checkin_api.models.ministry import ElderMinistry, Ministry, UserMinistry
from checkin_api.models.person import Elder, PersonColumns, User
from checkin_api.schemas.people import PersonCreate, PersonUpdate

logger = logging.getLogger(__name__)

VALID_ROLES = ("member", "elder", "volunteer", "staff")

_PERSON_FIELDS = (
    "first_name", "last_name", "email", "phone", "alt_phone",
    "role", "gender", "avatar", "family_id", "active",
)

PersonModel = Union[Type[User], Type[Elder]]


# ─────────────────────────────────────────────────────────────────────────────
# Identifiers & normalization
# ─────────────────────────────────────────────────────────────────────────────

def digits_only(value: Any) -> str:
    return re.sub(r"\D", "", str(value or ""))


def phone_digits(column):
    """SQL expression: the column with every non-digit stripped."""
    return func.regexp_replace(func.coalesce(column, ""), "[^0-9]", "", "g")


def parse_person_ref(raw: Any) -> Tuple[str, Optional[int]]:
    """
    "elder-3" -> ("elder", 3); "user-12" / "member-12" / "12" -> ("user", 12).
    The id is None when no digits are present.
    """
    s = str(raw or "").strip()
    kind = "elder" if s.lower().startswith("elder-") else "user"
    m = re.search(r"\d+", s)
    return kind, (int(m.group(0)) if m else None)


def model_for(kind: str) -> PersonModel:
    return Elder if kind == "elder" else User


def link_model_for(kind: str):
    return ElderMinistry if kind == "elder" else UserMinistry


def link_owner_column(kind: str):
    return ElderMinistry.elder_id if kind == "elder" else UserMinistry.user_id


def stored_role(role: Optional[str]) -> Optional[str]:
    """API role -> DB role ('member' is stored as 'user')."""
    if role is None:
        return None
    r = role.strip().lower()
    return "user" if r == "member" else r


def display_role(role: Optional[str]) -> Optional[str]:
    return "member" if role == "user" else role


def person_dict(p: PersonColumns, *, prefixed_id: Optional[str] = None) -> Dict[str, Any]:
    row = {"id": prefixed_id or p.id}
    for f in _PERSON_FIELDS:
        row[f] = getattr(p, f)
    row["created_at"] = p.created_at
    return row


# ─────────────────────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────────────────────

def list_users_with_ministry(db: Session) -> List[Dict[str, Any]]:
    """One row per (user, ministry) link; users without links appear once with ministry=None."""
    rows = db.execute(
        select(User.id, User.first_name, User.last_name, Ministry.name)
        .outerjoin(UserMinistry, UserMinistry.user_id == User.id)
        .outerjoin(Ministry, Ministry.id == UserMinistry.ministry_id)
        .order_by(User.last_name, User.first_name)
    ).all()
    return [
        {"id": uid, "first_name": fn, "last_name": ln, "ministry": mname}
        for uid, fn, ln, mname in rows
    ]


def list_elders_brief(db: Session) -> List[Dict[str, Any]]:
    rows = db.execute(
        select(Elder.id, Elder.first_name, Elder.last_name, Elder.phone, Elder.alt_phone)
        .order_by(Elder.first_name, Elder.last_name)
    ).all()
    return [dict(r._mapping) for r in rows]


def lookup_by_phone(db: Session, phone: str, limit: int = 25) -> List[Dict[str, Any]]:
    digits = digits_only(phone)
    if not digits:
        return []
    like = f"%{digits}%"
    users = (
        db.execute(
            select(User)
            .where(or_(phone_digits(User.phone).like(like), phone_digits(User.alt_phone).like(like)))
            .order_by(User.last_name, User.first_name)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return [
        {
            "id": u.id, "first_name": u.first_name, "last_name": u.last_name,
            "phone": u.phone, "alt_phone": u.alt_phone, "role": u.role, "avatar": u.avatar,
        }
        for u in users
    ]


def _search_clause(model: PersonModel, term: Optional[str]):
    if not term:
        return None
    like = f"%{term.lower()}%"
    conds = [func.lower(model.first_name).like(like), func.lower(model.last_name).like(like)]
    digits = digits_only(term)
    if digits:
        conds.append(phone_digits(model.phone).like(f"%{digits}%"))
        conds.append(phone_digits(model.alt_phone).like(f"%{digits}%"))
    return or_(*conds)


def search_people(db: Session, term: Optional[str] = None) -> List[Dict[str, Any]]:
    """Users and elders together, ids prefixed so the caller knows which table."""
    out: List[Dict[str, Any]] = []
    for kind, model in (("user", User), ("elder", Elder)):
        stmt = select(model, Family.family_name).outerjoin(Family, Family.id == model.family_id)
        clause = _search_clause(model, term)
        if clause is not None:
            stmt = stmt.where(clause)
        for p, family_name in db.execute(stmt).all():
            out.append(
                {
                    "id": f"{kind}-{p.id}",
                    "first_name": p.first_name,
                    "last_name": p.last_name,
                    "phone": p.phone,
                    "alt_phone": p.alt_phone,
                    "role": p.role,
                    "avatar": p.avatar,
                    "family_id": p.family_id,
                    "family_name": family_name,
                }
            )
    return out


def ministry_names_for(db: Session, kind: str, person_id: int) -> List[str]:
    link = link_model_for(kind)
    return list(
        db.execute(
            select(Ministry.name)
            .join(link, link.ministry_id == Ministry.id)
            .where(link_owner_column(kind) == person_id)
            .order_by(Ministry.name)
        )
        .scalars()
        .all()
    )


def person_details(db: Session, kind: str, person_id: int) -> Optional[Dict[str, Any]]:
    person = db.get(model_for(kind), person_id)
    if not person:
        return None

    elders: List[str] = []
    if kind == "user":
        # Elders overseeing any ministry this member belongs to.
        rows = db.execute(
            select(Elder.first_name, Elder.last_name)
            .join(ElderMinistry, ElderMinistry.elder_id == Elder.id)
            .join(UserMinistry, UserMinistry.ministry_id == ElderMinistry.ministry_id)
            .where(UserMinistry.user_id == person_id)
            .distinct()
        ).all()
        elders = [f"{fn} {ln}" for fn, ln in rows]

    return {
        "user": person_dict(person),
        "ministries": ministry_names_for(db, kind, person_id),
        "elders": elders,
    }


def masterlist(db: Session) -> List[Dict[str, Any]]:
    """Every person with ministry names and ids; stored role 'user' is reported as 'member'."""
    ministries = {m.id: m.name for m in db.execute(select(Ministry)).scalars().all()}

    links: Dict[Tuple[str, int], List[int]] = {}
    for uid, mid in db.execute(select(UserMinistry.user_id, UserMinistry.ministry_id)).all():
        links.setdefault(("user", uid), []).append(mid)
    for eid, mid in db.execute(select(ElderMinistry.elder_id, ElderMinistry.ministry_id)).all():
        links.setdefault(("elder", eid), []).append(mid)

    out: List[Dict[str, Any]] = []
    for kind, model in (("user", User), ("elder", Elder)):
        for p in db.execute(select(model)).scalars().all():
            ids = sorted(set(links.get((kind, p.id), [])))
            out.append(
                {
                    "id": f"{kind}-{p.id}",
                    "first_name": p.first_name,
                    "last_name": p.last_name,
                    "email": p.email,
                    "phone": p.phone,
                    "alt_phone": p.alt_phone,
                    "role": display_role(p.role),
                    "avatar": p.avatar,
                    "active": p.active if p.active is not None else True,
                    "gender": p.gender,
                    "ministries": sorted({ministries[i] for i in ids if i in ministries}),
                    "ministry_ids": ids,
                }
            )
    out.sort(key=lambda r: ((r["first_name"] or "").lower(), (r["last_name"] or "").lower()))
    return out


# ─────────────────────────────────────────────────────────────────────────────
# Writes
# ─────────────────────────────────────────────────────────────────────────────

def create_person(db: Session, data: PersonCreate) -> Tuple[str, PersonColumns]:
    """Insert into `elders` or `users` by role. Caller validates required fields and role."""
    role = stored_role(data.role)
    kind = "elder" if role == "elder" else "user"
    model = model_for(kind)
    person = model(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email or None,
        phone=data.phone or None,
        alt_phone=data.alt_phone or None,
        role=role,
        avatar=data.avatar or None,
        family_id=data.family_id or None,
        gender=data.gender or None,
    )
    db.add(person)
    db.commit()
    db.refresh(person)
    return kind, person


def _valid_ministry_ids(db: Session, ministry_ids: Iterable[int]) -> List[int]:
    wanted = {int(i) for i in ministry_ids}
    if not wanted:
        return []
    return list(db.execute(select(Ministry.id).where(Ministry.id.in_(wanted))).scalars().all())


def _current_ministry_ids(db: Session, kind: str, person_id: int) -> List[int]:
    link = link_model_for(kind)
    return list(
        db.execute(select(link.ministry_id).where(link_owner_column(kind) == person_id)).scalars().all()
    )


def _clear_links(db: Session, kind: str, person_id: int) -> None:
    link = link_model_for(kind)
    db.execute(delete(link).where(link_owner_column(kind) == person_id))


def _link_ministries(db: Session, kind: str, person_id: int, ministry_ids: Iterable[int]) -> None:
    link = link_model_for(kind)
    owner = "elder_id" if kind == "elder" else "user_id"
    for mid in _valid_ministry_ids(db, ministry_ids):
        db.add(link(**{owner: person_id, "ministry_id": mid}))
    db.flush()


def _changes(patch: PersonUpdate) -> Dict[str, Any]:
    fields = patch.model_fields_set - {"id", "ministry_ids"}
    changes = {f: getattr(patch, f) for f in fields}
    if "role" in changes:
        changes["role"] = stored_role(changes["role"]) or None
    return changes


def _move_person(
    db: Session, old_kind: str, old: PersonColumns, patch: PersonUpdate
) -> PersonColumns:
    """Re-create `old` in the other table and re-point its links and check-ins."""
    new_kind = "user" if old_kind == "elder" else "elder"
    carried = {f: getattr(old, f) for f in _PERSON_FIELDS}
    carried.update(_changes(patch))
    if carried.get("active") is None:
        carried["active"] = True

    ministry_ids = (
        patch.ministry_ids if "ministry_ids" in patch.model_fields_set
        else _current_ministry_ids(db, old_kind, old.id)
    )

    old_id = old.id
    new = model_for(new_kind)(**carried)
    db.add(new)
    db.flush()

    _link_ministries(db, new_kind, new.id, ministry_ids)

    # Check-ins cascade on delete, so they are re-pointed before the old row goes.
    if new_kind == "elder":
        db.execute(
            update(CheckIn)
            .where(CheckIn.user_id == old_id)
            .values(user_id=None, elder_id=new.id, is_elder=True)
        )
    else:
        db.execute(
            update(CheckIn)
            .where(CheckIn.elder_id == old_id)
            .values(elder_id=None, user_id=new.id, is_elder=False)
        )

    _clear_links(db, old_kind, old_id)
    db.delete(old)
    db.flush()
    return new


def update_person(
    db: Session, kind: str, person_id: int, patch: PersonUpdate
) -> Optional[Tuple[str, PersonColumns]]:
    """
    Apply an edit. When the role crosses the member/elder line the person is
    moved to the other table; everything happens in one transaction and is
    rolled back on any failure.
    """
    old_is_elder = kind == "elder"
    new_role = stored_role(patch.role) if "role" in patch.model_fields_set else None
    new_is_elder = (new_role == "elder") if new_role else old_is_elder

    try:
        person = db.get(model_for(kind), person_id)
        if not person:
            return None

        if old_is_elder != new_is_elder:
            logger.info("update_person: moving %s-%s to %s", kind, person_id,
                        "elder" if new_is_elder else "user")
            person = _move_person(db, kind, person, patch)
            kind = "elder" if new_is_elder else "user"
        else:
            for field, value in _changes(patch).items():
                if field == "active" and value is None:
                    continue
                setattr(person, field, value)
            if "ministry_ids" in patch.model_fields_set:
                _clear_links(db, kind, person_id)
                _link_ministries(db, kind, person_id, patch.ministry_ids)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(person)
    return kind, person


def set_active(db: Session, kind: str, person_id: int, active: bool) -> bool:
    result = db.execute(
        update(model_for(kind)).where(model_for(kind).id == person_id).values(active=active)
    )
    db.commit()
    return bool(result.rowcount)


def delete_person(db: Session, kind: str, person_id: int) -> bool:
    _clear_links(db, kind, person_id)
    model = model_for(kind)
    result = db.execute(delete(model).where(model.id == person_id))
    if not result.rowcount:
        db.rollback()
        return False
    db.commit()
    return True
