# checkin_api/services/kiosk.py
"""
Self-service kiosk: family-grouped search and check-in / check-out by
entity id ("member-12", "elder-3").
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from checkin_api.models.admin import Kiosk
from checkin_api.models.checkin import CheckIn
from checkin_api.models.event import Event
from checkin_api.models.family import Family
from checkin_api.models.person import Elder, User
from checkin_api.services import events as events_svc
from checkin_api.services.checkins import InvalidCheckIn
from checkin_api.services.people import digits_only, parse_person_ref, phone_digits

logger = logging.getLogger(__name__)

KIOSK_EVENT_WINDOW = timedelta(hours=12)
KIOSK_EVENT_LIMIT = 200
NO_FAMILY_LABEL = "No Family Record"


class InvalidKioskCode(Exception):
    pass


def clamp_limit(raw: Any, default: int = 50) -> int:
    try:
        n = int(raw) if raw not in (None, "") else default
    except (TypeError, ValueError):
        n = default
    return min(100, max(1, n))


def active_kiosk_id(db: Session, code: Optional[str]) -> Optional[int]:
    """None for an anonymous session; raises InvalidKioskCode for an unknown/inactive code."""
    if not code:
        return None
    kiosk = db.execute(
        select(Kiosk).where(Kiosk.code == code, Kiosk.is_active.is_(True)).limit(1)
    ).scalars().first()
    if not kiosk:
        raise InvalidKioskCode(code)
    return kiosk.id


def _kiosk_event(ev: Event) -> Dict[str, Any]:
    return {
        "id": ev.id,
        "title": ev.title,
        "event_date": events_svc.format_date(ev.event_date),
        "event_time": events_svc.format_time(ev.event_time),
        "location": ev.location,
    }


def recent_events(db: Session, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    now = now or datetime.now()
    rows = events_svc.starting_after(db, now - KIOSK_EVENT_WINDOW)
    # Same date: untimed events first.
    rows.sort(key=lambda ev: (ev.event_date, ev.event_time is not None, ev.event_time or datetime.min.time()))
    return [_kiosk_event(ev) for ev in rows[:KIOSK_EVENT_LIMIT]]


# ---- Search ----------------------------------------------------------------------

def _match(model, term: str, mode: str):
    if mode == "phone":
        return phone_digits(model.phone).like(f"%{digits_only(term)}%")
    like = f"%{term.lower()}%"
    return or_(
        func.lower(model.first_name + " " + model.last_name).like(like),
        func.lower(model.first_name).like(like),
        func.lower(model.last_name).like(like),
    )


def _last_checkins(
    db: Session, column, ids: List[int], event_id: Optional[int]
) -> Dict[int, Tuple[CheckIn, Optional[Event]]]:
    if not ids:
        return {}
    stmt = (
        select(CheckIn, Event)
        .outerjoin(Event, Event.id == CheckIn.event_id)
        .where(column.in_(ids))
        .order_by(CheckIn.checkin_time.desc(), CheckIn.id.desc())
    )
    if event_id:
        stmt = stmt.where(CheckIn.event_id == event_id)
    latest: Dict[int, Tuple[CheckIn, Optional[Event]]] = {}
    for c, ev in db.execute(stmt).all():
        latest.setdefault(getattr(c, column.key), (c, ev))
    return latest


def _last_checkin_block(hit: Optional[Tuple[CheckIn, Optional[Event]]]) -> Optional[Dict[str, Any]]:
    if not hit:
        return None
    c, ev = hit
    loc = ev.location if ev else None
    title = ev.title if ev else None
    return {
        "checked_in": True,
        "time_iso": c.checkin_time.isoformat(),
        "time_display": c.checkin_time.strftime("%I:%M %p"),
        "event_id": c.event_id,
        "event_title": title,
        "event": {"id": c.event_id, "title": title, "location": loc},
        # flat aliases read by older kiosk screens
        "location": loc,
        "location_name": loc,
        "event_location": loc,
        "venue": loc,
        "place": loc,
        "location_text": loc,
    }


def search(
    db: Session, q: str, mode: str = "name", event_id: Optional[int] = None, limit: int = 50
) -> List[Dict[str, Any]]:
    term = (q or "").strip()
    if not term:
        return []
    mode = (mode or "name").lower()
    if mode == "phone" and not digits_only(term):
        return []

    people = []
    for kind, model, column in (("member", User, CheckIn.user_id), ("elder", Elder, CheckIn.elder_id)):
        rows = db.execute(
            select(model, Family.family_name)
            .outerjoin(Family, Family.id == model.family_id)
            .where(_match(model, term, mode))
        ).all()
        latest = _last_checkins(db, column, [p.id for p, _ in rows], event_id)
        for p, family_name in rows:
            people.append((kind, p, family_name, latest.get(p.id)))

    people.sort(key=lambda t: ((t[1].last_name or "").lower(), (t[1].first_name or "").lower()))
    people = people[:limit]

    groups: Dict[int, Dict[str, Any]] = {}
    for kind, p, family_name, hit in people:
        fam_id = p.family_id or 0
        if fam_id not in groups:
            if fam_id:
                label = family_name or f"Family #{fam_id}"
            else:
                label = NO_FAMILY_LABEL
            groups[fam_id] = {"family_id": fam_id, "label": label, "members": []}
        groups[fam_id]["members"].append(
            {
                "id": f"{kind}-{p.id}",
                "type": kind,
                "first_name": p.first_name,
                "last_name": p.last_name,
                "phone": p.phone,
                "family_id": fam_id,
                "last_checkin": _last_checkin_block(hit),
            }
        )

    families = list(groups.values())
    families.sort(key=lambda f: 0 if f["family_id"] else 1)
    return families


# ---- Check-in / check-out ---------------------------------------------------------

def _split_entities(entity_ids: Iterable[Any]) -> Tuple[List[int], List[int]]:
    user_ids: List[int] = []
    elder_ids: List[int] = []
    for raw in entity_ids:
        kind, pid = parse_person_ref(raw)
        if pid is None:
            continue
        (elder_ids if kind == "elder" else user_ids).append(pid)
    return user_ids, elder_ids


def _insert_if_absent(db: Session, event_id: int, kind: str, pid: int) -> Optional[CheckIn]:
    column = CheckIn.elder_id if kind == "elder" else CheckIn.user_id
    exists = db.execute(
        select(CheckIn.id).where(CheckIn.event_id == event_id, column == pid).limit(1)
    ).first()
    if exists:
        return None
    row = CheckIn(
        event_id=event_id,
        user_id=None if kind == "elder" else pid,
        elder_id=pid if kind == "elder" else None,
        checkin_time=datetime.now(),
        is_elder=kind == "elder",
    )
    db.add(row)
    db.flush()
    return row


def check_in_one(db: Session, event_id: int, entity_id: Any) -> Optional[Dict[str, Any]]:
    """Returns the new check-in, or None when the person was already checked in."""
    kind, pid = parse_person_ref(entity_id)
    ev = db.get(Event, event_id)
    if not ev:
        raise InvalidCheckIn("Invalid event ID.")
    if pid is None or not db.get(Elder if kind == "elder" else User, pid):
        raise InvalidCheckIn("Invalid entity_id")

    row = _insert_if_absent(db, event_id, kind, pid)
    db.commit()
    if not row:
        return None

    event = _kiosk_event(ev)
    return {
        "id": row.id,
        "event_id": row.event_id,
        "entity_id": pid,
        "checkin_time": row.checkin_time,
        "event": event,
        "location": event["location"],
        "event_title": event["title"],
    }


def check_in_many(db: Session, event_id: int, entity_ids: List[Any]) -> Dict[str, Any]:
    """All-or-nothing; unknown and already-present people count as skipped."""
    if not db.get(Event, event_id):
        raise InvalidCheckIn("Invalid event ID.")
    user_ids, elder_ids = _split_entities(entity_ids)
    inserted = 0
    try:
        for kind, model, ids in (("user", User, user_ids), ("elder", Elder, elder_ids)):
            known = set(db.execute(select(model.id).where(model.id.in_(ids))).scalars().all()) if ids else set()
            for pid in ids:
                if pid in known and _insert_if_absent(db, event_id, kind, pid):
                    inserted += 1
        db.commit()
    except Exception:
        db.rollback()
        raise
    return {"ok": True, "inserted": inserted, "skipped": len(entity_ids) - inserted}


def check_out_many(db: Session, event_id: int, entity_ids: List[Any]) -> Dict[str, Any]:
    """Delete each person's most recent check-in for the event."""
    user_ids, elder_ids = _split_entities(entity_ids)
    affected = 0
    try:
        for column, ids in ((CheckIn.user_id, user_ids), (CheckIn.elder_id, elder_ids)):
            for pid in ids:
                latest = db.execute(
                    select(CheckIn)
                    .where(CheckIn.event_id == event_id, column == pid)
                    .order_by(CheckIn.checkin_time.desc(), CheckIn.id.desc())
                    .limit(1)
                ).scalars().first()
                if latest:
                    db.delete(latest)
                    db.flush()
                    affected += 1
        db.commit()
    except Exception:
        db.rollback()
        raise
    return {"ok": True, "affected": affected}
