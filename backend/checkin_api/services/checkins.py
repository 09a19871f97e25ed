# checkin_api/services/checkins.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from checkin_api.models.checkin import CheckIn
from checkin_api.models.event import Event
from checkin_api.models.person import Elder, User
from checkin_api.services.events import format_time

logger = logging.getLogger(__name__)


class InvalidCheckIn(ValueError):
    pass


class AlreadyCheckedIn(Exception):
    def __init__(self, user_id: Optional[int], elder_id: Optional[int]):
        super().__init__("Already checked in for this event.")
        self.user_id = user_id
        self.elder_id = elder_id


def _as_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def find_existing(db: Session, event_id: int, *, user_id: Optional[int] = None,
                  elder_id: Optional[int] = None) -> Optional[CheckIn]:
    stmt = select(CheckIn).where(CheckIn.event_id == event_id)
    if elder_id is not None:
        stmt = stmt.where(CheckIn.elder_id == elder_id)
    else:
        stmt = stmt.where(CheckIn.user_id == user_id)
    return db.execute(stmt.limit(1)).scalars().first()


def check_in(db: Session, *, user_id: Any, elder_id: Any, event_id: Any) -> CheckIn:
    """Staff check-in. An elder id wins when both ids are sent."""
    event_id = _as_int(event_id)
    user_id = _as_int(user_id)
    elder_id = _as_int(elder_id)

    if not event_id or (not user_id and not elder_id):
        raise InvalidCheckIn("Missing or invalid required fields")

    is_elder = bool(elder_id)
    person = db.get(Elder, elder_id) if is_elder else db.get(User, user_id)
    if not person:
        raise InvalidCheckIn("Invalid user or elder ID.")
    if not db.get(Event, event_id):
        raise InvalidCheckIn("Invalid event ID.")

    if is_elder:
        existing = find_existing(db, event_id, elder_id=elder_id)
    else:
        existing = find_existing(db, event_id, user_id=user_id)
    if existing:
        raise AlreadyCheckedIn(user_id, elder_id)

    row = CheckIn(
        event_id=event_id,
        user_id=None if is_elder else user_id,
        elder_id=elder_id if is_elder else None,
        checkin_time=datetime.now(),
        is_elder=is_elder,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("check-in: event=%s user=%s elder=%s", event_id, row.user_id, row.elder_id)
    return row


def delete_checkin(db: Session, checkin_id: int) -> bool:
    row = db.get(CheckIn, checkin_id)
    if not row:
        return False
    db.delete(row)
    db.commit()
    return True


def detailed_for_event(db: Session, event_id: int) -> List[Dict[str, Any]]:
    rows = db.execute(
        select(CheckIn, User, Elder, Event)
        .outerjoin(User, User.id == CheckIn.user_id)
        .outerjoin(Elder, Elder.id == CheckIn.elder_id)
        .outerjoin(Event, Event.id == CheckIn.event_id)
        .where(CheckIn.event_id == event_id)
        .order_by(CheckIn.checkin_time)
    ).all()
    out = []
    for c, u, e, ev in rows:
        out.append(
            {
                "checkin_id": c.id,
                "checkin_time": c.checkin_time,
                "user_id": c.user_id,
                "user_first_name": u.first_name if u else None,
                "user_last_name": u.last_name if u else None,
                "user_avatar": u.avatar if u else None,
                "user_role": u.role if u else None,
                "elder_id": c.elder_id,
                "elder_first_name": e.first_name if e else None,
                "elder_last_name": e.last_name if e else None,
                "elder_avatar": e.avatar if e else None,
                "elder_role": e.role if e else None,
                "event_title": ev.title if ev else None,
                "event_location": ev.location if ev else None,
                "event_time": format_time(ev.event_time) if ev else None,
            }
        )
    return out


def list_all(db: Session) -> List[Dict[str, Any]]:
    rows = db.execute(
        select(
            CheckIn.id,
            CheckIn.checkin_time,
            func.coalesce(User.first_name, Elder.first_name).label("first_name"),
            func.coalesce(User.last_name, Elder.last_name).label("last_name"),
            func.coalesce(User.avatar, Elder.avatar).label("avatar"),
            func.coalesce(User.role, Elder.role).label("role"),
            Event.title.label("event_title"),
            CheckIn.user_id,
            CheckIn.elder_id,
            CheckIn.event_id,
        )
        .outerjoin(User, User.id == CheckIn.user_id)
        .outerjoin(Elder, Elder.id == CheckIn.elder_id)
        .outerjoin(Event, Event.id == CheckIn.event_id)
        .order_by(CheckIn.checkin_time.desc())
    ).all()
    return [dict(r._mapping) for r in rows]


def bulk_delete(db: Session, ids: Iterable[Any]) -> int:
    wanted = [i for i in (_as_int(x) for x in ids) if i is not None]
    if not wanted:
        return 0
    try:
        result = db.execute(delete(CheckIn).where(CheckIn.id.in_(wanted)))
        db.commit()
    except Exception:
        db.rollback()
        raise
    return result.rowcount or 0
