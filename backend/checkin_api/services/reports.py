# checkin_api/services/reports.py
from __future__ import annotations

import csv
import re
from io import BytesIO, StringIO
from typing import Any, Dict, List, Optional
from zipfile import ZIP_DEFLATED, ZipFile

from sqlalchemy import and_, exists, func, literal, select, union_all
from sqlalchemy.orm import Session

from checkin_api.models.checkin import CheckIn
from checkin_api.models.event import Event
from checkin_api.models.ministry import ElderMinistry, Ministry, UserMinistry
from checkin_api.models.person import Elder, User
from checkin_api.services.events import format_date

ATTENDANCE_FIELDS = ["first_name", "last_name", "email", "phone", "event_title", "event_date", "checkin_time"]
ABSENT_FIELDS = ["first_name", "last_name", "email", "phone"]


def _rows(result) -> List[Dict[str, Any]]:
    out = []
    for r in result:
        row = dict(r._mapping)
        if hasattr(row.get("event_date"), "strftime"):
            row["event_date"] = format_date(row["event_date"])
        out.append(row)
    return out


def _checked_in_users(event_id: Optional[int]):
    """Subquery of user ids with a check-in (for one event, or for any event)."""
    stmt = select(CheckIn.user_id).where(CheckIn.user_id.is_not(None))
    if event_id:
        stmt = stmt.where(CheckIn.event_id == event_id)
    return stmt


# ---- JSON reports ----------------------------------------------------------------

def attendees(db: Session) -> List[Dict[str, Any]]:
    users = (
        select(
            User.id.label("id"), User.first_name, User.last_name, User.email, User.phone,
            Event.title.label("event_title"), Event.event_date.label("event_date"),
            literal("user").label("type"),
        )
        .join(CheckIn, CheckIn.user_id == User.id)
        .join(Event, Event.id == CheckIn.event_id)
    )
    elders = (
        select(
            Elder.id.label("id"), Elder.first_name, Elder.last_name, Elder.email, Elder.phone,
            Event.title.label("event_title"), Event.event_date.label("event_date"),
            literal("elder").label("type"),
        )
        .join(CheckIn, CheckIn.elder_id == Elder.id)
        .join(Event, Event.id == CheckIn.event_id)
    )
    u = union_all(users, elders).subquery()
    return _rows(db.execute(select(u).order_by(u.c.event_date.desc(), u.c.last_name)))


def active_ministries(db: Session) -> List[Dict[str, Any]]:
    return _rows(
        db.execute(
            select(Ministry.id, Ministry.name).where(Ministry.is_active.is_(True)).order_by(Ministry.name)
        )
    )


def ministry_attendance(db: Session, ministry_id: int, event_id: Optional[int] = None) -> List[Dict[str, Any]]:
    stmt = (
        select(
            CheckIn.id.label("checkin_id"), User.id.label("user_id"),
            User.first_name, User.last_name, User.email, User.role,
            Event.title.label("event_title"), Event.event_date, CheckIn.checkin_time,
        )
        .join(User, User.id == CheckIn.user_id)
        .join(UserMinistry, UserMinistry.user_id == User.id)
        .join(Event, Event.id == CheckIn.event_id)
        .where(UserMinistry.ministry_id == ministry_id)
        .order_by(Event.event_date.desc(), User.last_name)
    )
    if event_id:
        stmt = stmt.where(CheckIn.event_id == event_id)
    return _rows(db.execute(stmt))


def ministry_absent(db: Session, event_id: int, ministry_id: Optional[int] = None) -> List[Dict[str, Any]]:
    stmt = (
        select(User.id.label("user_id"), User.first_name, User.last_name, User.email, User.phone)
        .join(UserMinistry, UserMinistry.user_id == User.id)
        .join(Ministry, Ministry.id == UserMinistry.ministry_id)
        .where(User.id.not_in(_checked_in_users(event_id)))
        .order_by(Ministry.name, User.last_name)
    )
    if ministry_id:
        stmt = stmt.where(Ministry.id == ministry_id)
    return _rows(db.execute(stmt))


def elder_report(db: Session, elder_id: int, event_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """Check-ins of members serving in the ministries this elder oversees."""
    stmt = (
        select(
            User.first_name, User.last_name, User.email,
            Event.title.label("event_title"), Event.event_date, Ministry.name.label("ministry_name"),
        )
        .select_from(CheckIn)
        .join(User, User.id == CheckIn.user_id)
        .join(UserMinistry, UserMinistry.user_id == User.id)
        .join(Ministry, Ministry.id == UserMinistry.ministry_id)
        .join(ElderMinistry, ElderMinistry.ministry_id == Ministry.id)
        .join(Event, Event.id == CheckIn.event_id)
        .where(ElderMinistry.elder_id == elder_id)
        .order_by(Event.event_date.desc(), User.last_name)
    )
    if event_id:
        stmt = stmt.where(CheckIn.event_id == event_id)
    return _rows(db.execute(stmt))


def elder_absent(db: Session, elder_id: int, event_id: int) -> List[Dict[str, Any]]:
    stmt = (
        select(User.first_name, User.last_name, User.email, Ministry.name.label("ministry_name"))
        .join(UserMinistry, UserMinistry.user_id == User.id)
        .join(Ministry, Ministry.id == UserMinistry.ministry_id)
        .join(ElderMinistry, ElderMinistry.ministry_id == Ministry.id)
        .where(ElderMinistry.elder_id == elder_id, User.id.not_in(_checked_in_users(event_id)))
        .order_by(Ministry.name, User.last_name)
    )
    return _rows(db.execute(stmt))


def roster(db: Session, ministry_id: int) -> List[Dict[str, Any]]:
    stmt = (
        select(User.id, User.first_name, User.last_name, User.email, User.phone, Ministry.name.label("ministry"))
        .join(UserMinistry, UserMinistry.user_id == User.id)
        .join(Ministry, Ministry.id == UserMinistry.ministry_id)
        .where(Ministry.id == ministry_id)
        .order_by(User.last_name)
    )
    return _rows(db.execute(stmt))


def _has_active_ministry():
    return exists(
        select(UserMinistry.user_id)
        .join(Ministry, and_(Ministry.id == UserMinistry.ministry_id, Ministry.is_active.is_(True)))
        .where(UserMinistry.user_id == User.id)
    )


def users_without_ministry(db: Session, only_active: bool = True) -> List[Dict[str, Any]]:
    stmt = (
        select(User.id, User.first_name, User.last_name, User.email, User.phone, User.active)
        .where(~_has_active_ministry())
        .order_by(func.lower(User.last_name), func.lower(User.first_name))
    )
    if only_active:
        stmt = stmt.where(User.active.is_(True))
    return _rows(db.execute(stmt))


def no_active_ministry(db: Session, active_only: bool = False) -> List[Dict[str, Any]]:
    return users_without_ministry(db, only_active=active_only)


def inactive_members(db: Session) -> List[Dict[str, Any]]:
    users = db.execute(
        select(User).where(User.active.is_(False)).order_by(User.last_name, User.first_name)
    ).scalars().all()
    names: Dict[int, List[str]] = {}
    if users:
        for uid, name in db.execute(
            select(UserMinistry.user_id, Ministry.name)
            .join(Ministry, Ministry.id == UserMinistry.ministry_id)
            .where(Ministry.is_active.is_(True), UserMinistry.user_id.in_([u.id for u in users]))
        ).all():
            names.setdefault(uid, []).append(name)
    return [
        {
            "id": u.id, "first_name": u.first_name, "last_name": u.last_name,
            "email": u.email, "phone": u.phone, "active": False,
            "ministries": ", ".join(sorted(set(names.get(u.id, [])))),
        }
        for u in users
    ]


# ---- ZIP export --------------------------------------------------------------------

def safe_name(name: str, fallback: str) -> str:
    return re.sub(r"[^\w]+", "_", name or "") or fallback


def _attendance_rows(db: Session, ministry_id: int, event_id: Optional[int]) -> List[Dict[str, Any]]:
    stmt = (
        select(
            User.first_name, User.last_name, User.email, User.phone,
            Event.title.label("event_title"), Event.event_date, CheckIn.checkin_time,
        )
        .select_from(CheckIn)
        .join(User, User.id == CheckIn.user_id)
        .join(UserMinistry, UserMinistry.user_id == User.id)
        .join(Event, Event.id == CheckIn.event_id)
        .where(UserMinistry.ministry_id == ministry_id)
        .order_by(Event.event_date.desc(), User.last_name, User.first_name)
    )
    if event_id:
        stmt = stmt.where(CheckIn.event_id == event_id)
    return _rows(db.execute(stmt))


def _absent_rows(db: Session, ministry_id: int, event_id: Optional[int]) -> List[Dict[str, Any]]:
    stmt = (
        select(User.first_name, User.last_name, User.email, User.phone)
        .join(UserMinistry, UserMinistry.user_id == User.id)
        .where(UserMinistry.ministry_id == ministry_id, User.id.not_in(_checked_in_users(event_id)))
        .order_by(User.last_name, User.first_name)
    )
    return _rows(db.execute(stmt))


def _csv_bytes(fields: List[str], rows: List[Dict[str, Any]]) -> bytes:
    buf = StringIO()
    writer = csv.DictWriter(buf, fieldnames=fields, extrasaction="ignore")
    writer.writeheader()
    for r in rows:
        writer.writerow(r)
    return buf.getvalue().encode("utf-8")


def build_all_ministries_zip(db: Session, event_id: Optional[int] = None) -> BytesIO:
    """
    One attendance and one absent CSV per active ministry. Without an event,
    "absent" means never checked in to anything.
    """
    zip_buf = BytesIO()
    with ZipFile(zip_buf, "w", ZIP_DEFLATED) as zf:
        for m in active_ministries(db):
            safe = safe_name(m["name"], f"ministry_{m['id']}")
            zf.writestr(f"attendance_{safe}.csv", _csv_bytes(ATTENDANCE_FIELDS, _attendance_rows(db, m["id"], event_id)))
            zf.writestr(f"absent_{safe}.csv", _csv_bytes(ABSENT_FIELDS, _absent_rows(db, m["id"], event_id)))
    zip_buf.seek(0)
    return zip_buf
