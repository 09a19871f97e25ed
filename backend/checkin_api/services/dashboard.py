# checkin_api/services/dashboard.py
from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from checkin_api.models.checkin import CheckIn
from checkin_api.models.event import Event
from checkin_api.models.ministry import ElderMinistry, Ministry, UserMinistry
from checkin_api.models.person import Elder, User
from checkin_api.services import events as events_svc


def _count(db: Session, stmt) -> int:
    return int(db.execute(stmt).scalar() or 0)


def summary(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now()
    today = now.date()
    start = datetime.combine(today, time.min)

    stats = {
        "checkInsToday": _count(
            db,
            select(func.count(CheckIn.id)).where(
                CheckIn.checkin_time >= start, CheckIn.checkin_time < start + timedelta(days=1)
            ),
        ),
        "totalUsers": _count(db, select(func.count(User.id))),
        "totalElders": _count(db, select(func.count(Elder.id))),
        "activeMinistries": _count(db, select(func.count(Ministry.id))),
        "upcomingEvents": _count(db, select(func.count(Event.id)).where(Event.event_date >= today)),
    }

    upcoming = [
        {k: v for k, v in events_svc.event_dict(ev).items() if k != "description"}
        for ev in events_svc.upcoming(db, now=now, limit=7)
    ]

    user_ministry = Ministry.__table__.alias("m1")
    elder_ministry = Ministry.__table__.alias("m2")
    rows = db.execute(
        select(
            CheckIn.id,
            CheckIn.checkin_time,
            func.coalesce(User.first_name, Elder.first_name).label("first_name"),
            func.coalesce(User.last_name, Elder.last_name).label("last_name"),
            func.coalesce(user_ministry.c.name, elder_ministry.c.name).label("ministry"),
            case(
                (CheckIn.user_id.is_not(None), "User"),
                (CheckIn.elder_id.is_not(None), "Elder"),
                else_="Unknown",
            ).label("type"),
            CheckIn.event_id,
            Event.title.label("event_title"),
        )
        .outerjoin(User, User.id == CheckIn.user_id)
        .outerjoin(Elder, Elder.id == CheckIn.elder_id)
        .outerjoin(UserMinistry, UserMinistry.user_id == User.id)
        .outerjoin(ElderMinistry, ElderMinistry.elder_id == Elder.id)
        .outerjoin(user_ministry, user_ministry.c.id == UserMinistry.ministry_id)
        .outerjoin(elder_ministry, elder_ministry.c.id == ElderMinistry.ministry_id)
        .outerjoin(Event, Event.id == CheckIn.event_id)
        .order_by(CheckIn.checkin_time.desc())
    ).all()

    return {
        "stats": stats,
        "upcomingEvents": upcoming,
        "allCheckins": [dict(r._mapping) for r in rows],
    }
