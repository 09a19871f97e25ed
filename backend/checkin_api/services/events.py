# checkin_api/services/events.py
"""
Events are stored as a wall-clock DATE plus an optional TIME, with no zone.

Everything that leaves this module is already formatted ("YYYY-MM-DD",
"HH:MM") so clients never reinterpret it.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from checkin_api.models.event import Event
from checkin_api.schemas.events import EventWrite

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})")


class InvalidEvent(ValueError):
    pass


# ---- Formatting ----------------------------------------------------------------

def format_date(d: Optional[date]) -> Optional[str]:
    return d.strftime("%Y-%m-%d") if d else None


def format_time(t: Optional[time]) -> Optional[str]:
    return t.strftime("%H:%M") if t else None


def event_dict(ev: Event) -> Dict[str, Any]:
    return {
        "id": ev.id,
        "title": ev.title,
        "event_date": format_date(ev.event_date),
        "event_time": format_time(ev.event_time),
        "location": ev.location,
        "description": ev.description,
    }


def parse_date(raw: Optional[str]) -> Optional[date]:
    """Keep the first ten characters ("2025-03-09T00:00:00Z" -> 2025-03-09)."""
    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw).strip()[:10])
    except ValueError:
        raise InvalidEvent(f"Invalid event_date: {raw!r}")


def parse_time(raw: Optional[str]) -> Optional[time]:
    """Keep hours and minutes; seconds are dropped."""
    if not raw:
        return None
    m = _HHMM.match(str(raw).strip())
    if not m:
        raise InvalidEvent(f"Invalid event_time: {raw!r}")
    try:
        return time(int(m.group(1)), int(m.group(2)))
    except ValueError:
        raise InvalidEvent(f"Invalid event_time: {raw!r}")


def _clean(data: EventWrite) -> Dict[str, Any]:
    title = (data.title or "").strip()
    event_date = parse_date(data.event_date)
    if not title or not event_date:
        raise InvalidEvent("title and event_date are required")
    return {
        "title": title,
        "event_date": event_date,
        "event_time": parse_time(data.event_time),
        "location": data.location,
        "description": data.description,
    }


# ---- Queries -------------------------------------------------------------------

def _sort_key(ev: Event) -> Tuple[date, bool, time]:
    # Same date: timed events first, untimed last.
    return ev.event_date, ev.event_time is None, ev.event_time or time(0, 0)


def starting_after(db: Session, cutoff: datetime, limit: Optional[int] = None) -> List[Event]:
    """Events whose date+time (missing time = midnight) is at or after `cutoff`, ascending."""
    candidates = db.execute(
        select(Event).where(Event.event_date >= cutoff.date())
    ).scalars().all()
    hits = sorted((ev for ev in candidates if ev.starts_at >= cutoff), key=_sort_key)
    return hits[:limit] if limit else hits


def upcoming(db: Session, now: Optional[datetime] = None, limit: Optional[int] = None) -> List[Event]:
    now = now or datetime.now()
    return starting_after(db, now - timedelta(hours=1), limit=limit)


def list_events(db: Session) -> List[Event]:
    rows = db.execute(select(Event)).scalars().all()
    return sorted(rows, key=lambda ev: (ev.event_date, ev.event_time is not None, ev.event_time or time(0, 0)),
                  reverse=True)


def get_event(db: Session, event_id: int) -> Optional[Event]:
    return db.get(Event, event_id)


def create_event(db: Session, data: EventWrite) -> Event:
    ev = Event(**_clean(data))
    db.add(ev)
    db.commit()
    db.refresh(ev)
    return ev


def update_event(db: Session, event_id: int, data: EventWrite) -> Optional[Event]:
    values = _clean(data)
    ev = db.get(Event, event_id)
    if not ev:
        return None
    for k, v in values.items():
        setattr(ev, k, v)
    db.commit()
    db.refresh(ev)
    return ev


def delete_event(db: Session, event_id: int) -> bool:
    ev = db.get(Event, event_id)
    if not ev:
        return False
    db.delete(ev)
    db.commit()
    return True
