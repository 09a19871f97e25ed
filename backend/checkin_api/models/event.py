# checkin_api/models/event.py
from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import Date, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from checkin_api.db import Base


class Event(Base):
    """
    Wall-clock date and time with no timezone attached.

    Clients receive `event_date`/`event_time` as pre-formatted strings so
    browsers never shift them into another zone.
    """

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    event_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.event_date, self.event_time or time(0, 0))

    def __repr__(self) -> str:
        return f"<Event id={self.id} title={self.title!r} date={self.event_date}>"
