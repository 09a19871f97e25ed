# checkin_api/schemas/events.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class EventWrite(BaseModel):
    """
    Date and time are accepted as loose strings ("2025-03-09T00:00:00Z",
    "18:30:00") and cut down to "YYYY-MM-DD" / "HH:MM" by the service.
    """

    title: Optional[str] = None
    event_date: Optional[str] = None
    event_time: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None


class EventRead(BaseModel):
    id: int
    title: str
    event_date: str
    event_time: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
