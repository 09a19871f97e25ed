# checkin_api/schemas/checkins.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

IdLike = Optional[Union[int, str]]


class CheckInCreate(BaseModel):
    user_id: IdLike = None
    elder_id: IdLike = None
    event_id: IdLike = None


class CheckInRead(BaseModel):
    id: int
    event_id: int
    user_id: Optional[int] = None
    elder_id: Optional[int] = None
    checkin_time: datetime
    is_elder: bool = False

    model_config = ConfigDict(from_attributes=True)


class BulkCheckout(BaseModel):
    ids: Any = None


class KioskSessionStart(BaseModel):
    kiosk_code: Optional[str] = None


class KioskCheckIn(BaseModel):
    event_id: IdLike = None
    entity_id: IdLike = None


class KioskBulk(BaseModel):
    event_id: IdLike = None
    entity_ids: List[Union[int, str]] = Field(default_factory=list)
