# checkin_api/schemas/ministries.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MinistryWrite(BaseModel):
    name: Optional[str] = None
    active: bool = False


class MinistryRead(BaseModel):
    id: int
    name: str
    active: bool = Field(validation_alias="is_active")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
