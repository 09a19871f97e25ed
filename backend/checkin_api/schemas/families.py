# checkin_api/schemas/families.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class FamilyCreate(BaseModel):
    family_name: Optional[str] = None


class FamilyRead(BaseModel):
    id: int
    family_name: str

    model_config = ConfigDict(from_attributes=True)
