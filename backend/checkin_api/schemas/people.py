# checkin_api/schemas/people.py
from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class PersonCreate(BaseModel):
    # Required-ness is checked by the route so a missing field is a 400, not a 422.
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    alt_phone: Optional[str] = None
    role: Optional[str] = None
    gender: Optional[str] = None
    avatar: Optional[str] = None
    family_id: Optional[int] = None


class PersonUpdate(BaseModel):
    """Full edit from the roster screen; ministry links are replaced wholesale."""

    id: Optional[Union[str, int]] = None  # "user-12" / "elder-3" fallback when the path id is mangled
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    alt_phone: Optional[str] = None
    role: Optional[str] = None
    gender: Optional[str] = None
    avatar: Optional[str] = None
    family_id: Optional[int] = None
    active: Optional[bool] = None
    ministry_ids: List[int] = Field(default_factory=list)


class ActivePatch(BaseModel):
    active: bool


class ElderCreate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    alt_phone: Optional[str] = None
    role: Optional[str] = None
