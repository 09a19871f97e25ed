# checkin_api/schemas/auth.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class LoginUser(BaseModel):
    id: int
    name: str
    role: Optional[str] = None
    email: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    user: LoginUser


class AdminCreate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class AdminRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    username: str
    role: str

    model_config = ConfigDict(from_attributes=True)
