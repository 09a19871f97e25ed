# checkin_api/models/person.py
"""
Members and elders live in two parallel tables with identical columns.

A person is in exactly one of them at a time; changing someone's role between
member and elder moves the row (see services/people.py).
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, func, true
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from checkin_api.db import Base


class PersonColumns:
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    alt_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    role: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    @declared_attr
    def family_id(cls) -> Mapped[Optional[int]]:
        return mapped_column(Integer, ForeignKey("families.id", ondelete="SET NULL"), nullable=True, index=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class User(PersonColumns, Base):
    """General member (stored role `user`, shown to clients as `member`)."""

    __tablename__ = "users"

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.full_name!r}>"


class Elder(PersonColumns, Base):
    __tablename__ = "elders"

    def __repr__(self) -> str:
        return f"<Elder id={self.id} name={self.full_name!r}>"
