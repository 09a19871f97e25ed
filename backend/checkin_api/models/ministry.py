# checkin_api/models/ministry.py
from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, func, true
from sqlalchemy.orm import Mapped, mapped_column

from checkin_api.db import Base


class Ministry(Base):
    __tablename__ = "ministries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

    def __repr__(self) -> str:
        return f"<Ministry id={self.id} name={self.name!r}>"


# Names are unique regardless of case ("Ushers" == "ushers").
Index("uq_ministries_name_lower", func.lower(Ministry.name), unique=True)


class UserMinistry(Base):
    __tablename__ = "user_ministries"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    ministry_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ministries.id"), primary_key=True, index=True
    )


class ElderMinistry(Base):
    __tablename__ = "elder_ministries"

    elder_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("elders.id", ondelete="CASCADE"), primary_key=True
    )
    ministry_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ministries.id"), primary_key=True, index=True
    )
