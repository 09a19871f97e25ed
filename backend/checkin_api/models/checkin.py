# checkin_api/models/checkin.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, false
from sqlalchemy.orm import Mapped, mapped_column

from checkin_api.db import Base


class CheckIn(Base):
    """
    One person at one event. Exactly one of user_id / elder_id is set.

    No unique (person, event) constraint; the check-in services reject
    duplicates before insert.
    """

    __tablename__ = "check_ins"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (elder_id IS NULL)",
            name="ck_check_ins_one_person",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    elder_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("elders.id", ondelete="CASCADE"), nullable=True, index=True
    )
    checkin_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    is_elder: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    def __repr__(self) -> str:
        who = f"elder={self.elder_id}" if self.elder_id else f"user={self.user_id}"
        return f"<CheckIn id={self.id} event={self.event_id} {who}>"
