"""Counsellor accounts."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staffing.db.base import Base
from staffing.utils.clock import utcnow

if TYPE_CHECKING:
    from staffing.db.models import SubmissionAssignment


class Counsellor(Base):
    """
    Staff member who can be assigned to events.

    Never hard-deleted: deactivation removes the counsellor from availability
    listings and finalize targets but keeps assignment history intact.
    """

    __tablename__ = "counsellors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1", nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    assignments: Mapped[list["SubmissionAssignment"]] = relationship(
        back_populates="counsellor", passive_deletes=True
    )

    @property
    def display_name(self) -> str:
        return f"{self.full_name} ({self.username})"
