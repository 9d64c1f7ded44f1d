"""Admin-managed presets used when counsellors submit events."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staffing.db.base import Base
from staffing.db.models.counsellors import Counsellor
from staffing.utils.clock import utcnow


class _PresetMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1", nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now(), nullable=False)


class Organizer(_PresetMixin, Base):
    __tablename__ = "organizers"


class EventName(_PresetMixin, Base):
    __tablename__ = "event_names"


class EventType(_PresetMixin, Base):
    __tablename__ = "event_types"


class CountrySuggestion(Base):
    """Counsellors an admin recommends for events in a given country."""

    __tablename__ = "country_counsellor_suggestions"
    __table_args__ = (UniqueConstraint("country", "counsellor_id", name="uq_country_counsellor"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    counsellor_id: Mapped[int] = mapped_column(
        ForeignKey("counsellors.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now(), nullable=False)

    counsellor: Mapped[Counsellor] = relationship()

    @property
    def full_name(self) -> str:
        return self.counsellor.full_name

    @property
    def username(self) -> str:
        return self.counsellor.username
