"""Event submissions and their staffing facts."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staffing.db.base import Base
from staffing.db.enums import EventStatus, PaymentStatus, SubmissionStatus
from staffing.db.models.counsellors import Counsellor
from staffing.utils.clock import utcnow


class Submission(Base):
    """
    A counsellor-proposed event with an inclusive date range.

    start_date <= end_date is enforced by the service layer, not the schema,
    so anomaly detection can still spot rows written around validation.
    """

    __tablename__ = "submissions"
    __table_args__ = (
        Index("idx_submissions_dates", "start_date", "end_date"),
        Index("idx_submissions_status", "status"),
        Index("idx_submissions_submitted_by", "submitted_by"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # "organizer | event name | event type" display string
    organizer: Mapped[str] = mapped_column(String(500), nullable=False)
    organizer_id: Mapped[int | None] = mapped_column(ForeignKey("organizers.id", ondelete="SET NULL"))
    event_name_id: Mapped[int | None] = mapped_column(ForeignKey("event_names.id", ondelete="SET NULL"))
    event_type_id: Mapped[int | None] = mapped_column(ForeignKey("event_types.id", ondelete="SET NULL"))

    city: Mapped[str] = mapped_column(String(255), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)

    proposed_staffing: Mapped[str | None] = mapped_column(Text)
    remarks: Mapped[str | None] = mapped_column(Text)

    # Admin-only metadata
    sent_by_counsellor_id: Mapped[int | None] = mapped_column(
        ForeignKey("counsellors.id", ondelete="SET NULL")
    )
    payment_status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.UNPAID.value, server_default=PaymentStatus.UNPAID.value, nullable=False
    )
    event_status: Mapped[str] = mapped_column(
        String(20), default=EventStatus.ONGOING.value, server_default=EventStatus.ONGOING.value, nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=SubmissionStatus.PENDING.value,
        server_default=SubmissionStatus.PENDING.value,
        nullable=False,
    )
    submitted_by: Mapped[str] = mapped_column(String(100), nullable=False)

    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    assignments: Mapped[list["SubmissionAssignment"]] = relationship(
        back_populates="submission", cascade="all, delete-orphan", passive_deletes=True
    )
    suggestions: Mapped[list["SubmissionSuggestion"]] = relationship(
        back_populates="submission", cascade="all, delete-orphan", passive_deletes=True
    )
    sent_by: Mapped[Counsellor | None] = relationship(foreign_keys=[sent_by_counsellor_id])

    @property
    def assigned_counsellors(self) -> list[Counsellor]:
        return [assignment.counsellor for assignment in self.assignments]

    @property
    def suggested_counsellors(self) -> list[Counsellor]:
        return [suggestion.counsellor for suggestion in self.suggestions]


class SubmissionAssignment(Base):
    """Confirmed staffing: counsellor X works submission Y."""

    __tablename__ = "submission_assignments"
    __table_args__ = (Index("idx_assignments_counsellor", "counsellor_id"),)

    submission_id: Mapped[int] = mapped_column(
        ForeignKey("submissions.id", ondelete="CASCADE"), primary_key=True
    )
    counsellor_id: Mapped[int] = mapped_column(
        ForeignKey("counsellors.id", ondelete="CASCADE"), primary_key=True
    )

    submission: Mapped[Submission] = relationship(back_populates="assignments")
    counsellor: Mapped[Counsellor] = relationship(back_populates="assignments")


class SubmissionSuggestion(Base):
    """Advisory staffing proposal; never used for conflicts."""

    __tablename__ = "submission_suggestions"

    submission_id: Mapped[int] = mapped_column(
        ForeignKey("submissions.id", ondelete="CASCADE"), primary_key=True
    )
    counsellor_id: Mapped[int] = mapped_column(
        ForeignKey("counsellors.id", ondelete="CASCADE"), primary_key=True
    )

    submission: Mapped[Submission] = relationship(back_populates="suggestions")
    counsellor: Mapped[Counsellor] = relationship()
