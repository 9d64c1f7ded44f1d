"""Notification store models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from staffing.db.base import Base
from staffing.db.enums import NotificationPriority, NotificationStatus, TargetRole
from staffing.db.types import JsonType
from staffing.utils.clock import utcnow


class Notification(Base):
    """
    Event record raised by a detection job.

    Visible to a user when target_role matches their role, target_role is
    'all', or target_user is their username.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_target", "target_role", "target_user"),
        Index("idx_notifications_status", "status"),
        Index("idx_notifications_type", "type"),
        Index("idx_notifications_created", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    priority: Mapped[str] = mapped_column(
        String(20),
        default=NotificationPriority.MEDIUM.value,
        server_default=NotificationPriority.MEDIUM.value,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_json: Mapped[dict | None] = mapped_column("metadata", JsonType, nullable=True)

    target_role: Mapped[str] = mapped_column(
        String(20), default=TargetRole.ADMIN.value, server_default=TargetRole.ADMIN.value, nullable=False
    )
    target_user: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=NotificationStatus.UNREAD.value,
        server_default=NotificationStatus.UNREAD.value,
        nullable=False,
    )
    related_submission_id: Mapped[int | None] = mapped_column(
        ForeignKey("submissions.id", ondelete="CASCADE"), nullable=True
    )
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now(), nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(nullable=True)


class NotificationSetting(Base):
    """Admin-configurable key/value controlling detection jobs."""

    __tablename__ = "notification_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    setting_key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    setting_value: Mapped[str] = mapped_column(Text, nullable=False)  # JSON or simple value
    description: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )


class DuplicateDismissal(Base):
    """
    Submission pair an admin marked as "not a duplicate".

    Stored normalised (submission_id_1 < submission_id_2) so the pair is
    unordered.
    """

    __tablename__ = "duplicate_dismissals"
    __table_args__ = (UniqueConstraint("submission_id_1", "submission_id_2", name="uq_duplicate_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id_1: Mapped[int] = mapped_column(Integer, nullable=False)
    submission_id_2: Mapped[int] = mapped_column(Integer, nullable=False)
    dismissed_by: Mapped[str] = mapped_column(String(100), nullable=False)
    dismissed_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now(), nullable=False)
