"""ORM models backing the AeonWise persistence layer."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin

JSONType = JSON


class ProfileModel(TimestampMixin, Base):
    __tablename__ = "profiles"
    __table_args__ = (
        Index("ix_profiles_username", "username", unique=True),
        Index("ix_profiles_points", "points"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    username: Mapped[str] = mapped_column(String(128), nullable=False)
    full_name: Mapped[str] = mapped_column(String(256), default="", nullable=False)
    bio: Mapped[str] = mapped_column(Text, default="", nullable=False)
    skills: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    learning_goals: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    work_experience: Mapped[list[dict]] = mapped_column(JSONType, default=list, nullable=False)
    projects: Mapped[list[dict]] = mapped_column(JSONType, default=list, nullable=False)
    certifications: Mapped[list[dict]] = mapped_column(JSONType, default=list, nullable=False)
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rank: Mapped[str] = mapped_column(String(32), default="starspark", nullable=False)

    ledger_entries: Mapped[list["PointsLedgerEntryModel"]] = relationship(
        back_populates="profile", cascade="all, delete-orphan"
    )


class PointsLedgerEntryModel(Base):
    __tablename__ = "points_ledger_entries"
    __table_args__ = (
        Index("ix_points_ledger_user_created", "user_id", "created_at"),
        Index("ix_points_ledger_source", "source"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    details: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    profile: Mapped[ProfileModel] = relationship(back_populates="ledger_entries")


class PersistenceAuditEventModel(Base):
    __tablename__ = "persistence_audit_events"
    __table_args__ = (Index("ix_audit_events_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    actor: Mapped[str | None] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    profile: Mapped[ProfileModel | None] = relationship()


__all__ = [
    "PersistenceAuditEventModel",
    "PointsLedgerEntryModel",
    "ProfileModel",
]
