"""SQLAlchemy ORM models for sessions, measurements and preferences.

Sessions own their measurements: deleting a session row cascades to its
measurement rows. Soft deletion is a nullable ``deleted_at`` column and never
touches measurements.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ios_scale.models import MODALITIES, utcnow


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class SessionRecord(Base):
    """A capture session for one modality."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    modality: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    notes = mapped_column(Text, nullable=True)

    # Soft delete: when set, the session is in the trash
    deleted_at = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    measurements: Mapped[list[MeasurementRecord]] = relationship(
        "MeasurementRecord",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="MeasurementRecord.position",
    )

    __table_args__ = (
        CheckConstraint(
            "modality IN (" + ", ".join(f"'{m}'" for m in MODALITIES) + ")",
            name="valid_modality",
        ),
        Index("ix_sessions_deleted_at", "deleted_at"),
    )


class MeasurementRecord(Base):
    """One saved measurement; ``position`` preserves save order."""

    __tablename__ = "measurements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    primary_value: Mapped[float] = mapped_column(Float, nullable=False)
    secondary_values = mapped_column(JSON, nullable=True)

    session: Mapped[SessionRecord] = relationship("SessionRecord", back_populates="measurements")

    __table_args__ = (
        CheckConstraint("primary_value >= 0 AND primary_value <= 1", name="primary_value_normalized"),
        UniqueConstraint("session_id", "position", name="uq_measurement_position"),
    )


class PreferenceRecord(Base):
    """Persisted key/value preference (settings, last positions)."""

    __tablename__ = "preferences"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
