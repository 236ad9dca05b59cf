"""Repository layer for session, measurement and preference storage.

Provides the session lifecycle operations (create, append, soft delete,
restore, hard delete, discard-if-empty, empty trash) and in-memory query
filtering, abstracting away SQLAlchemy session management. Every operation
runs in its own transaction; database failures are rolled back and surfaced
as ``StorageError``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Generator, Literal, Mapping, Optional, Union

from pydantic import BaseModel, model_validator
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession
from sqlalchemy.orm import selectinload

from ios_scale.db.models import MeasurementRecord, PreferenceRecord, SessionRecord
from ios_scale.db.session import get_session
from ios_scale.errors import SessionNotFoundError, StorageError
from ios_scale.modalities.registry import display_name
from ios_scale.models import (
    Active,
    Measurement,
    Modality,
    Session,
    Trashed,
    as_utc,
    utcnow,
)
from ios_scale.settings import SETTINGS_KEY, AppSettings

logger = logging.getLogger(__name__)

SessionRef = Union[Session, uuid.UUID, str]
SortOption = Literal["newest_first", "oldest_first", "most_measurements", "modality_name"]


class SessionQuery(BaseModel):
    """Filter and sort options for ``SessionRepository.query``.

    With neither ``active_only`` nor ``trashed_only`` set, only active
    sessions are returned.
    """

    active_only: bool = False
    trashed_only: bool = False
    modality: Optional[Modality] = None
    text_filter: Optional[str] = None
    sort: SortOption = "newest_first"

    @model_validator(mode="after")
    def validate_lifecycle_flags(self) -> "SessionQuery":
        if self.active_only and self.trashed_only:
            raise ValueError("active_only and trashed_only are mutually exclusive")
        return self


def _session_key(ref: SessionRef) -> str:
    if isinstance(ref, Session):
        return str(ref.id)
    return str(ref)


def _measurement_from_record(record: MeasurementRecord) -> Measurement:
    return Measurement(
        id=uuid.UUID(record.id),
        timestamp=as_utc(record.timestamp),
        primary_value=record.primary_value,
        secondary_values=record.secondary_values,
    )


def _session_from_record(record: SessionRecord) -> Session:
    lifecycle = (
        Trashed(deleted_at=as_utc(record.deleted_at))
        if record.deleted_at is not None
        else Active()
    )
    return Session(
        id=uuid.UUID(record.id),
        modality=record.modality,
        created_at=as_utc(record.created_at),
        measurements=[_measurement_from_record(m) for m in record.measurements],
        notes=record.notes,
        lifecycle=lifecycle,
    )


def _matches_text(session: Session, text: str) -> bool:
    needle = text.casefold()
    if needle in display_name(session.modality).casefold():
        return True
    return session.notes is not None and needle in session.notes.casefold()


def sort_sessions(sessions: list[Session], sort: SortOption) -> list[Session]:
    """Sort sessions for display."""
    if sort == "oldest_first":
        return sorted(sessions, key=lambda s: s.created_at)
    if sort == "most_measurements":
        return sorted(sessions, key=lambda s: s.measurement_count, reverse=True)
    if sort == "modality_name":
        return sorted(sessions, key=lambda s: display_name(s.modality))
    return sorted(sessions, key=lambda s: s.created_at, reverse=True)


class SessionRepository:
    """Repository for session and measurement lifecycle operations."""

    def __init__(self, engine: Engine):
        """Initialize repository with a database engine.

        Args:
            engine: SQLAlchemy engine with the schema already created
        """
        self.engine = engine
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _unit_of_work(self, operation: str) -> Generator[DbSession, None, None]:
        try:
            with get_session(self.engine) as db:
                yield db
        except SQLAlchemyError as e:
            logger.error(f"Failed to {operation}: {e}")
            raise StorageError(f"Failed to {operation}: {e}") from e

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def _forget_lock(self, key: str) -> None:
        """Drop the append lock of a session that no longer exists."""
        with self._locks_guard:
            self._locks.pop(key, None)

    @staticmethod
    def _get_record(db: DbSession, key: str) -> SessionRecord:
        record = db.get(SessionRecord, key)
        if record is None:
            raise SessionNotFoundError(f"Session not found: {key}")
        return record

    # ========================================================================
    # Session lifecycle
    # ========================================================================

    def create_session(self, modality: Modality, notes: Optional[str] = None) -> Session:
        """Insert a new active session with no measurements."""
        session = Session(modality=modality, notes=notes)
        with self._unit_of_work("create session") as db:
            db.add(
                SessionRecord(
                    id=str(session.id),
                    modality=session.modality,
                    created_at=session.created_at,
                    notes=session.notes,
                )
            )
        logger.debug(f"Created {modality} session {session.id}")
        return session

    def append_measurement(
        self,
        session: SessionRef,
        primary_value: float,
        secondary_values: Optional[Mapping[str, float]] = None,
        timestamp: Optional[datetime] = None,
    ) -> Measurement:
        """Append a measurement to a session and persist it.

        Appends to the same session are serialized; appends to different
        sessions are not.

        Args:
            session: Session or session id
            primary_value: Raw primary value; clamped to [0, 1]
            secondary_values: Optional modality-specific values
            timestamp: Capture time, defaults to now

        Returns:
            The stored measurement

        Raises:
            SessionNotFoundError: If the session does not exist
            StorageError: If the write fails
        """
        key = _session_key(session)
        measurement = Measurement(
            timestamp=timestamp or utcnow(),
            primary_value=primary_value,
            secondary_values=secondary_values,
        )
        with self._lock_for(key):
            with self._unit_of_work("append measurement") as db:
                self._get_record(db, key)
                last_position = db.execute(
                    select(func.max(MeasurementRecord.position)).where(
                        MeasurementRecord.session_id == key
                    )
                ).scalar_one()
                db.add(
                    MeasurementRecord(
                        id=str(measurement.id),
                        session_id=key,
                        position=0 if last_position is None else last_position + 1,
                        timestamp=measurement.timestamp,
                        primary_value=measurement.primary_value,
                        secondary_values=(
                            dict(measurement.secondary_values)
                            if measurement.secondary_values is not None
                            else None
                        ),
                    )
                )
        logger.debug(f"Appended measurement {measurement.id} to session {key}")
        return measurement

    def update_notes(self, session: SessionRef, notes: Optional[str]) -> Session:
        key = _session_key(session)
        with self._unit_of_work("update notes") as db:
            record = self._get_record(db, key)
            record.notes = notes or None
            db.flush()
            return _session_from_record(record)

    def discard_if_empty(self, session: SessionRef) -> bool:
        """Hard-delete the session if it has no measurements.

        Returns:
            True if the session was deleted
        """
        key = _session_key(session)
        with self._lock_for(key):
            with self._unit_of_work("discard session") as db:
                record = db.get(SessionRecord, key)
                if record is not None and record.measurements:
                    return False
                if record is not None:
                    db.delete(record)
        self._forget_lock(key)
        if record is None:
            return False
        logger.debug(f"Discarded empty session {key}")
        return True

    def soft_delete(self, session: SessionRef, at: Optional[datetime] = None) -> Session:
        """Move a session to the trash. Already-trashed sessions are unchanged."""
        key = _session_key(session)
        with self._unit_of_work("move session to trash") as db:
            record = self._get_record(db, key)
            if record.deleted_at is None:
                record.deleted_at = at or utcnow()
                logger.debug(f"Moved session {key} to trash")
            db.flush()
            return _session_from_record(record)

    def restore(self, session: SessionRef) -> Session:
        """Restore a session from the trash. Active sessions are unchanged."""
        key = _session_key(session)
        with self._unit_of_work("restore session") as db:
            record = self._get_record(db, key)
            if record.deleted_at is not None:
                record.deleted_at = None
                logger.debug(f"Restored session {key}")
            db.flush()
            return _session_from_record(record)

    def hard_delete(self, session: SessionRef) -> None:
        """Permanently delete a session and all of its measurements."""
        key = _session_key(session)
        with self._lock_for(key):
            with self._unit_of_work("delete session") as db:
                db.delete(self._get_record(db, key))
        self._forget_lock(key)
        logger.info(f"Permanently deleted session {key}")

    def empty_trash(self) -> int:
        """Permanently delete every trashed session.

        Returns:
            Number of sessions deleted
        """
        with self._unit_of_work("empty trash") as db:
            records = db.execute(
                select(SessionRecord).where(SessionRecord.deleted_at.is_not(None))
            ).scalars().all()
            for record in records:
                db.delete(record)
        for record in records:
            self._forget_lock(record.id)
        logger.info(f"Emptied trash: {len(records)} session(s) deleted")
        return len(records)

    # ========================================================================
    # Queries
    # ========================================================================

    def get_session(self, session: SessionRef) -> Optional[Session]:
        key = _session_key(session)
        with self._unit_of_work("load session") as db:
            record = db.get(SessionRecord, key)
            return _session_from_record(record) if record is not None else None

    def _load(self, trashed: Optional[bool], modality: Optional[str] = None) -> list[Session]:
        stmt = select(SessionRecord).options(selectinload(SessionRecord.measurements))
        if trashed is True:
            stmt = stmt.where(SessionRecord.deleted_at.is_not(None))
        elif trashed is False:
            stmt = stmt.where(SessionRecord.deleted_at.is_(None))
        if modality is not None:
            stmt = stmt.where(SessionRecord.modality == modality)
        with self._unit_of_work("load sessions") as db:
            return [_session_from_record(r) for r in db.execute(stmt).scalars().all()]

    def query(self, query: Optional[SessionQuery] = None) -> list[Session]:
        """Return sessions filtered and sorted for display."""
        query = query or SessionQuery()
        sessions = self._load(trashed=query.trashed_only, modality=query.modality)
        if query.text_filter:
            sessions = [s for s in sessions if _matches_text(s, query.text_filter)]
        return sort_sessions(sessions, query.sort)

    def all_sessions(self) -> list[Session]:
        """Every session, active or trashed, oldest first."""
        return sort_sessions(self._load(trashed=None), "oldest_first")

    def available_modalities(self) -> list[str]:
        """Modalities present among active sessions, by display name."""
        modalities = {s.modality for s in self._load(trashed=False)}
        return sorted(modalities, key=display_name)


class PreferenceStore:
    """Persisted key/value preferences (settings and last positions)."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def get(self, key: str, default: Any = None) -> Any:
        try:
            with get_session(self.engine) as db:
                record = db.get(PreferenceRecord, key)
                return default if record is None or record.value is None else record.value
        except SQLAlchemyError as e:
            logger.warning(f"Failed to read preference {key}: {e}")
            return default

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, values: dict[str, Any]) -> None:
        try:
            with get_session(self.engine) as db:
                for key, value in values.items():
                    record = db.get(PreferenceRecord, key)
                    if record is None:
                        db.add(PreferenceRecord(key=key, value=value))
                    else:
                        record.value = value
        except SQLAlchemyError as e:
            logger.error(f"Failed to save preferences {sorted(values)}: {e}")
            raise StorageError(f"Failed to save preferences: {e}") from e

    def load_settings(self) -> AppSettings:
        return AppSettings.from_stored(self.get(SETTINGS_KEY))

    def save_settings(self, settings: AppSettings) -> None:
        self.set(SETTINGS_KEY, settings.model_dump())
