"""Database module for session and preference storage."""

from ios_scale.db.models import (
    Base,
    MeasurementRecord,
    PreferenceRecord,
    SessionRecord,
)
from ios_scale.db.repository import PreferenceStore, SessionQuery, SessionRepository
from ios_scale.db.session import get_engine, get_session, init_db

__all__ = [
    "Base",
    "SessionRecord",
    "MeasurementRecord",
    "PreferenceRecord",
    "PreferenceStore",
    "SessionQuery",
    "SessionRepository",
    "get_engine",
    "get_session",
    "init_db",
]
