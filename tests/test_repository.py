"""Tests for the session repository and preference store."""

import threading
import uuid
from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select, text

from ios_scale.db import (
    MeasurementRecord,
    PreferenceStore,
    SessionQuery,
    SessionRecord,
    SessionRepository,
    get_session,
)
from ios_scale.errors import SessionNotFoundError, StorageError
from ios_scale.models import Active, Trashed


def _measurement_rows(engine, session_id=None):
    stmt = select(func.count()).select_from(MeasurementRecord)
    if session_id is not None:
        stmt = stmt.where(MeasurementRecord.session_id == str(session_id))
    with get_session(engine) as db:
        return db.execute(stmt).scalar_one()


class TestCreateAndAppend:
    """Creating sessions and appending measurements."""

    def test_create_session(self, repository):
        session = repository.create_session("basic_ios", notes="first try")
        loaded = repository.get_session(session.id)
        assert loaded == session
        assert loaded.measurements == []
        assert isinstance(loaded.lifecycle, Active)

    def test_append_preserves_order(self, repository, make_timestamps):
        session = repository.create_session("basic_ios")
        for value, ts in zip([0.6, 0.2, 0.4], make_timestamps(3)):
            repository.append_measurement(session, value, timestamp=ts)
        loaded = repository.get_session(session.id)
        assert [m.primary_value for m in loaded.measurements] == [0.6, 0.2, 0.4]

    def test_append_clamps(self, repository):
        session = repository.create_session("proximity")
        measurement = repository.append_measurement(session.id, 1.7)
        assert measurement.primary_value == 1.0
        assert repository.get_session(session.id).measurements[0].primary_value == 1.0

    def test_append_round_trips_secondary_values(self, repository):
        session = repository.create_session("advanced_ios")
        stored = repository.append_measurement(
            str(session.id), 0.5, {"self_scale": 1.25, "other_scale": 0.75}
        )
        loaded = repository.get_session(session.id).measurements[0]
        assert loaded == stored
        assert loaded.self_scale == 1.25

    def test_append_to_missing_session(self, repository):
        with pytest.raises(SessionNotFoundError):
            repository.append_measurement(uuid.uuid4(), 0.5)

    def test_missing_session_is_storage_error(self, repository):
        with pytest.raises(StorageError):
            repository.append_measurement(uuid.uuid4(), 0.5)

    def test_timestamps_round_trip_as_utc(self, repository, fixed_now):
        session = repository.create_session("basic_ios")
        repository.append_measurement(session, 0.5, timestamp=fixed_now)
        loaded = repository.get_session(session.id).measurements[0]
        assert loaded.timestamp == fixed_now
        assert loaded.timestamp.utcoffset() == timedelta(0)

    def test_update_notes(self, repository):
        session = repository.create_session("overlap")
        updated = repository.update_notes(session, "after lunch")
        assert updated.notes == "after lunch"
        assert repository.update_notes(session, "").notes is None


class TestSoftDelete:
    """Trash and restore."""

    def test_soft_delete_then_restore_is_identity(self, repository, make_timestamps):
        session = repository.create_session("overlap", notes="note")
        for value, ts in zip([0.1, 0.5, 0.9], make_timestamps(3)):
            repository.append_measurement(session, value, timestamp=ts)
        original = repository.get_session(session.id)

        trashed = repository.soft_delete(session)
        assert trashed.is_trashed
        assert trashed.measurements == original.measurements

        restored = repository.restore(session)
        assert restored == original
        assert _measurement_rows(repository.engine, session.id) == 3

    def test_soft_delete_is_idempotent(self, repository):
        session = repository.create_session("overlap")
        at = datetime(2025, 2, 1, tzinfo=UTC)
        first = repository.soft_delete(session, at=at)
        second = repository.soft_delete(session, at=at + timedelta(days=1))
        assert first == second
        assert second.lifecycle == Trashed(deleted_at=at)

    def test_restore_active_is_noop(self, repository):
        session = repository.create_session("overlap")
        assert repository.restore(session) == repository.get_session(session.id)

    def test_trashed_excluded_from_default_query(self, repository):
        kept = repository.create_session("basic_ios")
        trashed = repository.create_session("basic_ios")
        repository.soft_delete(trashed)
        assert [s.id for s in repository.query()] == [kept.id]
        assert [s.id for s in repository.query(SessionQuery(trashed_only=True))] == [trashed.id]

    def test_soft_delete_missing(self, repository):
        with pytest.raises(SessionNotFoundError):
            repository.soft_delete(uuid.uuid4())


class TestHardDelete:
    """Permanent deletion and cascades."""

    def test_hard_delete_cascades(self, repository):
        session = repository.create_session("basic_ios")
        other = repository.create_session("basic_ios")
        for value in (0.2, 0.4):
            repository.append_measurement(session, value)
        repository.append_measurement(other, 0.6)

        repository.hard_delete(session)
        assert repository.get_session(session.id) is None
        assert _measurement_rows(repository.engine, session.id) == 0
        assert _measurement_rows(repository.engine) == 1

    def test_empty_trash(self, repository):
        active = repository.create_session("basic_ios")
        for _ in range(2):
            trashed = repository.create_session("overlap")
            repository.append_measurement(trashed, 0.5)
            repository.soft_delete(trashed)

        assert repository.empty_trash() == 2
        assert repository.query(SessionQuery(trashed_only=True)) == []
        assert [s.id for s in repository.all_sessions()] == [active.id]
        assert _measurement_rows(repository.engine) == 0

    def test_empty_trash_when_empty(self, repository):
        assert repository.empty_trash() == 0


class TestDiscardIfEmpty:
    """Exit without saving removes sessions that never got a measurement."""

    def test_empty_session_disappears_everywhere(self, repository):
        session = repository.create_session("set_membership")
        assert repository.discard_if_empty(session) is True
        assert repository.get_session(session.id) is None
        assert repository.query(SessionQuery(active_only=True)) == []
        assert repository.query(SessionQuery(trashed_only=True)) == []
        assert repository.all_sessions() == []

    def test_session_with_measurements_kept(self, repository):
        session = repository.create_session("basic_ios")
        repository.append_measurement(session, 0.5)
        assert repository.discard_if_empty(session) is False
        assert repository.get_session(session.id).measurement_count == 1

    def test_missing_session(self, repository):
        assert repository.discard_if_empty(uuid.uuid4()) is False


class TestQuery:
    """Filtering and sorting for the history view."""

    @pytest.fixture
    def populated(self, repository, make_timestamps):
        times = make_timestamps(3)
        sessions = []
        for (modality, notes, count), ts in zip(
            [
                ("proximity", "Morning walk", 1),
                ("basic_ios", None, 3),
                ("overlap", "evening", 2),
            ],
            times,
        ):
            with get_session(repository.engine) as db:
                session_id = str(uuid.uuid4())
                db.add(SessionRecord(id=session_id, modality=modality, created_at=ts, notes=notes))
            for _ in range(count):
                repository.append_measurement(session_id, 0.5)
            sessions.append(repository.get_session(session_id))
        return sessions

    def test_newest_first_default(self, repository, populated):
        assert [s.modality for s in repository.query()] == ["overlap", "basic_ios", "proximity"]

    def test_oldest_first(self, repository, populated):
        result = repository.query(SessionQuery(sort="oldest_first"))
        assert [s.modality for s in result] == ["proximity", "basic_ios", "overlap"]

    def test_most_measurements(self, repository, populated):
        result = repository.query(SessionQuery(sort="most_measurements"))
        assert [s.measurement_count for s in result] == [3, 2, 1]

    def test_modality_name(self, repository, populated):
        result = repository.query(SessionQuery(sort="modality_name"))
        assert [s.modality for s in result] == ["basic_ios", "overlap", "proximity"]

    def test_modality_filter(self, repository, populated):
        result = repository.query(SessionQuery(modality="overlap"))
        assert [s.notes for s in result] == ["evening"]

    def test_text_filter_matches_notes_case_insensitive(self, repository, populated):
        result = repository.query(SessionQuery(text_filter="MORNING"))
        assert [s.modality for s in result] == ["proximity"]

    def test_text_filter_matches_display_name(self, repository, populated):
        result = repository.query(SessionQuery(text_filter="basic"))
        assert [s.modality for s in result] == ["basic_ios"]

    def test_available_modalities(self, repository, populated):
        repository.soft_delete(populated[0])
        assert repository.available_modalities() == ["basic_ios", "overlap"]

    def test_conflicting_flags_rejected(self):
        with pytest.raises(ValidationError):
            SessionQuery(active_only=True, trashed_only=True)


class TestConcurrency:
    """Appends to one session are serialized."""

    def test_concurrent_appends_same_session(self, file_engine):
        repository = SessionRepository(file_engine)
        session = repository.create_session("basic_ios")
        errors = []

        def worker():
            try:
                for _ in range(10):
                    repository.append_measurement(session, 0.5)
            except StorageError as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        loaded = repository.get_session(session.id)
        assert loaded.measurement_count == 40
        with get_session(file_engine) as db:
            positions = db.execute(
                select(MeasurementRecord.position)
                .where(MeasurementRecord.session_id == str(session.id))
                .order_by(MeasurementRecord.position)
            ).scalars().all()
        assert positions == list(range(40))

    def test_locks_released_with_deleted_sessions(self, repository):
        for _ in range(5):
            session = repository.create_session("basic_ios")
            repository.append_measurement(session, 0.5)
            repository.hard_delete(session)
        assert repository._locks == {}

        empty = repository.create_session("basic_ios")
        repository.discard_if_empty(empty)
        repository.discard_if_empty(uuid.uuid4())
        assert repository._locks == {}

        trashed = repository.create_session("overlap")
        repository.append_measurement(trashed, 0.5)
        repository.soft_delete(trashed)
        repository.empty_trash()
        assert repository._locks == {}

    def test_lock_kept_for_live_session(self, repository):
        session = repository.create_session("basic_ios")
        repository.append_measurement(session, 0.5)
        assert repository.discard_if_empty(session) is False
        assert list(repository._locks) == [str(session.id)]


class TestStorageFailures:
    """Database errors surface as StorageError."""

    def test_append_after_table_dropped(self, repository):
        session = repository.create_session("basic_ios")
        with get_session(repository.engine) as db:
            db.execute(text("DROP TABLE measurements"))
        with pytest.raises(StorageError):
            repository.append_measurement(session, 0.5)

    def test_create_after_table_dropped(self, repository):
        with get_session(repository.engine) as db:
            db.execute(text("DROP TABLE measurements"))
            db.execute(text("DROP TABLE sessions"))
        with pytest.raises(StorageError):
            repository.create_session("basic_ios")


class TestPreferenceStore:
    """Key/value preference persistence."""

    def test_get_default(self, preferences):
        assert preferences.get("missing", 0.5) == 0.5

    def test_set_and_overwrite(self, preferences):
        preferences.set("last_position_basic_ios", 0.73)
        preferences.set("last_position_basic_ios", 0.25)
        assert preferences.get("last_position_basic_ios") == 0.25

    def test_set_many(self, preferences):
        preferences.set_many({"last_self_in_set": False, "last_other_in_set": True})
        assert preferences.get("last_self_in_set") is False
        assert preferences.get("last_other_in_set") is True

    def test_shared_across_instances(self, engine, preferences):
        preferences.set("k", [1, 2])
        assert PreferenceStore(engine).get("k") == [1, 2]

    def test_set_failure_raises_storage_error(self, preferences):
        with get_session(preferences.engine) as db:
            db.execute(text("DROP TABLE preferences"))
        with pytest.raises(StorageError):
            preferences.set("k", 1)
        assert preferences.get("k", "fallback") == "fallback"
