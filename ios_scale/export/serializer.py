"""Export sessions to CSV, TSV or JSON.

Delimited exports contain one row per measurement (sessions without
measurements contribute no rows). JSON exports contain one object per session
with its measurements nested. The whole byte stream is built in memory before
anything is returned or written, so callers never see a partial export.
"""

from __future__ import annotations

import csv
import json
import logging
import math
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ios_scale import config
from ios_scale.errors import SerializationError
from ios_scale.export.file_naming import generate_export_filename
from ios_scale.models import Measurement, Session, as_utc, utcnow
from ios_scale.settings import EXPORT_MIME_TYPES, AppSettings, ExportFormat, parse_export_format

logger = logging.getLogger(__name__)

BASE_COLUMNS = ["session_id", "modality", "measurement_id", "timestamp", "primary_value"]
METADATA_COLUMNS = ["self_scale", "other_scale", "session_created", "session_notes"]
SEPARATORS = {"csv": ",", "tsv": "\t"}


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC timestamp with second precision."""
    return as_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_number(value: float) -> str:
    """Fixed 4-decimal representation, always with a '.' separator."""
    if not math.isfinite(value):
        raise SerializationError(f"Cannot export non-finite value {value!r}")
    return f"{value:.4f}"


def _optional_number(value: Optional[float]) -> str:
    return "" if value is None else format_number(value)


def _finite(value: Optional[float]) -> Optional[float]:
    if value is not None and not math.isfinite(value):
        raise SerializationError(f"Cannot export non-finite value {value!r}")
    return value


@dataclass(frozen=True)
class ExportArtifact:
    """A complete export: bytes plus a suggested filename."""

    data: bytes
    filename: str
    mime_type: str
    format: ExportFormat


# ============================================================================
# Delimited (CSV / TSV)
# ============================================================================


def _delimited_row(session: Session, measurement: Measurement, include_metadata: bool) -> list[str]:
    row = [
        str(session.id),
        session.modality,
        str(measurement.id),
        format_timestamp(measurement.timestamp),
        format_number(measurement.primary_value),
    ]
    if include_metadata:
        row.extend(
            [
                _optional_number(measurement.self_scale),
                _optional_number(measurement.other_scale),
                format_timestamp(session.created_at),
                session.notes or "",
            ]
        )
    return row


def _unquoted_crlf_to_lf(text: str) -> str:
    """Turn record terminators into "\\n", leaving quoted field content alone.

    Splitting on the quote character puts text outside quotes at even
    indices; a doubled quote only adds an empty piece.
    """
    pieces = text.split('"')
    for i in range(0, len(pieces), 2):
        pieces[i] = pieces[i].replace("\r\n", "\n")
    return '"'.join(pieces)


def export_to_delimited(
    sessions: Sequence[Session],
    fmt: ExportFormat = "csv",
    include_metadata: bool = True,
) -> bytes:
    """Serialize sessions as CSV or TSV.

    Fields containing the separator, a double quote, a newline or a carriage
    return are quoted with internal quotes doubled; all other fields are
    written bare. Rows end with "\\n".

    Raises:
        SerializationError: If a value cannot be encoded
    """
    if fmt not in SEPARATORS:
        raise SerializationError(f"Not a delimited format: {fmt}")
    columns = BASE_COLUMNS + (METADATA_COLUMNS if include_metadata else [])
    rows = [
        _delimited_row(session, measurement, include_metadata)
        for session in sessions
        for measurement in session.measurements
    ]
    df = pd.DataFrame(rows, columns=columns, dtype=object)
    try:
        # "\r\n" makes the writer quote fields holding either character
        text = df.to_csv(
            sep=SEPARATORS[fmt],
            index=False,
            lineterminator="\r\n",
            quoting=csv.QUOTE_MINIMAL,
            quotechar='"',
            doublequote=True,
        )
        return _unquoted_crlf_to_lf(text).encode("utf-8")
    except (UnicodeEncodeError, csv.Error) as e:
        raise SerializationError(f"Failed to encode {fmt.upper()} export: {e}") from e


# ============================================================================
# JSON
# ============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExportMeasurement(_CamelModel):
    id: str
    timestamp: str
    primary_value: float
    self_scale: Optional[float] = None
    other_scale: Optional[float] = None
    secondary_values: Optional[dict[str, float]] = None

    @classmethod
    def from_measurement(cls, measurement: Measurement, include_metadata: bool) -> "ExportMeasurement":
        secondary = None
        if include_metadata and measurement.secondary_values is not None:
            secondary = {k: _finite(v) for k, v in measurement.secondary_values.items()}
        return cls(
            id=str(measurement.id),
            timestamp=format_timestamp(measurement.timestamp),
            primary_value=_finite(measurement.primary_value),
            self_scale=_finite(measurement.self_scale) if include_metadata else None,
            other_scale=_finite(measurement.other_scale) if include_metadata else None,
            secondary_values=secondary,
        )


class ExportSession(_CamelModel):
    id: str
    modality: str
    created_at: str
    notes: Optional[str] = None
    measurements: list[ExportMeasurement]

    @classmethod
    def from_session(cls, session: Session, include_metadata: bool) -> "ExportSession":
        return cls(
            id=str(session.id),
            modality=session.modality,
            created_at=format_timestamp(session.created_at),
            notes=session.notes if include_metadata else None,
            measurements=[
                ExportMeasurement.from_measurement(m, include_metadata)
                for m in session.measurements
            ],
        )


class ExportBundle(_CamelModel):
    """Snapshot written by a JSON export."""

    export_date: str
    app_version: str
    sessions: list[ExportSession]


def export_to_json(
    sessions: Sequence[Session],
    include_metadata: bool = True,
    app_version: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bytes:
    """Serialize sessions as pretty-printed JSON with sorted keys.

    Raises:
        SerializationError: If a value cannot be encoded
    """
    bundle = ExportBundle(
        export_date=format_timestamp(now or utcnow()),
        app_version=app_version or config.get_app_version(),
        sessions=[ExportSession.from_session(s, include_metadata) for s in sessions],
    )
    try:
        text = json.dumps(
            bundle.model_dump(mode="json", by_alias=True),
            sort_keys=True,
            indent=2,
            ensure_ascii=False,
            allow_nan=False,
        )
        return (text + "\n").encode("utf-8")
    except (ValueError, UnicodeEncodeError) as e:
        raise SerializationError(f"Failed to encode JSON export: {e}") from e


# ============================================================================
# Entry points
# ============================================================================


def export_sessions(
    sessions: Sequence[Session],
    fmt: str = "csv",
    include_metadata: bool = True,
    app_version: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ExportArtifact:
    """Export sessions to a complete in-memory artifact.

    Args:
        sessions: Sessions to export, with their measurements loaded
        fmt: "csv", "tsv" or "json"; unknown values fall back to "csv"
        include_metadata: Include scales, session creation time and notes
        app_version: Version string for JSON exports
        now: Export time, used for the JSON export date and the filename

    Returns:
        ExportArtifact with bytes, filename and MIME type

    Raises:
        SerializationError: If encoding fails
    """
    export_format = parse_export_format(fmt)
    now = now or utcnow()
    if export_format == "json":
        data = export_to_json(sessions, include_metadata, app_version, now)
    else:
        data = export_to_delimited(sessions, export_format, include_metadata)
    filename = generate_export_filename(sessions, export_format, now)
    logger.info(
        f"Exported {len(sessions)} session(s) as {export_format.upper()} "
        f"({len(data)} bytes): {filename}"
    )
    return ExportArtifact(data, filename, EXPORT_MIME_TYPES[export_format], export_format)


def export_with_settings(
    sessions: Sequence[Session],
    settings: AppSettings,
    app_version: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ExportArtifact:
    """Export using the format and metadata preference from ``settings``."""
    return export_sessions(
        sessions,
        settings.export_format,
        settings.include_metadata_in_export,
        app_version=app_version,
        now=now,
    )


def write_artifact(artifact: ExportArtifact, directory: Path | str) -> Path:
    """Write an artifact atomically into ``directory``.

    The bytes go to a temporary file in the same directory which is then
    renamed into place, so a reader never sees a truncated file.

    Returns:
        Path to the written file
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / artifact.filename
    fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".export-", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(artifact.data)
        os.replace(tmp_name, target)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info(f"Wrote export: {target}")
    return target
