"""Pydantic models for measurements, sessions, and their lifecycle.

A ``Measurement`` is an immutable data point whose primary value is always
normalized to the 0.0 - 1.0 range. A ``Session`` groups the measurements of a
single modality and is either active or in the trash.
"""

from __future__ import annotations

import math
import uuid
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Annotated, Literal, Mapping, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

Modality = Literal[
    "basic_ios",
    "advanced_ios",
    "overlap",
    "set_membership",
    "proximity",
    "identification",
    "projection",
    "attribution",
    "observation",
]

MODALITIES: tuple[str, ...] = get_args(Modality)

# Secondary value keys used across modalities
SELF_SCALE = "self_scale"
OTHER_SCALE = "other_scale"
SELF_IN_SET = "selfInSet"
OTHER_IN_SET = "otherInSet"
SELF_POSITION = "self_position"
OTHER_POSITION = "other_position"


def utcnow() -> datetime:
    """Return timezone-aware UTC timestamp."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def clamp_unit(value: float) -> float:
    """Clamp a value to [0.0, 1.0]. NaN maps to 0.0."""
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), 1.0)


class Measurement(BaseModel):
    """A single measurement data point.

    ``primary_value`` is clamped to [0, 1] at construction. Secondary values
    are stored as given; each modality clamps them to its own range before
    saving.
    """

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    timestamp: datetime = Field(default_factory=utcnow)
    primary_value: float
    secondary_values: Optional[Mapping[str, float]] = None

    @field_validator("primary_value")
    @classmethod
    def clamp_primary_value(cls, value: float) -> float:
        """Clamp primary value to the normalized range."""
        return clamp_unit(value)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("secondary_values")
    @classmethod
    def freeze_secondary_values(
        cls, value: Optional[Mapping[str, float]]
    ) -> Optional[Mapping[str, float]]:
        """Copy secondary values into a read-only mapping."""
        if value is None:
            return None
        return MappingProxyType({str(k): float(v) for k, v in value.items()})

    @field_serializer("secondary_values")
    def serialize_secondary_values(
        self, value: Optional[Mapping[str, float]]
    ) -> Optional[dict[str, float]]:
        return dict(value) if value is not None else None

    def _secondary(self, key: str) -> Optional[float]:
        if self.secondary_values is None:
            return None
        return self.secondary_values.get(key)

    @property
    def self_scale(self) -> Optional[float]:
        """Self circle scale (advanced overlap)."""
        return self._secondary(SELF_SCALE)

    @property
    def other_scale(self) -> Optional[float]:
        """Other circle scale (advanced overlap)."""
        return self._secondary(OTHER_SCALE)

    @property
    def self_in_set(self) -> Optional[bool]:
        value = self._secondary(SELF_IN_SET)
        return None if value is None else value >= 0.5

    @property
    def other_in_set(self) -> Optional[bool]:
        value = self._secondary(OTHER_IN_SET)
        return None if value is None else value >= 0.5


class Active(BaseModel):
    """Lifecycle state of a session that is not in the trash."""

    model_config = ConfigDict(frozen=True)

    state: Literal["active"] = "active"


class Trashed(BaseModel):
    """Lifecycle state of a soft-deleted session."""

    model_config = ConfigDict(frozen=True)

    state: Literal["trashed"] = "trashed"
    deleted_at: datetime

    @field_validator("deleted_at")
    @classmethod
    def normalize_deleted_at(cls, value: datetime) -> datetime:
        return as_utc(value)


Lifecycle = Annotated[Union[Active, Trashed], Field(discriminator="state")]


class Session(BaseModel):
    """A session containing the measurements of one modality."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    modality: Modality
    created_at: datetime = Field(default_factory=utcnow)
    measurements: list[Measurement] = Field(default_factory=list)
    notes: Optional[str] = None
    lifecycle: Lifecycle = Field(default_factory=Active)

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def is_trashed(self) -> bool:
        return isinstance(self.lifecycle, Trashed)

    @property
    def deleted_at(self) -> Optional[datetime]:
        if isinstance(self.lifecycle, Trashed):
            return self.lifecycle.deleted_at
        return None

    @property
    def measurement_count(self) -> int:
        return len(self.measurements)

    @property
    def average_value(self) -> Optional[float]:
        """Average primary value across all measurements."""
        if not self.measurements:
            return None
        return sum(m.primary_value for m in self.measurements) / len(self.measurements)

    @property
    def min_value(self) -> Optional[float]:
        return min((m.primary_value for m in self.measurements), default=None)

    @property
    def max_value(self) -> Optional[float]:
        return max((m.primary_value for m in self.measurements), default=None)

    @property
    def last_measurement_at(self) -> Optional[datetime]:
        return max((m.timestamp for m in self.measurements), default=None)
