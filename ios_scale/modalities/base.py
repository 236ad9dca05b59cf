"""Modality descriptors.

Every modality is described by data rather than code: which value channels
(axes) it captures, how drag distance maps onto each axis, what a fresh
measurement starts at, and how values are labelled for display. The gesture
mapper, reset policy and export layer all read these descriptors, so adding a
modality means adding a descriptor, not a new state machine.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import field_validator, model_validator
from pydantic.dataclasses import dataclass

from ios_scale.models import Modality

PRIMARY_AXIS = "primary"


@dataclass(frozen=True, kw_only=True)
class AxisSpec:
    """A single continuous value channel driven by drag input.

    ``sensitivity_range`` is how many points of movement sweep the axis by one
    unit of value. ``sign`` encodes the semantic direction of the drag.
    """

    preference_key: str
    default: float
    random_range: tuple[float, float]
    sensitivity_range: float
    sign: Literal[1, -1] = 1
    lower: float = 0.0
    upper: float = 1.0
    secondary_key: Optional[str] = None  # None for the primary axis

    @field_validator("sensitivity_range")
    @classmethod
    def validate_sensitivity_range(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("sensitivity_range must be positive")
        return value

    @model_validator(mode="after")
    def validate_bounds(self) -> "AxisSpec":
        if self.lower >= self.upper:
            raise ValueError("lower must be below upper")
        if not self.lower <= self.default <= self.upper:
            raise ValueError("default must lie within [lower, upper]")
        low, high = self.random_range
        if not self.lower <= low <= high <= self.upper:
            raise ValueError("random_range must lie within [lower, upper]")
        return self

    def clamp(self, value: float) -> float:
        if value != value:  # NaN
            return self.lower
        return min(max(value, self.lower), self.upper)


@dataclass(frozen=True)
class LabelBand:
    """Label shown while a value is below ``upper`` (exclusive)."""

    upper: float
    label: str
    description: str = ""


@dataclass(frozen=True, kw_only=True)
class MembershipSpec:
    """Two independent in/out-of-set booleans (set membership)."""

    self_preference_key: str
    other_preference_key: str
    default_self_in_set: bool = True
    default_other_in_set: bool = False


@dataclass(frozen=True, kw_only=True)
class ModalityDescriptor:
    """Everything the engine needs to know about one modality."""

    key: Modality
    display_name: str
    description: str
    axes: dict[str, AxisSpec]
    labels: tuple[LabelBand, ...] = ()
    membership: Optional[MembershipSpec] = None
    success_threshold: Optional[float] = None
    available: bool = True

    @model_validator(mode="after")
    def validate_channels(self) -> "ModalityDescriptor":
        if self.membership is None and PRIMARY_AXIS not in self.axes:
            raise ValueError(f"{self.key} needs a '{PRIMARY_AXIS}' axis or a membership spec")
        return self

    @property
    def primary_axis(self) -> Optional[AxisSpec]:
        return self.axes.get(PRIMARY_AXIS)

    @property
    def is_membership(self) -> bool:
        return self.membership is not None

    def label_for(self, value: float) -> str:
        """Descriptive label for a primary value."""
        return self._band_for(value).label

    def description_for(self, value: float) -> str:
        return self._band_for(value).description

    def _band_for(self, value: float) -> LabelBand:
        if not self.labels:
            return LabelBand(upper=1.0, label="")
        for band in self.labels:
            if value < band.upper:
                return band
        return self.labels[-1]
