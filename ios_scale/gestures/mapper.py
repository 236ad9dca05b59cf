"""Gesture-to-value mapping.

All mappers are relative: a drag moves the value from wherever it was when
the gesture began, never to an absolute position, so a short drag cannot make
the value jump. Drag input is the cumulative translation since the gesture
began, in points; ``nudge`` accepts incremental steps instead. In both cases
the clamp is applied to the running total, so the committed value does not
depend on how the input was chunked.

Nothing here touches storage or raises on numeric input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ios_scale.feedback import FeedbackEvent, FeedbackTracker
from ios_scale.modalities.base import PRIMARY_AXIS, AxisSpec, ModalityDescriptor
from ios_scale.models import OTHER_IN_SET, SELF_IN_SET


@dataclass
class MapperUpdate:
    """Result of one input tick."""

    value: float
    events: list[FeedbackEvent] = field(default_factory=list)


class AxisMapper:
    """Live value for one axis driven by drag input."""

    def __init__(
        self,
        spec: AxisSpec,
        value: Optional[float] = None,
        success_threshold: Optional[float] = None,
        sensitivity_range: Optional[float] = None,
    ):
        self.spec = spec
        # Callers may derive the range from the on-screen container size
        self.sensitivity_range = sensitivity_range or spec.sensitivity_range
        start = spec.default if value is None else spec.clamp(value)
        self._value = start
        self._initial = start
        self._origin = start
        self._translation = 0.0
        self._dragging = False
        self._tracker = FeedbackTracker(
            start, lower=spec.lower, upper=spec.upper, success_threshold=success_threshold
        )

    @property
    def value(self) -> float:
        return self._value

    @property
    def initial_value(self) -> float:
        """Value the current measurement started at."""
        return self._initial

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    def start_measurement(self, value: float) -> None:
        """Set the starting value of a new measurement (used by Reset)."""
        self.set_value(value)
        self._initial = self._value

    def set_value(self, value: float) -> None:
        """Set the value from non-gesture input such as a slider."""
        self._value = self.spec.clamp(value)
        self._tracker.rebase(self._value)

    def begin(self) -> None:
        self._origin = self._value
        self._translation = 0.0
        self._dragging = True
        self._tracker.rebase(self._value)

    def update(self, translation: float) -> MapperUpdate:
        """Apply the cumulative translation since ``begin``."""
        if not self._dragging:
            self.begin()
        self._translation = translation
        delta = translation / self.sensitivity_range
        new_value = self.spec.clamp(self._origin + self.spec.sign * delta)
        events = self._tracker.observe(new_value)
        self._value = new_value
        return MapperUpdate(new_value, events)

    def nudge(self, step: float) -> MapperUpdate:
        """Apply an incremental translation step."""
        if not self._dragging:
            self.begin()
        return self.update(self._translation + step)

    def end(self) -> float:
        """Commit the value as-is."""
        self._dragging = False
        self._translation = 0.0
        return self._value

    def reset_to_initial(self) -> MapperUpdate:
        self._dragging = False
        self._translation = 0.0
        self.set_value(self._initial)
        return MapperUpdate(self._value, ["selection"])


class MultiAxisMapper:
    """Named axes of one modality (e.g. overlap plus two circle scales)."""

    def __init__(self, descriptor: ModalityDescriptor, values: Optional[dict[str, float]] = None):
        values = values or {}
        self.descriptor = descriptor
        self.axes: dict[str, AxisMapper] = {
            name: AxisMapper(
                spec,
                values.get(name),
                success_threshold=descriptor.success_threshold if name == PRIMARY_AXIS else None,
            )
            for name, spec in descriptor.axes.items()
        }

    def __getitem__(self, name: str) -> AxisMapper:
        return self.axes[name]

    @property
    def primary(self) -> AxisMapper:
        return self.axes[PRIMARY_AXIS]

    def values(self) -> dict[str, float]:
        return {name: axis.value for name, axis in self.axes.items()}

    def start_measurement(self, values: dict[str, float]) -> None:
        for name, axis in self.axes.items():
            axis.start_measurement(values.get(name, axis.spec.default))

    def reset_to_initial(self) -> list[FeedbackEvent]:
        for axis in self.axes.values():
            axis.reset_to_initial()
        return ["selection"]

    def primary_value(self) -> float:
        return self.primary.value

    def secondary_values(self) -> Optional[dict[str, float]]:
        """Secondary channels keyed by their measurement key, if any."""
        secondary = {
            axis.spec.secondary_key: axis.value
            for axis in self.axes.values()
            if axis.spec.secondary_key is not None
        }
        return secondary or None


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def contains(self, point: Point) -> bool:
        """Inclusive bounds test."""
        return (
            self.x <= point.x <= self.x + self.width
            and self.y <= point.y <= self.y + self.height
        )


class ContainmentTracker:
    """Tracks whether a dragged entity's reference point is inside a region.

    ``inside`` only changes at the moment the containment test flips.
    """

    def __init__(self, region: Rect, inside: bool):
        self.region = region
        self.inside = inside

    def update(self, point: Point) -> bool:
        """Evaluate containment; return True when the state flipped."""
        now_inside = self.region.contains(point)
        if now_inside == self.inside:
            return False
        self.inside = now_inside
        return True


@dataclass(frozen=True)
class MembershipState:
    """In/out-of-set state for Self and Other.

    The booleans are canonical. ``primary_value`` is the fraction of the two
    that are in the set: 0.0, 0.5 or 1.0.
    """

    self_in_set: bool
    other_in_set: bool

    @property
    def primary_value(self) -> float:
        return (int(self.self_in_set) + int(self.other_in_set)) / 2

    @property
    def secondary_values(self) -> dict[str, float]:
        return {
            SELF_IN_SET: 1.0 if self.self_in_set else 0.0,
            OTHER_IN_SET: 1.0 if self.other_in_set else 0.0,
        }


class MembershipMapper:
    """Set membership driven by dragging Self and Other in and out of a region."""

    def __init__(self, region: Rect, state: MembershipState):
        self._initial = state
        self.self_tracker = ContainmentTracker(region, state.self_in_set)
        self.other_tracker = ContainmentTracker(region, state.other_in_set)

    @property
    def state(self) -> MembershipState:
        return MembershipState(self.self_tracker.inside, self.other_tracker.inside)

    @property
    def initial_state(self) -> MembershipState:
        return self._initial

    def move_self(self, point: Point) -> list[FeedbackEvent]:
        return ["selection"] if self.self_tracker.update(point) else []

    def move_other(self, point: Point) -> list[FeedbackEvent]:
        return ["selection"] if self.other_tracker.update(point) else []

    def set_state(self, state: MembershipState) -> None:
        """Set membership from non-gesture input such as a toggle."""
        self.self_tracker.inside = state.self_in_set
        self.other_tracker.inside = state.other_in_set

    def start_measurement(self, state: MembershipState) -> None:
        self.set_state(state)
        self._initial = state

    def reset_to_initial(self) -> list[FeedbackEvent]:
        self.set_state(self._initial)
        return ["selection"]
