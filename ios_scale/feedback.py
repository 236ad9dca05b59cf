"""Feedback threshold policy.

Decides when a change in a live value is worth a haptic or visual cue.
The functions here are pure decisions; dispatching the event to a device is
left to a ``FeedbackSink`` supplied by the caller.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional, Protocol

logger = logging.getLogger(__name__)

FeedbackEvent = Literal["light", "medium", "boundary", "success", "selection", "error"]

MEDIUM_DELTA = 0.1
LIGHT_DELTA = 0.01
DEFAULT_SUCCESS_THRESHOLD = 0.98


def value_change_feedback(previous: float, new: float) -> Optional[FeedbackEvent]:
    """Intensity of feedback for a value change.

    Changes under ``LIGHT_DELTA`` produce nothing so sub-perceptible motion
    does not buzz constantly.
    """
    delta = abs(new - previous)
    if delta > MEDIUM_DELTA:
        return "medium"
    if delta > LIGHT_DELTA:
        return "light"
    return None


def boundary_feedback(
    previous: float, new: float, lower: float = 0.0, upper: float = 1.0
) -> Optional[FeedbackEvent]:
    """Fire when a value lands on a bound after being strictly inside."""
    if lower < previous < upper and new in (lower, upper):
        return "boundary"
    return None


def success_feedback(
    previous: float, new: float, threshold: Optional[float] = DEFAULT_SUCCESS_THRESHOLD
) -> Optional[FeedbackEvent]:
    """Fire when a rising value crosses the near-convergence threshold."""
    if threshold is None:
        return None
    if previous < threshold <= new:
        return "success"
    return None


class FeedbackTracker:
    """Stateful wrapper applying the policy to a stream of values.

    Change events are measured from the value at which the last change event
    fired, so slow drags still produce periodic feedback. Boundary and success
    events fire once per crossing.
    """

    def __init__(
        self,
        value: float,
        lower: float = 0.0,
        upper: float = 1.0,
        success_threshold: Optional[float] = None,
    ):
        self.lower = lower
        self.upper = upper
        self.success_threshold = success_threshold
        self._previous = value
        self._last_reported = value

    def rebase(self, value: float) -> None:
        """Forget history, e.g. at gesture start or after a programmatic set."""
        self._previous = value
        self._last_reported = value

    def observe(self, value: float) -> list[FeedbackEvent]:
        events: list[FeedbackEvent] = []

        change = value_change_feedback(self._last_reported, value)
        if change is not None:
            events.append(change)
            self._last_reported = value

        boundary = boundary_feedback(self._previous, value, self.lower, self.upper)
        if boundary is not None:
            events.append(boundary)

        success = success_feedback(self._previous, value, self.success_threshold)
        if success is not None:
            events.append(success)

        self._previous = value
        return events


class FeedbackSink(Protocol):
    """Receiver for feedback events (haptics, sounds, visual cues)."""

    def emit(self, event: FeedbackEvent) -> None:
        ...


class NullFeedbackSink:
    """Sink used when feedback is disabled."""

    def emit(self, event: FeedbackEvent) -> None:
        pass


class RecordingFeedbackSink:
    """Sink that keeps every emitted event, in order."""

    def __init__(self) -> None:
        self.events: list[FeedbackEvent] = []

    def emit(self, event: FeedbackEvent) -> None:
        self.events.append(event)


def dispatch(sink: FeedbackSink, events: list[FeedbackEvent], enabled: bool = True) -> None:
    """Send events to a sink unless feedback is switched off in settings."""
    if not enabled:
        return
    for event in events:
        logger.debug(f"Feedback event: {event}")
        sink.emit(event)
