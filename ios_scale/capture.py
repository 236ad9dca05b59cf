"""Capture flow for one measurement session.

A ``CaptureFlow`` is what a measurement screen drives: it creates the session
when the flow starts, holds the live value(s) for drag input, saves
measurements, applies the reset policy for the next measurement, and handles
the exit choices. The interactive path (drag updates) never touches storage;
only ``save`` and ``exit`` do.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Literal, Optional

from ios_scale.db.repository import PreferenceStore, SessionRepository
from ios_scale.errors import StorageError
from ios_scale.feedback import FeedbackEvent, FeedbackSink, NullFeedbackSink, dispatch
from ios_scale.gestures.mapper import (
    MapperUpdate,
    MembershipMapper,
    MembershipState,
    MultiAxisMapper,
    Point,
    Rect,
)
from ios_scale.modalities.registry import get_modality
from ios_scale.models import Measurement, Modality, Session
from ios_scale.reset_policy import remember_position, starting_position
from ios_scale.settings import AppSettings

logger = logging.getLogger(__name__)

ExitAction = Literal["save_and_exit", "exit_without_saving", "cancel"]

# Default set region used when the caller does not supply its own layout
DEFAULT_SET_REGION = Rect(x=100.0, y=100.0, width=200.0, height=150.0)


class CaptureFlow:
    """State for one in-progress capture session."""

    def __init__(
        self,
        modality: Modality,
        repository: SessionRepository,
        preferences: PreferenceStore,
        settings_provider: Optional[Callable[[], AppSettings]] = None,
        feedback: Optional[FeedbackSink] = None,
        set_region: Rect = DEFAULT_SET_REGION,
        rng: Optional[random.Random] = None,
    ):
        self.descriptor = get_modality(modality)
        self.repository = repository
        self.preferences = preferences
        # Settings are read on every policy evaluation so changes apply on the next save
        self._settings_provider = settings_provider or preferences.load_settings
        self.feedback = feedback or NullFeedbackSink()
        self._rng = rng
        self.measurement_count = 0
        self.dismissed = False

        self.axes: Optional[MultiAxisMapper] = None
        self.membership: Optional[MembershipMapper] = None
        settings = self.settings
        # Drag ticks must not hit storage, so the haptics switch is read once per flow
        self.feedback_enabled = settings.haptic_feedback_enabled
        start = starting_position(self.descriptor, settings, preferences, rng)
        if self.descriptor.is_membership:
            self.membership = MembershipMapper(set_region, start.membership)
        else:
            self.axes = MultiAxisMapper(self.descriptor, start.values)

        self.session: Session = repository.create_session(modality)

    @property
    def settings(self) -> AppSettings:
        return self._settings_provider()

    # ------------------------------------------------------------------
    # Live values
    # ------------------------------------------------------------------

    @property
    def primary_value(self) -> float:
        if self.membership is not None:
            return self.membership.state.primary_value
        return self.axes.primary_value()

    @property
    def secondary_values(self) -> Optional[dict[str, float]]:
        if self.membership is not None:
            return self.membership.state.secondary_values
        return self.axes.secondary_values()

    @property
    def label(self) -> str:
        return self.descriptor.label_for(self.primary_value)

    def _emit(self, events: list[FeedbackEvent]) -> None:
        dispatch(self.feedback, events, enabled=self.feedback_enabled)

    def drag(self, translation: float, axis: str = "primary") -> MapperUpdate:
        """Feed the cumulative translation of an in-progress drag on ``axis``."""
        update = self.axes[axis].update(translation)
        self._emit(update.events)
        return update

    def end_drag(self, axis: str = "primary") -> float:
        return self.axes[axis].end()

    def move_self(self, point: Point) -> MembershipState:
        self._emit(self.membership.move_self(point))
        return self.membership.state

    def move_other(self, point: Point) -> MembershipState:
        self._emit(self.membership.move_other(point))
        return self.membership.state

    def reset(self) -> None:
        """Restore the values the current measurement started at."""
        if self.membership is not None:
            self._emit(self.membership.reset_to_initial())
        else:
            self._emit(self.axes.reset_to_initial())

    # ------------------------------------------------------------------
    # Save / exit
    # ------------------------------------------------------------------

    def save(self) -> Measurement:
        """Save the current value as a measurement.

        On failure the live values and the measurement count are left as they
        were so the user can retry.

        Raises:
            StorageError: If the measurement could not be stored
        """
        try:
            measurement = self.repository.append_measurement(
                self.session, self.primary_value, self.secondary_values
            )
        except StorageError:
            self._emit(["error"])
            raise
        self.measurement_count += 1
        self._emit(["success"])

        settings = self.settings
        try:
            if self.membership is not None:
                remember_position(self.descriptor, self.preferences, {}, self.membership.state)
            else:
                remember_position(self.descriptor, self.preferences, self.axes.values())
        except StorageError as e:
            # The measurement itself is stored; only keep_position loses this update
            logger.warning(f"Failed to remember last position for {self.descriptor.key}: {e}")

        start = starting_position(self.descriptor, settings, self.preferences, self._rng)
        if self.membership is not None:
            self.membership.start_measurement(start.membership)
        else:
            self.axes.start_measurement(start.values)
        return measurement

    def exit(self, action: ExitAction) -> None:
        """Handle the exit sheet choice."""
        if action == "cancel":
            return
        if action == "save_and_exit":
            self.save()
        elif action == "exit_without_saving":
            self.repository.discard_if_empty(self.session)
        self.dismissed = True
