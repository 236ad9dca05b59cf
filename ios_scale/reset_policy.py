"""Reset-behavior policy.

Determines what a new measurement starts at. Evaluated once when a session
starts and again after every successful save, reading the policy from the
settings object supplied by the caller.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ios_scale.gestures.mapper import MembershipState
from ios_scale.modalities.base import ModalityDescriptor
from ios_scale.settings import AppSettings, parse_reset_behavior

logger = logging.getLogger(__name__)


class Preferences(Protocol):
    """Persisted key/value state (see ``ios_scale.db.repository.PreferenceStore``)."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set_many(self, values: dict[str, Any]) -> None:
        ...


def next_value(
    policy: str,
    last_saved: Optional[float],
    default: float,
    random_range: tuple[float, float] = (0.0, 1.0),
    rng: Optional[random.Random] = None,
) -> float:
    """Starting value for the next measurement.

    Args:
        policy: One of keep_position, reset_to_default, random_position.
            Anything else is treated as reset_to_default.
        last_saved: Persisted last position, or None if nothing was saved yet
        default: The modality's documented default
        random_range: Inclusive range sampled by random_position
        rng: Random source, for reproducible sampling

    Returns:
        The starting value
    """
    policy = parse_reset_behavior(policy)
    if policy == "keep_position":
        return default if last_saved is None else float(last_saved)
    if policy == "random_position":
        low, high = random_range
        return (rng or random).uniform(low, high)
    return default


def next_membership(
    policy: str,
    last_self: Optional[bool],
    last_other: Optional[bool],
    default: MembershipState,
    rng: Optional[random.Random] = None,
) -> MembershipState:
    """Starting membership state; random_position flips a coin for each."""
    policy = parse_reset_behavior(policy)
    if policy == "keep_position":
        return MembershipState(
            default.self_in_set if last_self is None else bool(last_self),
            default.other_in_set if last_other is None else bool(last_other),
        )
    if policy == "random_position":
        source = rng or random
        return MembershipState(source.random() < 0.5, source.random() < 0.5)
    return default


@dataclass(frozen=True)
class StartingPosition:
    """Starting values for every channel of a modality."""

    values: dict[str, float]
    membership: Optional[MembershipState] = None


def starting_position(
    descriptor: ModalityDescriptor,
    settings: AppSettings,
    preferences: Preferences,
    rng: Optional[random.Random] = None,
) -> StartingPosition:
    """Evaluate the reset policy for all channels of ``descriptor``."""
    policy = settings.reset_behavior
    values: dict[str, float] = {}
    for name, spec in descriptor.axes.items():
        last_saved = preferences.get(spec.preference_key) if policy == "keep_position" else None
        values[name] = spec.clamp(
            next_value(policy, last_saved, spec.default, spec.random_range, rng)
        )

    membership = None
    if descriptor.membership is not None:
        spec = descriptor.membership
        keep = policy == "keep_position"
        membership = next_membership(
            policy,
            preferences.get(spec.self_preference_key) if keep else None,
            preferences.get(spec.other_preference_key) if keep else None,
            MembershipState(spec.default_self_in_set, spec.default_other_in_set),
            rng,
        )

    logger.debug(f"Starting position for {descriptor.key} ({policy}): {values} {membership}")
    return StartingPosition(values, membership)


def remember_position(
    descriptor: ModalityDescriptor,
    preferences: Preferences,
    values: dict[str, float],
    membership: Optional[MembershipState] = None,
) -> None:
    """Persist the just-saved position as this modality's last position."""
    updates: dict[str, Any] = {
        spec.preference_key: values[name]
        for name, spec in descriptor.axes.items()
        if name in values
    }
    if descriptor.membership is not None and membership is not None:
        updates[descriptor.membership.self_preference_key] = membership.self_in_set
        updates[descriptor.membership.other_preference_key] = membership.other_in_set
    if updates:
        preferences.set_many(updates)
