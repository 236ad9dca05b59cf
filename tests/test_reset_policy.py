"""Tests for the reset-behavior policy."""

import random

import pytest

from ios_scale.gestures import MembershipState
from ios_scale.modalities import get_modality
from ios_scale.reset_policy import (
    next_membership,
    next_value,
    remember_position,
    starting_position,
)
from ios_scale.settings import AppSettings


class TestNextValue:
    """Starting value selection for a single channel."""

    def test_keep_position_returns_last_saved_exactly(self):
        assert next_value("keep_position", 0.73, default=0.5) == 0.73

    def test_keep_position_without_history_uses_default(self):
        assert next_value("keep_position", None, default=0.5) == 0.5

    def test_reset_to_default_ignores_history(self):
        assert next_value("reset_to_default", 0.73, default=0.5) == 0.5

    def test_random_position_within_range(self):
        rng = random.Random(1234)
        values = [next_value("random_position", None, 0.5, (0.2, 0.8), rng) for _ in range(200)]
        assert all(0.2 <= v <= 0.8 for v in values)
        assert len(set(values)) > 1

    def test_random_position_reproducible_with_seed(self):
        first = next_value("random_position", None, 0.5, (0.2, 0.8), random.Random(7))
        second = next_value("random_position", None, 0.5, (0.2, 0.8), random.Random(7))
        assert first == second

    def test_unknown_policy_falls_back_to_default(self):
        assert next_value("teleport", 0.73, default=0.5) == 0.5


class TestNextMembership:
    """Starting set membership."""

    default = MembershipState(True, False)

    def test_keep_position(self):
        state = next_membership("keep_position", False, True, self.default)
        assert state == MembershipState(False, True)

    def test_keep_position_partial_history(self):
        state = next_membership("keep_position", None, True, self.default)
        assert state == MembershipState(True, True)

    def test_reset_to_default(self):
        assert next_membership("reset_to_default", False, True, self.default) == self.default

    def test_random_position_covers_states(self):
        rng = random.Random(0)
        states = {next_membership("random_position", None, None, self.default, rng) for _ in range(100)}
        assert len(states) == 4


class TestStartingPosition:
    """Evaluation across all channels of a modality."""

    def test_keep_position_after_prior_save(self, fake_preferences):
        """A saved 0.73 is the next starting value under keep_position."""
        descriptor = get_modality("proximity")
        settings = AppSettings(reset_behavior="keep_position")
        remember_position(descriptor, fake_preferences, {"primary": 0.73})

        start = starting_position(descriptor, settings, fake_preferences)
        assert start.values["primary"] == 0.73
        assert start.membership is None

    def test_positions_are_per_modality(self, fake_preferences):
        settings = AppSettings(reset_behavior="keep_position")
        remember_position(get_modality("proximity"), fake_preferences, {"primary": 0.73})

        start = starting_position(get_modality("projection"), settings, fake_preferences)
        assert start.values["primary"] == 0.0

    def test_reset_to_default_uses_documented_defaults(self, fake_preferences):
        settings = AppSettings(reset_behavior="reset_to_default")
        remember_position(get_modality("basic_ios"), fake_preferences, {"primary": 0.9})

        assert starting_position(get_modality("basic_ios"), settings, fake_preferences).values == {
            "primary": 0.5
        }
        assert starting_position(get_modality("overlap"), settings, fake_preferences).values == {
            "primary": 0.0
        }

    def test_advanced_ios_scales_kept(self, fake_preferences):
        descriptor = get_modality("advanced_ios")
        settings = AppSettings(reset_behavior="keep_position")
        saved = {"primary": 0.4, "self_scale": 1.6, "other_scale": 0.6}
        remember_position(descriptor, fake_preferences, saved)

        assert fake_preferences.values["last_self_scale_advanced_ios"] == 1.6
        assert starting_position(descriptor, settings, fake_preferences).values == saved

    def test_random_scales_within_scale_range(self, fake_preferences):
        descriptor = get_modality("advanced_ios")
        settings = AppSettings(reset_behavior="random_position")
        rng = random.Random(42)
        for _ in range(50):
            values = starting_position(descriptor, settings, fake_preferences, rng).values
            assert 0.2 <= values["primary"] <= 0.8
            assert 0.7 <= values["self_scale"] <= 1.3
            assert 0.7 <= values["other_scale"] <= 1.3

    def test_set_membership_keep_position(self, fake_preferences):
        descriptor = get_modality("set_membership")
        settings = AppSettings(reset_behavior="keep_position")
        remember_position(descriptor, fake_preferences, {}, MembershipState(False, True))

        assert fake_preferences.values == {"last_self_in_set": False, "last_other_in_set": True}
        start = starting_position(descriptor, settings, fake_preferences)
        assert start.values == {}
        assert start.membership == MembershipState(False, True)

    def test_set_membership_default(self, fake_preferences):
        start = starting_position(get_modality("set_membership"), AppSettings(), fake_preferences)
        assert start.membership == MembershipState(True, False)

    def test_corrupted_saved_position_is_clamped(self, fake_preferences):
        fake_preferences.values["last_position_basic_ios"] = 4.2
        settings = AppSettings(reset_behavior="keep_position")
        start = starting_position(get_modality("basic_ios"), settings, fake_preferences)
        assert start.values["primary"] == pytest.approx(1.0)
