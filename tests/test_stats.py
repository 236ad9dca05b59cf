"""Tests for summary statistics."""

import pytest

from ios_scale.models import Measurement, Session
from ios_scale.stats import summarize


def test_summarize_across_sessions():
    sessions = [
        Session(modality="basic_ios", measurements=[Measurement(primary_value=v) for v in (0.2, 0.4)]),
        Session(modality="overlap", measurements=[Measurement(primary_value=0.9)]),
        Session(modality="proximity"),
    ]
    summary = summarize(sessions)
    assert summary.session_count == 3
    assert summary.measurement_count == 3
    assert summary.average == pytest.approx(0.5)
    assert summary.minimum == 0.2
    assert summary.maximum == 0.9


def test_summarize_without_measurements():
    summary = summarize([Session(modality="basic_ios")])
    assert summary.session_count == 1
    assert summary.measurement_count == 0
    assert summary.average is None
    assert summary.minimum is None
    assert summary.maximum is None


def test_summarize_returns_python_floats():
    summary = summarize([Session(modality="basic_ios", measurements=[Measurement(primary_value=0.5)])])
    assert type(summary.average) is float
