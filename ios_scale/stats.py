"""Summary statistics for display: counts, average, min and max."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ios_scale.models import Session


@dataclass(frozen=True)
class SessionSummary:
    session_count: int
    measurement_count: int
    average: Optional[float]
    minimum: Optional[float]
    maximum: Optional[float]


def summarize(sessions: Sequence[Session]) -> SessionSummary:
    """Summarize primary values across all measurements of ``sessions``."""
    values = np.array(
        [m.primary_value for s in sessions for m in s.measurements], dtype=float
    )
    if values.size == 0:
        return SessionSummary(len(sessions), 0, None, None, None)
    return SessionSummary(
        session_count=len(sessions),
        measurement_count=int(values.size),
        average=float(values.mean()),
        minimum=float(values.min()),
        maximum=float(values.max()),
    )
