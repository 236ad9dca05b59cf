"""Drag-input mappers producing live normalized values."""

from ios_scale.gestures.mapper import (
    AxisMapper,
    ContainmentTracker,
    MapperUpdate,
    MembershipMapper,
    MembershipState,
    MultiAxisMapper,
    Point,
    Rect,
)

__all__ = [
    "AxisMapper",
    "ContainmentTracker",
    "MapperUpdate",
    "MembershipMapper",
    "MembershipState",
    "MultiAxisMapper",
    "Point",
    "Rect",
]
