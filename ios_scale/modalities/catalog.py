"""Descriptors for the nine built-in modalities.

Importing this module registers every descriptor with the registry.
"""

from ios_scale.models import OTHER_SCALE, SELF_SCALE
from ios_scale.modalities.base import (
    PRIMARY_AXIS,
    AxisSpec,
    LabelBand,
    MembershipSpec,
    ModalityDescriptor,
)
from ios_scale.modalities.registry import register_modality

MIN_CIRCLE_SCALE = 0.2
MAX_CIRCLE_SCALE = 2.0
# Scale change per point of vertical drag
VERTICAL_DRAG_SENSITIVITY = 0.003
DEFAULT_SUCCESS_THRESHOLD = 0.98

_CLOSENESS_LABELS = (
    LabelBand(0.2, "Distant"),
    LabelBand(0.5, "Separate"),
    LabelBand(0.75, "Close"),
    LabelBand(0.95, "Connected"),
    LabelBand(1.0, "Merged"),
)


def _primary(key: str, default: float, random_range: tuple[float, float],
             sensitivity_range: float, sign: int = 1) -> dict[str, AxisSpec]:
    return {
        PRIMARY_AXIS: AxisSpec(
            preference_key=f"last_position_{key}",
            default=default,
            random_range=random_range,
            sensitivity_range=sensitivity_range,
            sign=sign,
        )
    }


def _scale_axis(which: str) -> AxisSpec:
    # Screen y grows downward, so dragging up (negative) grows the circle
    return AxisSpec(
        preference_key=f"last_{which}_advanced_ios",
        default=1.0,
        random_range=(0.7, 1.3),
        sensitivity_range=1 / VERTICAL_DRAG_SENSITIVITY,
        sign=-1,
        lower=MIN_CIRCLE_SCALE,
        upper=MAX_CIRCLE_SCALE,
        secondary_key=which,
    )


BASIC_IOS = ModalityDescriptor(
    key="basic_ios",
    display_name="Basic IOS",
    description="Classic distance-based measurement using two circles",
    axes=_primary("basic_ios", 0.5, (0.2, 0.8), 150.0),
    labels=_CLOSENESS_LABELS,
)

ADVANCED_IOS = ModalityDescriptor(
    key="advanced_ios",
    display_name="Advanced IOS",
    description="Extended scale with adjustable circle sizes",
    axes={
        **_primary("advanced_ios", 0.5, (0.2, 0.8), 150.0),
        SELF_SCALE: _scale_axis(SELF_SCALE),
        OTHER_SCALE: _scale_axis(OTHER_SCALE),
    },
    labels=_CLOSENESS_LABELS,
)

OVERLAP = ModalityDescriptor(
    key="overlap",
    display_name="Overlap",
    description="Measures the degree of overlap between Self and Other",
    # Vertical drag: moving up increases overlap
    axes=_primary("overlap", 0.0, (0.0, 0.8), 160.0, sign=-1),
    labels=(
        LabelBand(0.1, "No Overlap"),
        LabelBand(0.3, "Slight Overlap"),
        LabelBand(0.5, "Partial Overlap"),
        LabelBand(0.7, "Moderate Overlap"),
        LabelBand(0.9, "Significant Overlap"),
        LabelBand(1.0, "Complete Overlap"),
    ),
)

SET_MEMBERSHIP = ModalityDescriptor(
    key="set_membership",
    display_name="Set Membership",
    description="Whether Self and Other belong to a shared group",
    axes={},
    membership=MembershipSpec(
        self_preference_key="last_self_in_set",
        other_preference_key="last_other_in_set",
    ),
    labels=(
        LabelBand(0.25, "No Membership", "Neither of us belongs"),
        LabelBand(0.75, "Partial Membership", "Only one of us belongs"),
        LabelBand(1.0, "Shared Membership", "We belong together"),
    ),
)

PROXIMITY = ModalityDescriptor(
    key="proximity",
    display_name="Proximity",
    description="Pure distance measurement without overlap",
    axes=_primary("proximity", 0.0, (0.0, 0.8), 200.0),
    labels=(
        LabelBand(0.15, "Very Distant", "Far apart, minimal connection"),
        LabelBand(0.35, "Distant", "Some distance between us"),
        LabelBand(0.55, "Moderate", "Neither close nor far"),
        LabelBand(0.75, "Close", "Feeling connected"),
        LabelBand(0.95, "Very Close", "Strong sense of closeness"),
        LabelBand(1.0, "Touching", "As close as possible"),
    ),
    success_threshold=DEFAULT_SUCCESS_THRESHOLD,
)

IDENTIFICATION = ModalityDescriptor(
    key="identification",
    display_name="Identification",
    description="Self absorbs qualities of Other",
    # Dragging left pulls the other's qualities into the self
    axes=_primary("identification", 0.0, (0.0, 0.8), 200.0, sign=-1),
    labels=(
        LabelBand(0.15, "Separate", "I see the other as completely separate"),
        LabelBand(0.35, "Slightly Connected", "I notice some connection with the other"),
        LabelBand(0.55, "Moderately Identified", "I share some qualities with the other"),
        LabelBand(0.75, "Strongly Identified", "I strongly identify with the other"),
        LabelBand(0.95, "Deeply Identified", "The other's qualities feel like mine"),
        LabelBand(1.0, "Fully Identified", "I fully identify with the other"),
    ),
    success_threshold=DEFAULT_SUCCESS_THRESHOLD,
)

PROJECTION = ModalityDescriptor(
    key="projection",
    display_name="Projection",
    description="Self projects onto Other",
    axes=_primary("projection", 0.0, (0.0, 0.8), 250.0),
    labels=(
        LabelBand(0.15, "Separate", "I see the other as completely separate"),
        LabelBand(0.35, "Slight Projection", "I slightly project myself onto the other"),
        LabelBand(0.55, "Moderate Projection", "I project some of my qualities onto the other"),
        LabelBand(0.75, "Strong Projection", "I strongly project myself onto the other"),
        LabelBand(0.95, "Deep Projection", "Much of what I see in the other is me"),
        LabelBand(1.0, "Full Projection", "I fully project myself onto the other"),
    ),
    success_threshold=DEFAULT_SUCCESS_THRESHOLD,
)

ATTRIBUTION = ModalityDescriptor(
    key="attribution",
    display_name="Attribution",
    description="Perceived similarity across dimensions",
    axes=_primary("attribution", 0.5, (0.2, 0.8), 300.0),
    labels=(
        LabelBand(0.15, "Very Different", "I perceive us as completely different"),
        LabelBand(0.35, "Quite Different", "I see more differences than similarities"),
        LabelBand(0.50, "Somewhat Different", "I notice some differences between us"),
        LabelBand(0.65, "Somewhat Similar", "I notice some similarities between us"),
        LabelBand(0.85, "Quite Similar", "I see more similarities than differences"),
        LabelBand(1.0, "Very Similar", "I perceive us as very much alike"),
    ),
    success_threshold=DEFAULT_SUCCESS_THRESHOLD,
)

OBSERVATION = ModalityDescriptor(
    key="observation",
    display_name="Observation",
    description="Being an observer vs participant",
    axes=_primary("observation", 0.0, (0.0, 0.8), 250.0),
    labels=(
        LabelBand(0.15, "Pure Observer", "I watch from a complete distance"),
        LabelBand(0.35, "Distant Observer", "I observe with some detachment"),
        LabelBand(0.50, "Engaged Observer", "I observe while feeling some connection"),
        LabelBand(0.65, "Partial Participant", "I participate while still observing"),
        LabelBand(0.85, "Active Participant", "I am actively engaged in the experience"),
        LabelBand(1.0, "Fully Immersed", "I am fully immersed in the moment"),
    ),
    success_threshold=DEFAULT_SUCCESS_THRESHOLD,
)

for _descriptor in (
    BASIC_IOS,
    ADVANCED_IOS,
    OVERLAP,
    SET_MEMBERSHIP,
    PROXIMITY,
    IDENTIFICATION,
    PROJECTION,
    ATTRIBUTION,
    OBSERVATION,
):
    register_modality(_descriptor)


def membership_label(self_in_set: bool, other_in_set: bool) -> str:
    """Label for a set membership state."""
    if self_in_set and other_in_set:
        return "Same Set"
    if self_in_set:
        return "Only Self in Set"
    if other_in_set:
        return "Only Other in Set"
    return "Neither in Set"


def scale_ratio_label(self_scale: float, other_scale: float) -> str:
    """Describe the relative circle sizes of an advanced overlap measurement."""
    ratio = self_scale / other_scale
    if abs(ratio - 1.0) < 0.1:
        return "Equal size"
    if ratio > 1:
        return "Self larger"
    return "Other larger"
