"""Per-modality descriptors and their registry."""

from ios_scale.modalities.base import (
    PRIMARY_AXIS,
    AxisSpec,
    LabelBand,
    MembershipSpec,
    ModalityDescriptor,
)
from ios_scale.modalities.registry import (
    display_name,
    get_modality,
    list_modalities,
    register_modality,
)

__all__ = [
    "PRIMARY_AXIS",
    "AxisSpec",
    "LabelBand",
    "MembershipSpec",
    "ModalityDescriptor",
    "display_name",
    "get_modality",
    "list_modalities",
    "register_modality",
]
