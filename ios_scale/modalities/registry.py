"""Modality descriptor registry.

Provides a simple registry for looking up modality descriptors by key.
The built-in descriptors register themselves when ``catalog`` is imported.
"""

from ios_scale.modalities.base import ModalityDescriptor

_registry: dict[str, ModalityDescriptor] = {}


def register_modality(descriptor: ModalityDescriptor) -> None:
    """Register a modality descriptor.

    Args:
        descriptor: Descriptor instance; replaces any previous entry with the
            same key.
    """
    _registry[descriptor.key] = descriptor


def get_modality(key: str) -> ModalityDescriptor:
    """Look up a modality descriptor by key.

    Args:
        key: Modality key (e.g., "basic_ios", "set_membership")

    Returns:
        Modality descriptor

    Raises:
        ValueError: If the key is not registered
    """
    _import_known_modalities()

    if key not in _registry:
        available = ", ".join(sorted(_registry.keys())) or "(none)"
        raise ValueError(f"Unknown modality '{key}'. Available: {available}")

    return _registry[key]


def list_modalities(available_only: bool = False) -> list[ModalityDescriptor]:
    """List registered descriptors in registration order."""
    _import_known_modalities()
    descriptors = list(_registry.values())
    if available_only:
        descriptors = [d for d in descriptors if d.available]
    return descriptors


def display_name(key: str) -> str:
    return get_modality(key).display_name


def _import_known_modalities() -> None:
    """Import the built-in catalog to trigger registration."""
    import ios_scale.modalities.catalog  # noqa: F401
