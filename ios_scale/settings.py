"""User settings.

Settings are read at the moment they are needed (reset policy evaluation,
export) and passed in explicitly, so a change takes effect on the next save.
Corrupted or unknown persisted values fall back to defaults instead of
failing.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, ValidationError, field_validator

logger = logging.getLogger(__name__)

ThemeMode = Literal["light", "dark", "system"]
ResetBehavior = Literal["keep_position", "reset_to_default", "random_position"]
ExportFormat = Literal["csv", "tsv", "json"]
DecimalSeparator = Literal[".", ","]

SETTINGS_KEY = "app_settings"

RESET_BEHAVIOR_NAMES: dict[str, str] = {
    "keep_position": "Keep Position",
    "reset_to_default": "Reset to Default",
    "random_position": "Random Position",
}

EXPORT_MIME_TYPES: dict[str, str] = {
    "csv": "text/csv",
    "tsv": "text/tab-separated-values",
    "json": "application/json",
}


def _fallback(value: Any, allowed: tuple[str, ...], default: str, field_name: str) -> str:
    if value in allowed:
        return value
    logger.warning(
        f"Unrecognized {field_name} value {value!r}; falling back to {default!r}"
    )
    return default


def parse_reset_behavior(value: Any) -> ResetBehavior:
    return _fallback(value, get_args(ResetBehavior), "reset_to_default", "reset_behavior")


def parse_export_format(value: Any) -> ExportFormat:
    return _fallback(value, get_args(ExportFormat), "csv", "export_format")


class AppSettings(BaseModel):
    """User preferences."""

    theme: ThemeMode = "system"
    reset_behavior: ResetBehavior = "reset_to_default"
    export_format: ExportFormat = "csv"
    include_metadata_in_export: bool = True
    decimal_separator: DecimalSeparator = "."
    haptic_feedback_enabled: bool = True

    @field_validator("theme", mode="before")
    @classmethod
    def fallback_theme(cls, value: Any) -> str:
        return _fallback(value, get_args(ThemeMode), "system", "theme")

    @field_validator("reset_behavior", mode="before")
    @classmethod
    def fallback_reset_behavior(cls, value: Any) -> str:
        return parse_reset_behavior(value)

    @field_validator("export_format", mode="before")
    @classmethod
    def fallback_export_format(cls, value: Any) -> str:
        return parse_export_format(value)

    @field_validator("decimal_separator", mode="before")
    @classmethod
    def fallback_decimal_separator(cls, value: Any) -> str:
        return _fallback(value, get_args(DecimalSeparator), ".", "decimal_separator")

    @classmethod
    def from_stored(cls, raw: Optional[dict[str, Any]]) -> "AppSettings":
        """Build settings from a persisted payload, tolerating corruption."""
        if not isinstance(raw, dict):
            return cls()
        known = {k: v for k, v in raw.items() if k in cls.model_fields}
        try:
            return cls(**known)
        except ValidationError as e:
            logger.warning(f"Stored settings are invalid, using defaults: {e}")
            return cls()


def format_display_number(value: float, separator: str = ".", decimals: int = 2) -> str:
    """Format a number for display using the chosen decimal separator.

    Exports always use ``.``; this only affects on-screen numbers.
    """
    text = f"{value:.{decimals}f}"
    if separator == ",":
        return text.replace(".", ",")
    return text
