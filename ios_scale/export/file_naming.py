"""Filename generation for export files.

Naming conventions:
    Single session:    IOS_Scale_basic_ios_2025-01-31_142501.csv
    Several sessions:  IOS_Scale_Export_2025-01-31_142501.json
"""

from datetime import datetime
from typing import Optional, Sequence

from ios_scale.models import Session, utcnow

FILENAME_TIMESTAMP_FORMAT = "%Y-%m-%d_%H%M%S"


def generate_export_filename(
    sessions: Sequence[Session],
    extension: str,
    now: Optional[datetime] = None,
) -> str:
    """Generate a suggested filename for an export.

    Args:
        sessions: Sessions being exported
        extension: File extension without the dot ("csv", "tsv", "json")
        now: Export time, defaults to the current UTC time

    Returns:
        Filename, e.g. "IOS_Scale_basic_ios_2025-01-31_142501.csv"
    """
    timestamp = (now or utcnow()).strftime(FILENAME_TIMESTAMP_FORMAT)
    if len(sessions) == 1:
        modality = sessions[0].modality.replace(" ", "_")
        return f"IOS_Scale_{modality}_{timestamp}.{extension}"
    return f"IOS_Scale_Export_{timestamp}.{extension}"
