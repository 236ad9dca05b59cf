"""Session export to CSV, TSV and JSON."""

from ios_scale.export.file_naming import generate_export_filename
from ios_scale.export.serializer import (
    ExportArtifact,
    ExportBundle,
    export_sessions,
    export_to_delimited,
    export_to_json,
    export_with_settings,
    write_artifact,
)

__all__ = [
    "ExportArtifact",
    "ExportBundle",
    "export_sessions",
    "export_to_delimited",
    "export_to_json",
    "export_with_settings",
    "generate_export_filename",
    "write_artifact",
]
