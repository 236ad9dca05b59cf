#!/usr/bin/env python3
"""Command-line interface for exporting sessions to CSV, TSV or JSON."""

import argparse
import logging
import sys
from pathlib import Path

from ios_scale.config import get_export_dir, load_env_file, setup_logging
from ios_scale.db import PreferenceStore, SessionQuery, SessionRepository, get_engine, init_db
from ios_scale.errors import SerializationError, StorageError
from ios_scale.export import export_sessions, write_artifact


def main(argv: list[str] | None = None) -> int:
    """Export stored sessions to a file.

    Format and metadata default to the stored user settings. Exports every
    active session unless `--session` ids are given.

    Returns 0 on success, non-zero if nothing matched or the export failed.
    """
    parser = argparse.ArgumentParser(
        description="Export IOS Scale sessions to CSV, TSV or JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  ios-scale-export --format json\n"
            "  ios-scale-export --session 3f2a... --no-metadata"
        ),
    )
    parser.add_argument(
        "--format",
        choices=["csv", "tsv", "json"],
        help="Export format (default: stored setting)",
    )
    parser.add_argument(
        "--session",
        action="append",
        default=[],
        help="Session id to export (repeatable)",
    )
    parser.add_argument(
        "--include-trashed",
        action="store_true",
        help="Also export sessions in the trash",
    )
    parser.add_argument(
        "--no-metadata",
        action="store_true",
        help="Omit scales, session creation time and notes",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory to write the export to (default: IOS_SCALE_EXPORT_DIR or cwd)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    load_env_file()
    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    engine = get_engine()
    init_db(engine)
    repository = SessionRepository(engine)
    settings = PreferenceStore(engine).load_settings()

    try:
        if args.session:
            sessions = [s for s in (repository.get_session(i) for i in args.session) if s is not None]
        elif args.include_trashed:
            sessions = repository.all_sessions()
        else:
            sessions = repository.query(SessionQuery(active_only=True, sort="oldest_first"))
    except StorageError as e:
        logger.error(f"Failed to load sessions: {e}")
        return 1

    if not sessions:
        logger.error("No sessions to export")
        return 1

    include_metadata = settings.include_metadata_in_export and not args.no_metadata
    try:
        artifact = export_sessions(
            sessions,
            args.format or settings.export_format,
            include_metadata,
        )
    except SerializationError as e:
        logger.error(f"Export failed: {e}")
        return 1

    try:
        path = write_artifact(artifact, args.output_dir or get_export_dir())
    except OSError as e:
        logger.error(f"Failed to write export: {e}")
        return 1
    print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
