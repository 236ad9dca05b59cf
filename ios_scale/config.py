"""Project configuration helpers for environment-driven defaults."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from ios_scale import __version__

DEFAULT_DATABASE_URL = "sqlite:///ios_scale.db"


def _default_env_path() -> Path:
    return Path(__file__).resolve().parents[1] / ".env.local"


def load_env_file(env_path: Path | None = None) -> None:
    """Load environment variables from a .env file if present.

    Already-set variables are not overridden.
    """
    path = env_path or _default_env_path()
    if not path.exists():
        return
    load_dotenv(path, override=False)


def get_database_url() -> str:
    """Return the configured database connection string."""
    return os.environ.get("IOS_SCALE_DATABASE_URL") or DEFAULT_DATABASE_URL


def get_app_version() -> str:
    """Return the application version string written into exports."""
    return os.environ.get("IOS_SCALE_APP_VERSION") or __version__


def get_export_dir(default: Path | None = None) -> Path:
    """Return the directory export files are written to."""
    raw = os.environ.get("IOS_SCALE_EXPORT_DIR")
    if raw:
        return Path(raw).expanduser().resolve()
    return default or Path.cwd()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
