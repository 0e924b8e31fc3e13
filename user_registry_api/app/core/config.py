"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with no configuration at all; override them via the
environment in a real deployment.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "User Registry API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: Optional[str] = os.getenv("LOG_FILE") or None

    # Path to the SQLite database file.  Relative paths are resolved
    # against the current working directory by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "users.sqlite3")
    # Seconds a connection waits for the write lock before failing.
    database_timeout: float = float(os.getenv("DATABASE_TIMEOUT", "5.0"))

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8080"))

    # Directory holding a built frontend.  Mounted under ``static_url``
    # only when it exists.
    static_dir: Optional[str] = os.getenv("STATIC_DIR") or None
    static_url: str = os.getenv("STATIC_URL", "/ui")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables must
# be set before importing this module.
settings = Settings()
