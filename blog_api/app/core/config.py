"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables, in the same way for the API server, the
seeding script and the test suite.  Defaults are provided for all
fields so the application can start without any environment set up.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Blog API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Optional path of a log file.  When empty, logs only go to the console.
    log_file: str = os.getenv("LOG_FILE", "")

    # Path of the SQLite file backing the document store.  ``:memory:``
    # keeps everything in process, which is what the test suite uses.
    # Relative paths are resolved against the project root by ``db``.
    database_url: str = os.getenv("DATABASE_URL", "blog.db")

    # Comma‑separated list of origins allowed to call the API from a
    # browser, e.g. the single-page frontend served by vite on port 5173.
    cors_origins: List[str] = field(
        default_factory=lambda: _split_origins(os.getenv("CORS_ORIGINS", "http://localhost:5173"))
    )


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should therefore be set before importing this module.
settings = Settings()
