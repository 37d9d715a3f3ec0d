"""
app_transfer/settings.py
-----------------------------------------------------------------------------
Environment-driven configuration for the Application Transfer Service.

All values are read once at import time (after ``load_dotenv()``) so they
stay consistent for the lifetime of the process.  Tests patch the module
attributes directly rather than the environment.

Environment variables
---------------------
DEFINITION_STORE_URL  – Base URL of the REST definition backend.  Empty or
                        unset selects the in-memory store (local dev/tests).
STORE_CONNECT_TIMEOUT – Seconds to wait for the backend connection (10).
STORE_READ_TIMEOUT    – Seconds to wait for a full backend response (120).
                        Installs of large applications can be slow.
MAX_UPLOAD_SIZE       – Largest accepted import payload in bytes (100 MiB).
MAX_ARCHIVE_ENTRIES   – Largest accepted entry count in an archive (10 000).
MAX_ENTRY_SIZE        – Largest accepted uncompressed entry in bytes (50 MiB).
LOG_LEVEL             – Root logging level for the HTTP app (INFO).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env if present (no-op if the file doesn't exist)
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}") from exc


# -----------------------------------------------------------------------------
# Definition store
# -----------------------------------------------------------------------------

# Strip any trailing slash so we can safely append paths.
DEFINITION_STORE_URL: str = os.getenv("DEFINITION_STORE_URL", "").strip().rstrip("/")

STORE_CONNECT_TIMEOUT: float = _env_float("STORE_CONNECT_TIMEOUT", 10.0)
STORE_READ_TIMEOUT: float = _env_float("STORE_READ_TIMEOUT", 120.0)

# -----------------------------------------------------------------------------
# Upload and archive limits
# -----------------------------------------------------------------------------

MAX_UPLOAD_SIZE: int = _env_int("MAX_UPLOAD_SIZE", 104_857_600)  # 100 MiB
MAX_ARCHIVE_ENTRIES: int = _env_int("MAX_ARCHIVE_ENTRIES", 10_000)
MAX_ENTRY_SIZE: int = _env_int("MAX_ENTRY_SIZE", 52_428_800)  # 50 MiB

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
