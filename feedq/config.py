"""Centralized configuration for the FeedQ activity stream.

Typed constants for database, retention, activity defaults, and API
settings. Environment variable overrides use safe defaults so the service
starts without extra env configuration.
"""

from __future__ import annotations

import os

# --- App ---
APP_VERSION: str = "1.0.0"

# --- Database ---
DB_POOL_SIZE: int = int(os.getenv("FEEDQ_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("FEEDQ_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("FEEDQ_DB_CONNECT_TIMEOUT", "30.0"))

# --- Retention ---
EXPIRE_DAYS_DEFAULT: int = int(os.getenv("FEEDQ_EXPIRE_DAYS", "365"))
SECONDS_PER_DAY: int = 60 * 60 * 24

# --- Activity defaults ---
DEFAULT_LANGUAGE: str = os.getenv("FEEDQ_DEFAULT_LANGUAGE", "en")
DEFAULT_BATCH_SECONDS: int = int(os.getenv("FEEDQ_DEFAULT_BATCH_SECONDS", "3600"))

# --- API ---
API_PAGE_SIZE_DEFAULT: int = 30
API_PAGE_SIZE_MAX: int = 200
API_USER_HEADER: str = "X-User-Id"
