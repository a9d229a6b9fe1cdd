"""Centralized configuration for the Newsroom learning backend.

Typed constants for database, learning policy, rate-limiting, and API
settings. Environment variable overrides use safe defaults so the app starts
without extra env configuration.
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


# --- App ---
APP_NAME: str = "Newsroom Learning API"
APP_VERSION: str = "1.0.0"
APP_ENV: str = os.getenv("NEWSROOM_ENV", "development")
CORS_ORIGIN: str = os.getenv("NEWSROOM_CORS_ORIGIN", "http://localhost:3000")

# --- Database ---
DB_POOL_SIZE: int = int(os.getenv("NEWSROOM_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("NEWSROOM_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("NEWSROOM_DB_CONNECT_TIMEOUT", "30.0"))
DB_TEMP_CONN_MAX: int = int(os.getenv("NEWSROOM_DB_TEMP_CONN_MAX", "10"))
DB_RETRY_MAX: int = int(os.getenv("NEWSROOM_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("NEWSROOM_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("NEWSROOM_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("NEWSROOM_DB_RETRY_JITTER", "0.1"))

# --- Learning ---
# Fallbacks when config/newsroom_policy.yaml is absent (see learning/policy.py)
LEARNING_RELIABILITY_THRESHOLD: float = 0.3
LEARNING_MIN_OBSERVATIONS: int = 5
LEARNING_MOST_CORRECTED_LIMIT: int = 10

# --- Rate Limiting ---
RATE_LIMIT_ENABLED: bool = _env_bool(
    "NEWSROOM_RATE_LIMIT_ENABLED", "true" if APP_ENV == "production" else "false"
)
RATE_LIMIT_RPM: int = int(os.getenv("NEWSROOM_RATE_LIMIT_RPM", "60"))
RATE_LIMIT_RPH: int = int(os.getenv("NEWSROOM_RATE_LIMIT_RPH", "1000"))
RATE_LIMIT_MAX_IPS: int = 10000

# --- API ---
API_LIST_LIMIT_DEFAULT: int = 50
API_LIST_LIMIT_MAX: int = 500
API_MAX_TAGS: int = 100
API_MAX_TAG_LENGTH: int = 100
API_MAX_TEXT_LENGTH: int = 20_000
