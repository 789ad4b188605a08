"""
Runtime configuration from environment variables.

Values are read from the process environment (after loading a local .env
file). Algorithm defaults live in sm2/constants.py and sm2/settings.py.
"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv

from recall.sm2.constants import SESSION_LOG_LIMIT
from recall.sm2.settings import Settings

# Load environment
load_dotenv()

# Configuration
DEFAULT_STORE_KEY = "spacedRepetitionData"
DEFAULT_DATABASE_URL = "sqlite:///logs/reviews.sqlite"
PERSIST_RETRIES = 2  # Extra save attempts before recording a PersistenceWarning

SETTINGS_ENV_PREFIX = "RECALL_"


def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def get_database_url() -> str:
    """
    Get the database URL for SqlAlchemyStore.

    Uses DATABASE_URL if set, otherwise a local SQLite file. In test mode,
    'reviews' in the URL is replaced with 'test_reviews'.

    Returns:
        Database URL
    """
    url = os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    if is_test_mode():
        return url.replace("reviews", "test_reviews")
    return url


def get_store_key() -> str:
    return os.getenv(f"{SETTINGS_ENV_PREFIX}STORE_KEY", DEFAULT_STORE_KEY)


def get_session_log_limit() -> int:
    raw = os.getenv(f"{SETTINGS_ENV_PREFIX}SESSION_LOG_LIMIT")
    if not raw:
        return SESSION_LOG_LIMIT
    try:
        return max(1, int(raw))
    except ValueError as exc:
        raise ValueError(f"{SETTINGS_ENV_PREFIX}SESSION_LOG_LIMIT must be an integer, got {raw!r}") from exc


def settings_from_env() -> dict[str, Any]:
    """
    Settings overrides from RECALL_<FIELD> environment variables.

    Example: RECALL_MAX_INTERVAL=180, RECALL_INTERVAL_MODIFIER=0.9

    Returns:
        Mapping of field name -> raw string value (validated later by
        build_settings)
    """
    overrides = {}
    for name in Settings.model_fields:
        value = os.getenv(f"{SETTINGS_ENV_PREFIX}{name.upper()}")
        if value is not None and value != "":
            overrides[name] = value
    return overrides
