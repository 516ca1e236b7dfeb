"""
app/config.py

Application-level configuration for lead imports.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import get_bool_env, get_int_env, load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _positive_int_env(name: str, default: int) -> int:
    _load_env_once()
    return max(1, get_int_env(name, default))


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = (os.getenv(name) or "").strip()
    return value or default


@dataclass(frozen=True)
class LeadImportSettings:
    """
    Runtime settings for lead CSV imports.
    """

    preview_rows: int = 5
    classifier_sample_limit: int = 5
    persist_batch_size: int = 1000
    max_reported_invalid_urls: int = 500
    log_invalid_urls: bool = True
    upload_storage_dir: str = "data/uploads"


@lru_cache(maxsize=1)
def get_lead_import_settings() -> LeadImportSettings:
    """
    Return cached lead import settings from environment variables.

    Unparseable numbers fall back to defaults; values below 1 are raised to 1.
    """

    _load_env_once()
    return LeadImportSettings(
        preview_rows=_positive_int_env("LEAD_IMPORT_PREVIEW_ROWS", 5),
        classifier_sample_limit=_positive_int_env("LEAD_IMPORT_CLASSIFIER_SAMPLE_LIMIT", 5),
        persist_batch_size=_positive_int_env("LEAD_IMPORT_PERSIST_BATCH_SIZE", 1000),
        max_reported_invalid_urls=_positive_int_env("LEAD_IMPORT_MAX_REPORTED_INVALID_URLS", 500),
        log_invalid_urls=get_bool_env("LEAD_IMPORT_LOG_INVALID_URLS", True),
        upload_storage_dir=_get_str_env("UPLOAD_STORAGE_DIR", "data/uploads"),
    )
