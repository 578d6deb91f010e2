from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_NAME_ENV = "CATALOG_STORE_NAME"
_DATA_PATH_ENV = "CATALOG_DATA_PATH"
_PDF_TIMEOUT_ENV = "PDF_BUILD_TIMEOUT"
_PDF_MAX_ROWS_ENV = "PDF_MAX_CATALOG_ROWS"
_APP_ENV_ENV = "APP_ENV"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    store_name: str
    data_path: Optional[str]
    pdf_build_timeout: float
    pdf_max_catalog_rows: Optional[int]
    app_env: str
    log_level: str

    @property
    def debug(self) -> bool:
        return self.app_env == "development"


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_timeout(default: float) -> float:
    value = os.getenv(_PDF_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_max_rows() -> Optional[int]:
    """Zero, blank or invalid values mean the whole catalog is rendered."""
    value = os.getenv(_PDF_MAX_ROWS_ENV)
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        parsed = int(candidate)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _read_lower_env(name: str, default: str) -> str:
    return _read_str_env(name, default).lower()


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        store_name=_read_str_env(_STORE_NAME_ENV, "books"),
        data_path=_read_optional_env(_DATA_PATH_ENV, "./data/catalog.json"),
        pdf_build_timeout=_read_timeout(30.0),
        pdf_max_catalog_rows=_read_max_rows(),
        app_env=_read_lower_env(_APP_ENV_ENV, "production"),
        log_level=_read_log_level("INFO"),
    )
