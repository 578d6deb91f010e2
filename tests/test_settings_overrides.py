from __future__ import annotations

from typing import Iterable

import pytest

from datastore.catalog_store import build_default_store
from services.reports import build_default_report_service
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (get_settings, build_default_store, build_default_report_service)


@pytest.fixture(autouse=True)
def fresh_caches() -> Iterable[None]:
    _clear_caches(CACHES)
    yield
    _clear_caches(CACHES)


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    data_path = tmp_path / "custom" / "catalog.json"

    monkeypatch.setenv("CATALOG_STORE_NAME", "custom-catalog")
    monkeypatch.setenv("CATALOG_DATA_PATH", str(data_path))
    monkeypatch.setenv("PDF_BUILD_TIMEOUT", "12.5")
    monkeypatch.setenv("PDF_MAX_CATALOG_ROWS", "200")
    monkeypatch.setenv("APP_ENV", " Development ")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    service = build_default_report_service()

    assert service.store.name == "custom-catalog"
    assert service.store.persistence_path == data_path
    assert data_path.parent.is_dir()
    assert service.settings.pdf_build_timeout == 12.5
    assert service.settings.pdf_max_catalog_rows == 200
    assert service.settings.debug is True
    assert service.settings.log_level == "DEBUG"


def test_defaults_when_environment_is_unset(monkeypatch) -> None:
    for name in (
        "CATALOG_STORE_NAME",
        "CATALOG_DATA_PATH",
        "PDF_BUILD_TIMEOUT",
        "PDF_MAX_CATALOG_ROWS",
        "APP_ENV",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.store_name == "books"
    assert settings.data_path == "./data/catalog.json"
    assert settings.pdf_build_timeout == 30.0
    assert settings.pdf_max_catalog_rows is None
    assert settings.debug is False
    assert settings.log_level == "INFO"


@pytest.mark.parametrize("value", ["0", "-3", "many", "   "])
def test_invalid_row_limit_renders_whole_catalog(monkeypatch, value: str) -> None:
    monkeypatch.setenv("PDF_MAX_CATALOG_ROWS", value)

    assert get_settings().pdf_max_catalog_rows is None


@pytest.mark.parametrize("value", ["0", "-1", "slow"])
def test_invalid_timeout_falls_back_to_default(monkeypatch, value: str) -> None:
    monkeypatch.setenv("PDF_BUILD_TIMEOUT", value)

    assert get_settings().pdf_build_timeout == 30.0


def test_blank_data_path_keeps_catalog_in_memory(monkeypatch) -> None:
    monkeypatch.setenv("CATALOG_DATA_PATH", "  ")

    store = build_default_store()

    assert store.persistence_path is None
