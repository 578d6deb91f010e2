from __future__ import annotations

import asyncio
import xml.etree.ElementTree as ET
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.catalog_store import CatalogStore
from models.records import BookRecord
from services.reports import ReportService, build_default_report_service
from settings import Settings, get_settings

NOW = datetime(2025, 10, 19, 9, 30, tzinfo=timezone.utc)

TEST_SETTINGS = Settings(
    store_name="test",
    data_path=None,
    pdf_build_timeout=30.0,
    pdf_max_catalog_rows=None,
    app_env="production",
    log_level="INFO",
)


def _book(book_id: str, genre: str, year: int, pages: int | None, day: int) -> BookRecord:
    return BookRecord(
        id=book_id,
        title=f"Libro {book_id}",
        author=f"Autor {book_id}",
        isbn="9780000000000",
        genre=genre,
        publication_year=year,
        created_at=datetime(2024, 5, day, tzinfo=timezone.utc),
        publisher="Planeta",
        page_count=pages,
    )


SAMPLE_BOOKS = [
    _book("a", "Ficción", 1967, 100, 1),
    _book("b", "Ficción", 1985, 300, 3),
    _book("c", "Ciencia", 2019, 200, 2),
]


@pytest.fixture
def report_service(tmp_path) -> ReportService:
    store = CatalogStore(name="test", persistence_path=tmp_path / "catalog.json")
    return ReportService(store=store, settings=TEST_SETTINGS, clock=lambda: NOW)


@pytest.fixture
def api_client(report_service: ReportService, monkeypatch) -> Iterator[TestClient]:
    def build_test_service() -> ReportService:
        return report_service

    build_test_service.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_report_service", build_test_service)
    monkeypatch.setattr("app.api.build_default_report_service", build_test_service)

    app = create_app()
    with TestClient(app) as client:
        yield client


def test_lifespan_clears_report_service_cache(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("CATALOG_DATA_PATH", str(tmp_path / "catalog.json"))
    get_settings.cache_clear()
    build_default_report_service.cache_clear()
    app = create_app()

    try:
        with TestClient(app):
            service_during = build_default_report_service()

        service_after = build_default_report_service()
        assert service_after is not service_during
    finally:
        build_default_report_service.cache_clear()
        get_settings.cache_clear()


def test_xml_report_is_served_inline(api_client: TestClient, report_service) -> None:
    report_service.store.put_items(SAMPLE_BOOKS)

    response = api_client.get("/reports/xml")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert "content-disposition" not in response.headers
    root = ET.fromstring(response.content)
    assert root.get("totalRegistros") == "3"
    assert len(root.findall("./libros/libro")) == 3


def test_xml_download_sets_dated_filename(api_client: TestClient, report_service) -> None:
    report_service.store.put_items(SAMPLE_BOOKS)

    response = api_client.get("/reports/download")

    assert response.status_code == 200
    disposition = response.headers["content-disposition"]
    assert disposition == 'attachment; filename="catalogo-libros-2025-10-19.xml"'


def test_xml_sections_filter(api_client: TestClient, report_service) -> None:
    report_service.store.put_items(SAMPLE_BOOKS)

    response = api_client.get(
        "/reports/xml", params=[("sections", "books"), ("sections", "summary")]
    )

    assert response.status_code == 200
    root = ET.fromstring(response.content)
    assert [child.tag for child in root] == ["resumen", "libros"]


def test_unknown_section_returns_bad_request(api_client: TestClient, report_service) -> None:
    report_service.store.put_items(SAMPLE_BOOKS)

    response = api_client.get("/reports/xml", params={"sections": "gender"})

    assert response.status_code == 400
    assert "gender" in response.json()["detail"]


@pytest.mark.parametrize("path", ["/reports/xml", "/reports/download", "/reports/pdf"])
def test_empty_catalog_returns_not_found(api_client: TestClient, path: str) -> None:
    response = api_client.get(path)

    assert response.status_code == 404
    assert response.json()["detail"] == "No hay libros en el catálogo para generar el reporte"


def test_pdf_report_download(api_client: TestClient, report_service) -> None:
    report_service.store.put_items(SAMPLE_BOOKS)

    response = api_client.get("/reports/pdf")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["cache-control"] == "no-cache"
    assert response.headers["content-disposition"] == (
        'attachment; filename="catalogo-libros-2025-10-19.pdf"'
    )
    assert response.content.startswith(b"%PDF")


def test_pdf_failure_hides_cause_outside_development(
    api_client: TestClient, report_service, monkeypatch
) -> None:
    report_service.store.put_items(SAMPLE_BOOKS)

    async def broken(*_args, **_kwargs) -> bytes:
        raise RuntimeError("font cache exploded")

    monkeypatch.setattr("services.reports.render_catalog_pdf", broken)

    response = api_client.get("/reports/pdf")

    assert response.status_code == 500
    assert response.json()["detail"] == "Error al generar el reporte PDF"

    report_service.settings = replace(TEST_SETTINGS, app_env="development")
    response = api_client.get("/reports/pdf")

    assert response.status_code == 500
    assert "font cache exploded" in response.json()["detail"]


def test_statistics_payload(api_client: TestClient, report_service) -> None:
    report_service.store.put_items(SAMPLE_BOOKS)

    response = api_client.get("/reports/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "message" not in body
    data = body["data"]
    assert set(data) == {
        "resumen",
        "porGenero",
        "porDecada",
        "porEditorial",
        "topAutores",
        "rankings",
        "analisisTemporal",
    }
    assert data["resumen"]["totalLibros"] == 3
    assert data["resumen"]["totalPaginas"] == 600
    assert data["resumen"]["promedioPaginasPorLibro"] == 200
    assert data["resumen"]["rangoAnios"] == "1967 - 2019"
    assert [(g["genero"], g["porcentaje"]) for g in data["porGenero"]] == [
        ("Ficción", 66.67),
        ("Ciencia", 33.33),
    ]
    assert [d["decada"] for d in data["porDecada"]] == ["1960s", "1980s", "2010s"]
    assert data["rankings"]["libroMasLargo"]["titulo"] == "Libro b"
    assert data["analisisTemporal"]["librosUltimos10Anios"] == 1


def test_statistics_on_empty_catalog(api_client: TestClient) -> None:
    response = api_client.get("/reports/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "No hay libros en el catálogo"
    assert body["data"]["resumen"]["totalLibros"] == 0
    assert body["data"]["porGenero"] == []
    assert body["data"]["analisisTemporal"]["decadaMasProductiva"] == "N/A"
    assert body["data"]["rankings"]["libroMasLargo"] is None


def test_books_listing_is_newest_first(api_client: TestClient, report_service) -> None:
    report_service.store.put_items(SAMPLE_BOOKS)

    response = api_client.get("/books")

    assert response.status_code == 200
    assert [book["id"] for book in response.json()] == ["b", "c", "a"]
    assert response.json()[0]["titulo"] == "Libro b"


def test_health_endpoints(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
    assert api_client.get("/").json()["status"] == "ok"


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def test_xml_and_statistics_render_off_the_event_loop(
    api_client: TestClient, report_service, monkeypatch
) -> None:
    report_service.store.put_items(SAMPLE_BOOKS)
    calls = []
    xml_report = report_service.xml_report
    statistics = report_service.statistics

    def tracking_xml(sections):
        calls.append(("xml", _loop_running()))
        return xml_report(sections)

    def tracking_statistics():
        calls.append(("stats", _loop_running()))
        return statistics()

    monkeypatch.setattr(report_service, "xml_report", tracking_xml)
    monkeypatch.setattr(report_service, "statistics", tracking_statistics)

    assert api_client.get("/reports/xml").status_code == 200
    assert api_client.get("/reports/download").status_code == 200
    assert api_client.get("/reports/stats").status_code == 200
    assert calls == [("xml", False), ("xml", False), ("stats", False)]
