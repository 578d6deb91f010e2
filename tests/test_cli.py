from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx
import pytest
import typer
from typer.testing import CliRunner

from cli.app import app
from cli.client import ApiClient, DownloadedReport
from cli.config import CLIConfig, load_config

STATS_PAYLOAD: Dict[str, Any] = {
    "resumen": {
        "totalLibros": 3,
        "totalPaginas": 600,
        "promedioPaginasPorLibro": 200,
        "promedioAnioPublicacion": 1990,
        "rangoAnios": "1967 - 2019",
        "editorialesUnicas": 1,
    },
    "porGenero": [
        {"genero": "Ficción", "cantidad": 2, "porcentaje": 66.67},
        {"genero": "Ciencia", "cantidad": 1, "porcentaje": 33.33},
    ],
    "porDecada": [{"decada": "1960s", "cantidad": 1, "porcentaje": 33.33}],
    "porEditorial": [{"editorial": "Planeta", "cantidad": 3, "porcentaje": 100.0}],
    "topAutores": [{"autor": "Borges", "cantidad": 2, "porcentaje": 66.67}],
    "rankings": {
        "libroMasAntiguo": {"titulo": "Ficciones", "autor": "Borges", "anioPublicacion": 1944},
        "libroMasLargo": None,
    },
    "analisisTemporal": {"librosUltimos5Anios": 0, "decadaMasProductiva": "1960s"},
}


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.stats_payload: Dict[str, Any] = STATS_PAYLOAD
        self.xml_sections: List[Optional[Sequence[str]]] = []
        self.pdf_calls = 0
        self.closed = False

    def get_statistics(self) -> Dict[str, Any]:
        return self.stats_payload

    def download_xml(self, sections: Optional[Sequence[str]] = None) -> DownloadedReport:
        self.xml_sections.append(sections)
        return DownloadedReport(filename="catalogo-libros-2025-10-19.xml", content=b"<xml/>")

    def download_pdf(self) -> DownloadedReport:
        self.pdf_calls += 1
        return DownloadedReport(filename="catalogo-libros-2025-10-19.pdf", content=b"%PDF-1.4")

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_stats_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--base-url", "http://reports:9000/", "stats"])

    assert result.exit_code == 0
    assert "Resumen" in result.stdout
    assert "totalLibros: 3" in result.stdout
    assert "  - Ficción: 2 (66.67%)" in result.stdout
    assert "libroMasAntiguo: Ficciones (Borges, 1944)" in result.stdout
    assert "libroMasLargo: N/A" in result.stdout
    assert stub.config.base_url == "http://reports:9000"
    assert stub.closed is True


def test_stats_command_on_empty_catalog(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    stub.stats_payload = {"resumen": {"totalLibros": 0}}
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["stats"])

    assert result.exit_code == 0
    assert "No books in the catalog." in result.stdout
    assert "Por genero" not in result.stdout


def test_xml_command_saves_into_directory(monkeypatch, runner: CliRunner, tmp_path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["xml", "-o", str(tmp_path), "-s", "summary", "-s", "books"])

    assert result.exit_code == 0
    target = tmp_path / "catalogo-libros-2025-10-19.xml"
    assert target.read_bytes() == b"<xml/>"
    assert "Saved" in result.stdout
    assert stub.xml_sections == [["summary", "books"]]


def test_pdf_command_saves_to_given_file(monkeypatch, runner: CliRunner, tmp_path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)
    target = tmp_path / "informe.pdf"

    result = runner.invoke(app, ["pdf", "--output", str(target)])

    assert result.exit_code == 0
    assert target.read_bytes() == b"%PDF-1.4"
    assert stub.pdf_calls == 1


def _client_with(handler) -> ApiClient:
    client = ApiClient(CLIConfig(base_url="http://testserver"))
    client._client = httpx.Client(
        base_url="http://testserver", transport=httpx.MockTransport(handler)
    )
    return client


def test_client_reads_filename_and_sections() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            content=b"<catalogoLibros/>",
            headers={"Content-Disposition": 'attachment; filename="catalogo-libros-2025-01-02.xml"'},
        )

    client = _client_with(handler)
    report = client.download_xml(sections=["summary", "genre"])
    client.close()

    assert report.filename == "catalogo-libros-2025-01-02.xml"
    assert report.content == b"<catalogoLibros/>"
    assert seen[0].url.path == "/reports/download"
    assert seen[0].url.params.get_list("sections") == ["summary", "genre"]


def test_client_exits_when_catalog_is_empty() -> None:
    client = _client_with(lambda request: httpx.Response(404, json={"detail": "vacio"}))

    with pytest.raises(typer.Exit) as excinfo:
        client.download_pdf()

    assert excinfo.value.exit_code == 1


def test_client_reports_server_errors() -> None:
    client = _client_with(
        lambda request: httpx.Response(500, json={"detail": "Error al generar el reporte PDF"})
    )

    with pytest.raises(typer.Exit):
        client.get_statistics()


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://api.local/")
    monkeypatch.setenv("CLI_TIMEOUT", "not-a-number")

    config = load_config()

    assert config.base_url == "http://api.local"
    assert config.timeout == 60.0
    assert load_config(base_url="http://other", timeout=5).timeout == 5
