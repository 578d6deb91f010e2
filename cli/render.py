from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _echo_ranked(rows: List[Dict[str, Any]], label_key: str, count_key: str = "cantidad") -> None:
    for row in rows:
        typer.echo(
            f"  - {row.get(label_key)}: {row.get(count_key)} ({row.get('porcentaje')}%)"
        )


def _book_line(book: Dict[str, Any] | None) -> str:
    if not book:
        return "N/A"
    return f"{book.get('titulo')} ({book.get('autor')}, {book.get('anioPublicacion')})"


def render_statistics(data: Dict[str, Any]) -> None:
    summary = data.get("resumen") or {}
    echo_heading("Resumen")
    echo_key_values(
        [
            ("totalLibros", summary.get("totalLibros")),
            ("totalPaginas", summary.get("totalPaginas")),
            ("promedioPaginasPorLibro", summary.get("promedioPaginasPorLibro")),
            ("promedioAnioPublicacion", summary.get("promedioAnioPublicacion")),
            ("rangoAnios", summary.get("rangoAnios")),
            ("editorialesUnicas", summary.get("editorialesUnicas")),
        ]
    )

    if not summary.get("totalLibros"):
        typer.echo()
        typer.echo("No books in the catalog.")
        return

    for title, key, label_key in (
        ("Por genero", "porGenero", "genero"),
        ("Por decada", "porDecada", "decada"),
        ("Por editorial", "porEditorial", "editorial"),
        ("Top autores", "topAutores", "autor"),
    ):
        typer.echo()
        echo_heading(title)
        _echo_ranked(data.get(key) or [], label_key)

    rankings = data.get("rankings") or {}
    typer.echo()
    echo_heading("Rankings")
    echo_key_values(
        [
            ("libroMasAntiguo", _book_line(rankings.get("libroMasAntiguo"))),
            ("libroMasReciente", _book_line(rankings.get("libroMasReciente"))),
            ("libroMasLargo", _book_line(rankings.get("libroMasLargo"))),
            ("libroMasCorto", _book_line(rankings.get("libroMasCorto"))),
        ]
    )

    temporal = data.get("analisisTemporal") or {}
    typer.echo()
    echo_heading("Analisis temporal")
    echo_key_values(
        [
            ("librosUltimos5Anios", temporal.get("librosUltimos5Anios")),
            ("librosUltimos10Anios", temporal.get("librosUltimos10Anios")),
            ("librosMas50Anios", temporal.get("librosMas50Anios")),
            ("decadaMasProductiva", temporal.get("decadaMasProductiva")),
        ]
    )
