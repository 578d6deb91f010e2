"""Tests for the JSON statistics projection."""

from __future__ import annotations

from datetime import datetime, timezone

from models.records import BookRecord
from services.aggregator import StatisticsAggregator
from services.json_stats import project_statistics

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _book(index: int) -> BookRecord:
    return BookRecord(
        id=f"book-{index}",
        title=f"Libro {index}",
        author=f"Autor {index}",
        isbn="9780000000000",
        genre="Historia",
        publication_year=1950 + index,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        publisher=f"Editorial {index}",
        page_count=100 + index,
    )


def test_publishers_and_authors_are_capped_at_ten() -> None:
    books = [_book(i) for i in range(30)]
    stats = StatisticsAggregator(now=NOW).aggregate(books)

    data = project_statistics(stats).model_dump(by_alias=True)

    assert len(data["porEditorial"]) == 10
    assert len(data["topAutores"]) == 10
    assert len(stats.by_publisher) == 30
    assert data["resumen"]["editorialesUnicas"] == 30
    assert [p["editorial"] for p in data["porEditorial"]] == [
        entry.publisher for entry in stats.by_publisher[:10]
    ]


def test_percentages_and_averages_are_rounded() -> None:
    books = [_book(0), _book(1), _book(2)]
    stats = StatisticsAggregator(now=NOW).aggregate(books)

    data = project_statistics(stats).model_dump(by_alias=True)

    assert data["porEditorial"][0]["porcentaje"] == 33.33
    assert data["topAutores"][0]["promedioAnio"] == 1950.0
    assert data["resumen"]["promedioPaginasPorLibro"] == 101
    assert data["resumen"]["promedioAnioPublicacion"] == 1951
