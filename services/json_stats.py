"""Projection of aggregated statistics onto the JSON stats payload."""

from __future__ import annotations

from typing import Optional

from app.schemas import (
    AuthorPayload,
    BookSchema,
    DecadePayload,
    GenrePayload,
    PublisherPayload,
    RankingsPayload,
    StatisticsPayload,
    SummaryPayload,
    TemporalPayload,
)
from models.records import BookRecord
from services.aggregator import AggregatedStatistics, TOP_LIMIT

PERCENT_DIGITS = 2


def _book(record: Optional[BookRecord]) -> Optional[BookSchema]:
    return BookSchema.from_record(record) if record is not None else None


def _percent(value: float) -> float:
    return round(value, PERCENT_DIGITS)


def project_statistics(stats: AggregatedStatistics) -> StatisticsPayload:
    """Rename and round fields; publishers and authors are capped at ten."""
    summary = stats.summary
    temporal = stats.temporal_analysis
    rankings = stats.rankings

    return StatisticsPayload(
        summary=SummaryPayload(
            total_books=summary.total_books,
            total_pages=summary.total_pages,
            average_pages_per_book=round(summary.average_pages_per_book),
            average_publication_year=round(summary.average_publication_year),
            year_range=f"{summary.year_min} - {summary.year_max}",
            year_min=summary.year_min,
            year_max=summary.year_max,
            unique_publishers=summary.unique_publishers,
            generated_at=summary.generated_at,
        ),
        by_genre=[
            GenrePayload(
                genre=entry.genre,
                count=entry.count,
                percentage=_percent(entry.percentage),
                total_pages=entry.total_pages,
                average_pages=round(entry.average_pages, PERCENT_DIGITS),
                longest_book=_book(entry.longest_book),
            )
            for entry in stats.by_genre
        ],
        by_decade=[
            DecadePayload(
                decade=entry.decade,
                count=entry.count,
                percentage=_percent(entry.percentage),
                year_range=entry.year_range,
            )
            for entry in stats.by_decade
        ],
        by_publisher=[
            PublisherPayload(
                publisher=entry.publisher,
                count=entry.count,
                percentage=_percent(entry.percentage),
                total_pages=entry.total_pages,
            )
            for entry in stats.by_publisher[:TOP_LIMIT]
        ],
        top_authors=[
            AuthorPayload(
                author=entry.author,
                count=entry.count,
                percentage=_percent(entry.percentage),
                total_pages=entry.total_pages,
                average_year=round(entry.average_year, PERCENT_DIGITS),
            )
            for entry in stats.top_authors[:TOP_LIMIT]
        ],
        rankings=RankingsPayload(
            oldest_book=_book(rankings.oldest_book),
            newest_book=_book(rankings.newest_book),
            longest_book=_book(rankings.longest_book),
            shortest_book=_book(rankings.shortest_book),
        ),
        temporal_analysis=TemporalPayload(
            books_last_5_years=temporal.books_last_5_years,
            books_last_10_years=temporal.books_last_10_years,
            books_older_than_50_years=temporal.books_older_than_50_years,
            most_productive_decade=temporal.most_productive_decade,
        ),
    )
