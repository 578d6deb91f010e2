"""Aggregation logic for catalog statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from models.records import BookRecord

UNKNOWN_PUBLISHER = "Sin editorial"
NO_DECADE = "N/A"
TOP_LIMIT = 10


def decade_of(year: int) -> int:
    return (year // 10) * 10


def decade_label(year: int) -> str:
    """Label of the decade a year falls in, e.g. 1995 -> ``"1990s"``."""
    return f"{decade_of(year)}s"


@dataclass(frozen=True)
class Summary:
    total_books: int = 0
    total_pages: int = 0
    average_pages_per_book: float = 0.0
    average_publication_year: float = 0.0
    unique_publishers: int = 0
    year_min: int = 0
    year_max: int = 0
    generated_at: Optional[datetime] = None


@dataclass(frozen=True)
class GenreStats:
    genre: str
    count: int
    percentage: float
    total_pages: int
    average_pages: float
    longest_book: Optional[BookRecord] = None


@dataclass(frozen=True)
class DecadeStats:
    decade: str
    count: int
    percentage: float
    year_range: str


@dataclass(frozen=True)
class PublisherStats:
    publisher: str
    count: int
    percentage: float
    total_pages: int


@dataclass(frozen=True)
class AuthorStats:
    author: str
    count: int
    percentage: float
    total_pages: int
    average_year: float


@dataclass(frozen=True)
class Rankings:
    oldest_book: Optional[BookRecord] = None
    newest_book: Optional[BookRecord] = None
    longest_book: Optional[BookRecord] = None
    shortest_book: Optional[BookRecord] = None


@dataclass(frozen=True)
class TemporalAnalysis:
    books_last_5_years: int = 0
    books_last_10_years: int = 0
    books_older_than_50_years: int = 0
    most_productive_decade: str = NO_DECADE


@dataclass(frozen=True)
class AggregatedStatistics:
    """Every summary the report renderers need, computed in one sweep."""

    summary: Summary = field(default_factory=Summary)
    by_genre: Tuple[GenreStats, ...] = ()
    by_decade: Tuple[DecadeStats, ...] = ()
    by_publisher: Tuple[PublisherStats, ...] = ()
    top_authors: Tuple[AuthorStats, ...] = ()
    rankings: Rankings = field(default_factory=Rankings)
    temporal_analysis: TemporalAnalysis = field(default_factory=TemporalAnalysis)

    @property
    def top_publishers(self) -> Tuple[PublisherStats, ...]:
        return self.by_publisher[:TOP_LIMIT]

    @property
    def is_empty(self) -> bool:
        return self.summary.total_books == 0


@dataclass
class _GenreBucket:
    count: int = 0
    total_pages: int = 0
    longest: Optional[BookRecord] = None


@dataclass
class _DecadeBucket:
    count: int = 0
    year_min: int = 0
    year_max: int = 0


@dataclass
class _PublisherBucket:
    count: int = 0
    total_pages: int = 0


@dataclass
class _AuthorBucket:
    count: int = 0
    total_pages: int = 0
    year_sum: int = 0


def _is_longer(candidate: BookRecord, current: Optional[BookRecord]) -> bool:
    return current is None or candidate.pages > current.pages


def _is_shorter(candidate: BookRecord, current: Optional[BookRecord]) -> bool:
    return current is None or candidate.pages < current.pages


class StatisticsAggregator:
    """Pure aggregation component that can be unit tested in isolation.

    ``now`` pins the reference clock used for the generation timestamp and
    the temporal counters; it defaults to the current UTC time on every call.
    """

    def __init__(self, now: Optional[datetime] = None) -> None:
        self._now = now

    def aggregate(self, books: Iterable[BookRecord]) -> AggregatedStatistics:
        now = self._now or datetime.now(timezone.utc)
        current_year = now.year

        genres: Dict[str, _GenreBucket] = {}
        decades: Dict[int, _DecadeBucket] = {}
        publishers: Dict[str, _PublisherBucket] = {}
        authors: Dict[str, _AuthorBucket] = {}
        named_publishers: set[str] = set()

        total = 0
        total_pages = 0
        year_sum = 0
        year_min: Optional[int] = None
        year_max: Optional[int] = None
        oldest: Optional[BookRecord] = None
        newest: Optional[BookRecord] = None
        longest: Optional[BookRecord] = None
        shortest: Optional[BookRecord] = None
        last_5 = last_10 = older_than_50 = 0

        for book in books:
            total += 1
            pages = book.pages
            year = book.publication_year
            total_pages += pages
            year_sum += year

            if year_min is None or year < year_min:
                year_min = year
            if year_max is None or year > year_max:
                year_max = year
            if oldest is None or year < oldest.publication_year:
                oldest = book
            if newest is None or year > newest.publication_year:
                newest = book
            if pages > 0:
                if _is_longer(book, longest):
                    longest = book
                if _is_shorter(book, shortest):
                    shortest = book

            genre = genres.setdefault(book.genre, _GenreBucket())
            genre.count += 1
            genre.total_pages += pages
            if pages > 0 and _is_longer(book, genre.longest):
                genre.longest = book

            decade_key = decade_of(year)
            decade = decades.get(decade_key)
            if decade is None:
                decade = decades[decade_key] = _DecadeBucket(year_min=year, year_max=year)
            decade.count += 1
            decade.year_min = min(decade.year_min, year)
            decade.year_max = max(decade.year_max, year)

            if book.publisher:
                named_publishers.add(book.publisher)
            publisher = publishers.setdefault(
                book.publisher or UNKNOWN_PUBLISHER, _PublisherBucket()
            )
            publisher.count += 1
            publisher.total_pages += pages

            author = authors.setdefault(book.author, _AuthorBucket())
            author.count += 1
            author.total_pages += pages
            author.year_sum += year

            if year >= current_year - 5:
                last_5 += 1
            if year >= current_year - 10:
                last_10 += 1
            if current_year - year > 50:
                older_than_50 += 1

        if total == 0:
            return AggregatedStatistics(summary=Summary(generated_at=now))

        def percentage(count: int) -> float:
            return count / total * 100

        by_genre = sorted(
            (
                GenreStats(
                    genre=name,
                    count=bucket.count,
                    percentage=percentage(bucket.count),
                    total_pages=bucket.total_pages,
                    average_pages=bucket.total_pages / bucket.count,
                    longest_book=bucket.longest,
                )
                for name, bucket in genres.items()
            ),
            key=lambda entry: entry.count,
            reverse=True,
        )
        by_decade = [
            DecadeStats(
                decade=decade_label(key),
                count=bucket.count,
                percentage=percentage(bucket.count),
                year_range=f"{bucket.year_min}-{bucket.year_max}",
            )
            for key, bucket in sorted(decades.items())
        ]
        by_publisher = sorted(
            (
                PublisherStats(
                    publisher=name,
                    count=bucket.count,
                    percentage=percentage(bucket.count),
                    total_pages=bucket.total_pages,
                )
                for name, bucket in publishers.items()
            ),
            key=lambda entry: entry.count,
            reverse=True,
        )
        by_author = sorted(
            (
                AuthorStats(
                    author=name,
                    count=bucket.count,
                    percentage=percentage(bucket.count),
                    total_pages=bucket.total_pages,
                    average_year=bucket.year_sum / bucket.count,
                )
                for name, bucket in authors.items()
            ),
            key=lambda entry: entry.count,
            reverse=True,
        )

        return AggregatedStatistics(
            summary=Summary(
                total_books=total,
                total_pages=total_pages,
                average_pages_per_book=total_pages / total,
                average_publication_year=year_sum / total,
                unique_publishers=len(named_publishers),
                year_min=year_min or 0,
                year_max=year_max or 0,
                generated_at=now,
            ),
            by_genre=tuple(by_genre),
            by_decade=tuple(by_decade),
            by_publisher=tuple(by_publisher),
            top_authors=tuple(by_author[:TOP_LIMIT]),
            rankings=Rankings(
                oldest_book=oldest,
                newest_book=newest,
                longest_book=longest,
                shortest_book=shortest,
            ),
            temporal_analysis=TemporalAnalysis(
                books_last_5_years=last_5,
                books_last_10_years=last_10,
                books_older_than_50_years=older_than_50,
                most_productive_decade=_most_productive(by_decade),
            ),
        )


def _most_productive(decades: List[DecadeStats]) -> str:
    best: Optional[DecadeStats] = None
    for entry in decades:
        if best is None or entry.count > best.count:
            best = entry
    return best.decade if best is not None else NO_DECADE
