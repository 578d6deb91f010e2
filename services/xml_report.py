"""XML rendering of catalog statistics and the raw catalog."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from enum import Flag
from typing import Iterable, Optional, Sequence

from models.records import BookRecord
from services.aggregator import AggregatedStatistics

NOT_AVAILABLE = "N/A"
UNKNOWN_BOOK_PUBLISHER = "Desconocida"
NO_DESCRIPTION = "Sin descripción"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


class ReportSection(Flag):
    """Sections of the XML report, in document order."""

    SUMMARY = 1
    GENRE = 2
    DECADE = 4
    PUBLISHER = 8
    AUTHORS = 16
    RANKINGS = 32
    TEMPORAL = 64
    BOOKS = 128
    ALL = SUMMARY | GENRE | DECADE | PUBLISHER | AUTHORS | RANKINGS | TEMPORAL | BOOKS

    @classmethod
    def from_names(cls, names: Optional[Iterable[str]]) -> "ReportSection":
        """Combine section names into a flag set; no names selects every section."""
        if not names:
            return cls.ALL
        selected = cls(0)
        unknown: list[str] = []
        for raw in names:
            for name in raw.split(","):
                candidate = name.strip().upper()
                if not candidate:
                    continue
                member = cls.__members__.get(candidate)
                if member is None:
                    unknown.append(name.strip())
                    continue
                selected |= member
        if unknown:
            valid = ", ".join(member.lower() for member in _ORDER_NAMES)
            raise ValueError(
                f"Unknown report section(s): {', '.join(unknown)}. Valid sections: {valid}."
            )
        return selected or cls.ALL

    @property
    def names(self) -> list[str]:
        return [name.lower() for name in _ORDER_NAMES if ReportSection[name] in self]


_ORDER_NAMES = (
    "SUMMARY",
    "GENRE",
    "DECADE",
    "PUBLISHER",
    "AUTHORS",
    "RANKINGS",
    "TEMPORAL",
    "BOOKS",
)


def categorize_by_pages(pages: Optional[int]) -> str:
    if not pages:
        return "Sin clasificar"
    if pages < 100:
        return "Folleto"
    if pages < 200:
        return "Libro corto"
    if pages < 400:
        return "Libro medio"
    if pages < 600:
        return "Libro largo"
    return "Libro extenso"


def clock_time(moment: datetime) -> str:
    """12-hour time as written in Colombian Spanish, e.g. ``2:05:09 p. m.``."""
    hour = moment.hour % 12 or 12
    suffix = "a. m." if moment.hour < 12 else "p. m."
    return f"{hour}:{moment:%M:%S} {suffix}"


def _fixed(value: float, digits: int) -> str:
    return f"{value:.{digits}f}"


def _child(parent: ET.Element, tag: str, value: object) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = str(value)
    return element


class XMLReportSerializer:
    """Builds the ``catalogoLibros`` document from pre-computed statistics.

    Statistics are consumed as-is; nothing is recomputed here apart from the
    per-book derived fields (age and page-count category).
    """

    def __init__(self, now: Optional[datetime] = None) -> None:
        self._now = now

    def to_xml(
        self,
        books: Sequence[BookRecord],
        stats: AggregatedStatistics,
        sections: ReportSection = ReportSection.ALL,
    ) -> str:
        root = self.build_tree(books, stats, sections)
        ET.indent(root, space="  ")
        body = ET.tostring(root, encoding="unicode")
        return f"{XML_DECLARATION}\n{body}\n"

    def build_tree(
        self,
        books: Sequence[BookRecord],
        stats: AggregatedStatistics,
        sections: ReportSection = ReportSection.ALL,
    ) -> ET.Element:
        generated_at = stats.summary.generated_at or self._now or datetime.now(timezone.utc)
        root = ET.Element(
            "catalogoLibros",
            {
                "version": "1.0",
                "generado": generated_at.isoformat(),
                "totalRegistros": str(len(books)),
            },
        )

        if ReportSection.SUMMARY in sections:
            self._summary(root, stats, generated_at)
        if ReportSection.GENRE in sections:
            self._genres(root, stats)
        if ReportSection.DECADE in sections:
            self._decades(root, stats)
        if ReportSection.PUBLISHER in sections:
            self._publishers(root, stats)
        if ReportSection.AUTHORS in sections:
            self._authors(root, stats)
        if ReportSection.RANKINGS in sections:
            self._rankings(root, stats)
        if ReportSection.TEMPORAL in sections:
            self._temporal(root, stats)
        if ReportSection.BOOKS in sections:
            self._books(root, books, generated_at.year)
        return root

    @staticmethod
    def _summary(root: ET.Element, stats: AggregatedStatistics, generated_at: datetime) -> None:
        summary = stats.summary
        node = ET.SubElement(root, "resumen")
        _child(node, "totalLibros", summary.total_books)
        _child(node, "totalPaginas", summary.total_pages)
        _child(node, "promedioPaginasPorLibro", _fixed(summary.average_pages_per_book, 0))
        _child(node, "fechaGeneracion", generated_at.date().isoformat())
        _child(node, "horaGeneracion", clock_time(generated_at))
        _child(node, "promedioAnioPublicacion", _fixed(summary.average_publication_year, 0))
        _child(node, "rangoAnios", f"{summary.year_min} - {summary.year_max}")
        _child(node, "editorialesUnicas", summary.unique_publishers)

    @staticmethod
    def _genres(root: ET.Element, stats: AggregatedStatistics) -> None:
        node = ET.SubElement(root, "estadisticasPorGenero")
        _child(node, "total", len(stats.by_genre))
        for entry in stats.by_genre:
            genre = ET.SubElement(node, "genero", {"nombre": entry.genre})
            _child(genre, "cantidad", entry.count)
            _child(genre, "porcentaje", _fixed(entry.percentage, 2))
            _child(genre, "promedioPaginas", _fixed(entry.average_pages, 0))
            _child(genre, "totalPaginas", entry.total_pages)
            if entry.longest_book is None:
                _child(genre, "libroMasLargo", NOT_AVAILABLE)
            else:
                longest = ET.SubElement(genre, "libroMasLargo")
                _child(longest, "titulo", entry.longest_book.title)
                _child(longest, "paginas", entry.longest_book.pages)

    @staticmethod
    def _decades(root: ET.Element, stats: AggregatedStatistics) -> None:
        node = ET.SubElement(root, "estadisticasPorDecada")
        _child(node, "total", len(stats.by_decade))
        for entry in stats.by_decade:
            decade = ET.SubElement(node, "decada", {"periodo": entry.decade})
            _child(decade, "cantidad", entry.count)
            _child(decade, "porcentaje", _fixed(entry.percentage, 2))
            _child(decade, "rangoAnios", entry.year_range)

    @staticmethod
    def _publishers(root: ET.Element, stats: AggregatedStatistics) -> None:
        node = ET.SubElement(root, "estadisticasPorEditorial")
        _child(node, "total", len(stats.by_publisher))
        for entry in stats.top_publishers:
            publisher = ET.SubElement(node, "editorial", {"nombre": entry.publisher})
            _child(publisher, "cantidad", entry.count)
            _child(publisher, "porcentaje", _fixed(entry.percentage, 2))
            _child(publisher, "totalPaginas", entry.total_pages)

    @staticmethod
    def _authors(root: ET.Element, stats: AggregatedStatistics) -> None:
        node = ET.SubElement(root, "topAutores")
        for entry in stats.top_authors:
            author = ET.SubElement(node, "autor", {"nombre": entry.author})
            _child(author, "cantidadLibros", entry.count)
            _child(author, "porcentaje", _fixed(entry.percentage, 2))
            _child(author, "totalPaginas", entry.total_pages)
            _child(author, "promedioAnioPublicacion", _fixed(entry.average_year, 0))

    @staticmethod
    def _rankings(root: ET.Element, stats: AggregatedStatistics) -> None:
        rankings = stats.rankings
        node = ET.SubElement(root, "rankings")
        for tag, book, by_pages in (
            ("libroMasAntiguo", rankings.oldest_book, False),
            ("libroMasReciente", rankings.newest_book, False),
            ("libroMasLargo", rankings.longest_book, True),
            ("libroMasCorto", rankings.shortest_book, True),
        ):
            if book is None:
                _child(node, tag, NOT_AVAILABLE)
                continue
            ranking = ET.SubElement(node, tag)
            _child(ranking, "titulo", book.title)
            _child(ranking, "autor", book.author)
            if by_pages:
                _child(ranking, "paginas", book.pages)
            else:
                _child(ranking, "anio", book.publication_year)

    @staticmethod
    def _temporal(root: ET.Element, stats: AggregatedStatistics) -> None:
        temporal = stats.temporal_analysis
        node = ET.SubElement(root, "analisisTemporal")
        _child(node, "librosUltimos5Anios", temporal.books_last_5_years)
        _child(node, "librosUltimos10Anios", temporal.books_last_10_years)
        _child(node, "librosMas50Anios", temporal.books_older_than_50_years)
        _child(node, "decadaMasProductiva", temporal.most_productive_decade)

    @staticmethod
    def _books(root: ET.Element, books: Sequence[BookRecord], current_year: int) -> None:
        node = ET.SubElement(root, "libros")
        for book in books:
            added_on = book.created_at.date().isoformat() if book.created_at else NOT_AVAILABLE
            entry = ET.SubElement(node, "libro", {"id": str(book.id), "agregadoEl": added_on})
            _child(entry, "titulo", book.title)
            _child(entry, "autor", book.author)
            _child(entry, "isbn", book.isbn)
            _child(entry, "genero", book.genre)
            _child(entry, "anioPublicacion", book.publication_year)
            _child(entry, "editorial", book.publisher or UNKNOWN_BOOK_PUBLISHER)
            _child(entry, "numeroPaginas", book.pages)
            _child(entry, "descripcion", book.description or NO_DESCRIPTION)
            _child(entry, "antiguedad", current_year - book.publication_year)
            _child(entry, "categoria", categorize_by_pages(book.page_count))
