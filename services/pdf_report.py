"""Paginated PDF rendering of catalog statistics.

Layout is done by hand on a reportlab canvas with a running vertical cursor
measured from the top of the page. Two rules keep the output free of stray
pages:

* a page is only started right before something is written to it, and never
  while the current page is still empty;
* a table never starts with a lonely header row, and every page a table
  continues on gets its header row drawn again.
"""

from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from reportlab.lib.colors import Color, HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from models.records import BookRecord
from services.aggregator import (
    AggregatedStatistics,
    AuthorStats,
    DecadeStats,
    GenreStats,
    TOP_LIMIT,
)

PRIMARY = HexColor("#667eea")
SECONDARY = HexColor("#764ba2")
GRAY_900 = HexColor("#1f2937")
GRAY_700 = HexColor("#374151")
GRAY_600 = HexColor("#4b5563")
GRAY_100 = HexColor("#f3f4f6")
WHITE = HexColor("#ffffff")

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

SPANISH_MONTHS = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)

NOT_AVAILABLE = "N/A"


def format_thousands(value: int) -> str:
    """Integer with es-CO grouping, e.g. ``12345`` -> ``"12.345"``."""
    return f"{value:,}".replace(",", ".")


def format_long_date(moment: datetime) -> str:
    return f"{moment.day} de {SPANISH_MONTHS[moment.month - 1]} de {moment.year}"


def truncate(text: Optional[str], limit: int) -> str:
    if not text:
        return NOT_AVAILABLE
    return text[: limit - 3] + "..." if len(text) > limit else text


@dataclass(frozen=True)
class PageGeometry:
    """Page size and the vertical band content may occupy, in points from the top."""

    width: float = A4[0]
    height: float = A4[1]
    margin: float = 50.0
    content_bottom: float = 730.0

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin


@dataclass
class PageLayout:
    """What was written on one page; used to check pagination."""

    index: int
    blocks: int = 0
    table_headers: List[str] = field(default_factory=list)
    table_rows: Dict[str, int] = field(default_factory=dict)

    @property
    def is_blank(self) -> bool:
        return self.blocks == 0


class PDFReportBuilder:
    HEADER_ROW_HEIGHT = 22.0
    HEADER_ROW_GAP = 3.0
    ROW_HEIGHT = 22.0
    CELL_PADDING = 10.0
    TABLE_TRAILING_GAP = 5.0
    SECTION_BLOCK = 180.0
    SECTION_TITLE_HEIGHT = 30.0
    SECTION_GAP = 25.0
    SUMMARY_ROW_HEIGHT = 28.0

    def __init__(
        self,
        geometry: Optional[PageGeometry] = None,
        document_title: str = "Catalogo de Libros",
    ) -> None:
        self.geometry = geometry or PageGeometry()
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(
            self._buffer, pagesize=(self.geometry.width, self.geometry.height)
        )
        self._canvas.setTitle(document_title)
        self._canvas.setAuthor("Catalog Report Engine")
        self.current_y = 80.0
        self.pages: List[PageLayout] = [PageLayout(index=0)]
        self._built = False

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def _page(self) -> PageLayout:
        return self.pages[-1]

    # Public blocks

    def add_header(self, title: str, subtitle: str = "") -> "PDFReportBuilder":
        """Paint the gradient title band at the top of the current page."""
        band_height = 100 if subtitle else 75
        width = self.geometry.width
        for offset in range(band_height):
            ratio = offset / band_height
            self._fill_rect(0, offset, width, 1, _blend(PRIMARY, SECONDARY, ratio))

        text_width = self.geometry.content_width
        self._text(title, self.geometry.margin, 25, FONT_BOLD, 20, WHITE, "center", text_width)
        if subtitle:
            self._text(subtitle, self.geometry.margin, 60, FONT, 12, WHITE, "center", text_width)
            self.current_y = 115.0
        else:
            self.current_y = 90.0
        self._page.blocks += 1
        return self

    def add_summary_section(self, stats: AggregatedStatistics) -> "PDFReportBuilder":
        self._section_title("RESUMEN GENERAL")
        summary = stats.summary
        rows = (
            ("Total de Libros", str(summary.total_books)),
            ("Total de Paginas", format_thousands(summary.total_pages)),
            ("Promedio Paginas/Libro", str(round(summary.average_pages_per_book))),
            ("Año Promedio Publicacion", str(round(summary.average_publication_year))),
            ("Editoriales Unicas", str(summary.unique_publishers)),
        )
        left = self.geometry.margin
        for index, (label, value) in enumerate(rows):
            self._check_page_space(self.SUMMARY_ROW_HEIGHT + 2)
            if index % 2 == 0:
                self._fill_rect(
                    left, self.current_y - 5, self.geometry.content_width,
                    self.SUMMARY_ROW_HEIGHT, GRAY_100,
                )
            self._text(label, left + 20, self.current_y, FONT, 11, GRAY_700)
            self._text(value, left + 270, self.current_y, FONT_BOLD, 11, PRIMARY, "right", 200)
            self.current_y += self.SUMMARY_ROW_HEIGHT
            self._page.blocks += 1
        self.current_y += self.SECTION_GAP
        return self

    def add_genre_statistics(self, genres: Sequence[GenreStats]) -> "PDFReportBuilder":
        self._section_title("ESTADISTICAS POR GENERO")
        self._render_table(
            ["Genero", "Cantidad", "Porcentaje", "Total Paginas"],
            [
                [
                    entry.genre,
                    str(entry.count),
                    f"{entry.percentage:.1f}%",
                    format_thousands(entry.total_pages),
                ]
                for entry in genres
            ],
            [140, 80, 100, 120],
            name="genres",
        )
        self.current_y += self.SECTION_GAP
        return self

    def add_decade_statistics(self, decades: Sequence[DecadeStats]) -> "PDFReportBuilder":
        self._section_title("ESTADISTICAS POR DECADA")
        self._render_table(
            ["Decada", "Cantidad", "Porcentaje", "Rango Años"],
            [
                [entry.decade, str(entry.count), f"{entry.percentage:.1f}%", entry.year_range]
                for entry in decades
            ],
            [100, 80, 100, 160],
            name="decades",
        )
        self.current_y += self.SECTION_GAP
        return self

    def add_top_authors(self, authors: Sequence[AuthorStats]) -> "PDFReportBuilder":
        self._section_title("TOP 10 AUTORES")
        self._render_table(
            ["Autor", "Libros", "Porcentaje", "Total Paginas"],
            [
                [
                    entry.author,
                    str(entry.count),
                    f"{entry.percentage:.1f}%",
                    format_thousands(entry.total_pages),
                ]
                for entry in list(authors)[:TOP_LIMIT]
            ],
            [180, 60, 90, 110],
            name="authors",
        )
        self.current_y += self.SECTION_GAP
        return self

    def add_books_catalog(
        self, books: Sequence[BookRecord], max_books: Optional[int] = None
    ) -> "PDFReportBuilder":
        """Tabulate the catalog; ``max_books`` caps the rows and adds a footnote."""
        self._section_title("CATALOGO DE LIBROS")
        shown = list(books) if max_books is None else list(books)[:max_books]
        self._render_table(
            ["Titulo", "Autor", "Año", "Pag.", "Genero"],
            [
                [
                    truncate(book.title, 35),
                    truncate(book.author, 28),
                    str(book.publication_year),
                    str(book.page_count) if book.page_count else NOT_AVAILABLE,
                    truncate(book.genre, 15),
                ]
                for book in shown
            ],
            [140, 120, 50, 60, 70],
            name="catalog",
        )
        if len(shown) < len(books):
            self._check_page_space(20)
            self._text(
                f"* Mostrando {len(shown)} de {len(books)} libros",
                self.geometry.margin, self.current_y, FONT, 9, GRAY_600,
                "right", self.geometry.content_width,
            )
            self._page.blocks += 1
            self.current_y += 20
        return self

    def save(self) -> bytes:
        """Finish the document and return its bytes."""
        if self._built:
            raise RuntimeError("PDF report has already been built.")
        self._canvas.save()
        self._built = True
        return self._buffer.getvalue()

    async def build(self) -> bytes:
        """Same as ``save`` with the canvas drained in a worker thread."""
        return await asyncio.to_thread(self.save)

    # Layout helpers

    def _new_page(self) -> None:
        if self._page.is_blank:
            self.current_y = self.geometry.margin
            return
        self._canvas.showPage()
        self.pages.append(PageLayout(index=len(self.pages)))
        self.current_y = self.geometry.margin

    def _check_page_space(self, needed: float) -> None:
        if self.current_y + needed > self.geometry.content_bottom:
            self._new_page()

    def _section_title(self, title: str) -> None:
        self._check_page_space(self.SECTION_BLOCK)
        self._text(title, self.geometry.margin, self.current_y, FONT_BOLD, 16, PRIMARY)
        self._page.blocks += 1
        self.current_y += self.SECTION_TITLE_HEIGHT

    def _render_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        widths: Sequence[float],
        name: str,
    ) -> None:
        table_width = sum(widths)
        lead = self.HEADER_ROW_HEIGHT + self.HEADER_ROW_GAP + self.ROW_HEIGHT
        if self.current_y + lead > self.geometry.content_bottom:
            self._new_page()
        self._table_header(headers, widths, table_width, name)

        left = self.geometry.margin
        for index, row in enumerate(rows):
            if self.current_y + self.ROW_HEIGHT > self.geometry.content_bottom:
                self._new_page()
                self._table_header(headers, widths, table_width, name)

            if index % 2 == 0:
                self._fill_rect(left, self.current_y - 3, table_width, self.ROW_HEIGHT, GRAY_100)

            x = left
            for column, (cell, width) in enumerate(zip(row, widths)):
                self._text(
                    str(cell), x + self.CELL_PADDING / 2, self.current_y, FONT, 9, GRAY_900,
                    "left" if column == 0 else "center", width - self.CELL_PADDING,
                )
                x += width

            self.current_y += self.ROW_HEIGHT
            page = self._page
            page.blocks += 1
            page.table_rows[name] = page.table_rows.get(name, 0) + 1

        self.current_y += self.TABLE_TRAILING_GAP

    def _table_header(
        self, headers: Sequence[str], widths: Sequence[float], table_width: float, name: str
    ) -> None:
        left = self.geometry.margin
        self._fill_rect(left, self.current_y, table_width, self.HEADER_ROW_HEIGHT, PRIMARY, stroke=True)
        x = left
        for header, width in zip(headers, widths):
            self._text(header, x, self.current_y + 6, FONT_BOLD, 10, WHITE, "center", width)
            x += width
        page = self._page
        page.blocks += 1
        page.table_headers.append(name)
        self.current_y += self.HEADER_ROW_HEIGHT + self.HEADER_ROW_GAP

    # Drawing primitives, all taking top-down coordinates

    def _fill_rect(
        self, x: float, top: float, width: float, height: float, color: Color, stroke: bool = False
    ) -> None:
        c = self._canvas
        c.saveState()
        c.setFillColor(color)
        if stroke:
            c.setStrokeColor(color)
        c.rect(x, self.geometry.height - top - height, width, height, fill=1, stroke=1 if stroke else 0)
        c.restoreState()

    def _text(
        self,
        text: str,
        x: float,
        top: float,
        font: str,
        size: float,
        color: Color,
        align: str = "left",
        width: Optional[float] = None,
    ) -> None:
        if width is not None:
            text = _fit(text, width, font, size)
        baseline = self.geometry.height - top - size * 0.8
        c = self._canvas
        c.saveState()
        c.setFont(font, size)
        c.setFillColor(color)
        if align == "center" and width is not None:
            c.drawCentredString(x + width / 2, baseline, text)
        elif align == "right" and width is not None:
            c.drawRightString(x + width, baseline, text)
        else:
            c.drawString(x, baseline, text)
        c.restoreState()


def _blend(start: Color, end: Color, ratio: float) -> Color:
    return Color(
        start.red + (end.red - start.red) * ratio,
        start.green + (end.green - start.green) * ratio,
        start.blue + (end.blue - start.blue) * ratio,
    )


def _fit(text: str, max_width: float, font: str, size: float) -> str:
    """Shorten ``text`` with an ellipsis until it fits ``max_width``."""
    while stringWidth(text, font, size) > max_width and len(text) > 3:
        text = text[:-4] + "..."
    return text


def _lay_out(
    books: Sequence[BookRecord],
    stats: AggregatedStatistics,
    generated_at: datetime,
    max_books: Optional[int],
) -> PDFReportBuilder:
    return (
        PDFReportBuilder()
        .add_header(
            "Catalogo de Libros - Informe Completo",
            f"Fecha de generacion: {format_long_date(generated_at)}",
        )
        .add_summary_section(stats)
        .add_genre_statistics(stats.by_genre)
        .add_decade_statistics(stats.by_decade)
        .add_top_authors(stats.top_authors)
        .add_books_catalog(books, max_books=max_books)
    )


async def render_catalog_pdf(
    books: Sequence[BookRecord],
    stats: AggregatedStatistics,
    generated_at: datetime,
    max_books: Optional[int] = None,
) -> bytes:
    """Lay out the complete catalog report in a worker thread and return the PDF bytes."""
    builder = await asyncio.to_thread(_lay_out, books, stats, generated_at, max_books)
    return await builder.build()
