"""Report orchestration: one catalog read, one aggregation, one renderer."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Optional

from app.schemas import StatisticsPayload
from datastore.catalog_store import CatalogStore, build_default_store
from services.aggregator import AggregatedStatistics, StatisticsAggregator
from services.json_stats import project_statistics
from services.pdf_report import render_catalog_pdf
from services.xml_report import ReportSection, XMLReportSerializer
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

FILENAME_PREFIX = "catalogo-libros"


class ReportError(Exception):
    """Base class for report failures the API layer maps to responses."""


class EmptyCatalogError(ReportError):
    """The catalog holds no books, so there is nothing to report."""

    def __init__(self) -> None:
        super().__init__("No hay libros en el catálogo para generar el reporte")


class ReportGenerationError(ReportError):
    """Rendering a document failed; carries the underlying cause message."""

    def __init__(self, report_format: str, cause: BaseException) -> None:
        reason = str(cause) or type(cause).__name__
        super().__init__(f"Error al generar el reporte {report_format.upper()}: {reason}")
        self.report_format = report_format
        self.reason = reason


class ReportService:
    """Coordinates the catalog store, the aggregator and the renderers.

    Every call reads a fresh snapshot of the catalog and builds its own
    statistics, so concurrent requests share nothing but the store.
    """

    def __init__(
        self,
        store: CatalogStore,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def statistics(self) -> tuple[AggregatedStatistics, StatisticsPayload]:
        books = self.store.list_all()
        stats = StatisticsAggregator(now=self._clock()).aggregate(books)
        logger.info(
            "Computed catalog statistics",
            extra={"report_format": "json", "total_records": len(books)},
        )
        return stats, project_statistics(stats)

    def xml_report(self, sections: ReportSection = ReportSection.ALL) -> str:
        """Render the XML catalog report; raises ``EmptyCatalogError`` when empty."""
        start = time.perf_counter()
        now = self._clock()
        books = self.store.list_all()
        if not books:
            raise EmptyCatalogError()

        stats = StatisticsAggregator(now=now).aggregate(books)
        try:
            document = XMLReportSerializer(now=now).to_xml(books, stats, sections)
        except Exception as exc:
            logger.exception(
                "XML report generation failed",
                extra={"report_format": "xml", "reason": str(exc)},
            )
            raise ReportGenerationError("xml", exc) from exc

        logger.info(
            "Generated XML report",
            extra={
                "report_format": "xml",
                "total_records": len(books),
                "sections": sections.names,
                "byte_count": len(document.encode("utf-8")),
                "elapsed_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return document

    async def pdf_report(self) -> bytes:
        """Render the PDF catalog report within the configured time budget."""
        start = time.perf_counter()
        now = self._clock()
        books = self.store.list_all()
        if not books:
            raise EmptyCatalogError()

        stats = await asyncio.to_thread(StatisticsAggregator(now=now).aggregate, books)
        try:
            document = await asyncio.wait_for(
                render_catalog_pdf(
                    books,
                    stats,
                    generated_at=now,
                    max_books=self.settings.pdf_max_catalog_rows,
                ),
                timeout=self.settings.pdf_build_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "PDF report generation timed out",
                extra={"report_format": "pdf", "reason": "timeout"},
            )
            raise ReportGenerationError(
                "pdf",
                TimeoutError(f"timed out after {self.settings.pdf_build_timeout}s"),
            ) from exc
        except Exception as exc:
            logger.exception(
                "PDF report generation failed",
                extra={"report_format": "pdf", "reason": str(exc)},
            )
            raise ReportGenerationError("pdf", exc) from exc

        logger.info(
            "Generated PDF report",
            extra={
                "report_format": "pdf",
                "total_records": len(books),
                "byte_count": len(document),
                "elapsed_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return document

    def report_filename(self, extension: str) -> str:
        return f"{FILENAME_PREFIX}-{self._clock().date().isoformat()}.{extension}"


@lru_cache
def build_default_report_service() -> ReportService:
    """Factory that wires the report service with the default catalog store."""
    return ReportService(store=build_default_store())
