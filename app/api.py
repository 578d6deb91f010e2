"""HTTP route definitions for the service."""

from __future__ import annotations

import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.schemas import BookSchema, StatisticsResponse
from services.reports import (
    EmptyCatalogError,
    ReportGenerationError,
    ReportService,
    build_default_report_service,
)
from services.xml_report import ReportSection

router = APIRouter()

XML_MEDIA_TYPE = "application/xml"
PDF_MEDIA_TYPE = "application/pdf"


def get_report_service() -> ReportService:
    return build_default_report_service()


def _parse_sections(sections: Optional[List[str]]) -> ReportSection:
    try:
        return ReportSection.from_names(sections)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


def _generation_failed(exc: ReportGenerationError, service: ReportService) -> HTTPException:
    detail = f"Error al generar el reporte {exc.report_format.upper()}"
    if service.settings.debug:
        detail = str(exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )


async def _render_xml(service: ReportService, sections: Optional[List[str]]) -> str:
    selected = _parse_sections(sections)
    try:
        return await asyncio.to_thread(service.xml_report, selected)
    except EmptyCatalogError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except ReportGenerationError as exc:
        raise _generation_failed(exc, service) from exc


_SECTIONS_QUERY = Query(
    None,
    description="Report sections to include (summary, genre, decade, publisher, "
    "authors, rankings, temporal, books). Defaults to all.",
)


@router.get(
    "/reports/xml",
    response_class=Response,
    summary="Render the catalog report as XML for in-browser viewing.",
)
async def view_xml_report(
    sections: Optional[List[str]] = _SECTIONS_QUERY,
    service: ReportService = Depends(get_report_service),
) -> Response:
    document = await _render_xml(service, sections)
    return Response(content=document, media_type=XML_MEDIA_TYPE)


@router.get(
    "/reports/download",
    response_class=Response,
    summary="Download the catalog report as an XML file.",
)
async def download_xml_report(
    sections: Optional[List[str]] = _SECTIONS_QUERY,
    service: ReportService = Depends(get_report_service),
) -> Response:
    document = await _render_xml(service, sections)
    filename = service.report_filename("xml")
    return Response(
        content=document,
        media_type=XML_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/reports/pdf",
    response_class=Response,
    summary="Download the catalog report as a paginated PDF.",
)
async def download_pdf_report(
    service: ReportService = Depends(get_report_service),
) -> Response:
    try:
        document = await service.pdf_report()
    except EmptyCatalogError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except ReportGenerationError as exc:
        raise _generation_failed(exc, service) from exc

    filename = service.report_filename("pdf")
    return Response(
        content=document,
        media_type=PDF_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache",
        },
    )


@router.get(
    "/reports/stats",
    response_model=StatisticsResponse,
    response_model_exclude_unset=True,
    summary="Fetch catalog statistics as JSON.",
)
async def get_statistics(
    service: ReportService = Depends(get_report_service),
) -> StatisticsResponse:
    stats, payload = await asyncio.to_thread(service.statistics)
    if stats.is_empty:
        return StatisticsResponse(
            success=True, message="No hay libros en el catálogo", data=payload
        )
    return StatisticsResponse(success=True, data=payload)


@router.get(
    "/books",
    response_model=List[BookSchema],
    summary="List the catalog, most recently added first.",
)
async def list_books(
    service: ReportService = Depends(get_report_service),
) -> List[BookSchema]:
    return [BookSchema.from_record(book) for book in service.store.list_all()]


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
