"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from models.records import BookRecord, Genre


class _SpanishModel(BaseModel):
    """Accept both field names and the camelCase wire aliases."""

    model_config = ConfigDict(populate_by_name=True)


class BookSchema(_SpanishModel):
    """Catalog entry as stored on disk and exposed over HTTP."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    title: str = Field(..., alias="titulo")
    author: str = Field(..., alias="autor")
    isbn: str
    genre: Genre = Field(..., alias="genero")
    publication_year: int = Field(..., alias="anioPublicacion")
    publisher: Optional[str] = Field(default=None, alias="editorial")
    page_count: Optional[int] = Field(default=None, ge=0, alias="numeroPaginas")
    description: Optional[str] = Field(default=None, alias="descripcion")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )

    def to_record(self) -> BookRecord:
        return BookRecord(
            id=self.id,
            title=self.title,
            author=self.author,
            isbn=self.isbn,
            genre=self.genre.value,
            publication_year=self.publication_year,
            created_at=self.created_at,
            publisher=self.publisher,
            page_count=self.page_count,
            description=self.description,
        )

    @classmethod
    def from_record(cls, record: BookRecord) -> "BookSchema":
        return cls(
            id=record.id,
            title=record.title,
            author=record.author,
            isbn=record.isbn,
            genre=Genre(record.genre),
            publication_year=record.publication_year,
            publisher=record.publisher,
            page_count=record.page_count,
            description=record.description,
            created_at=record.created_at,
        )


class SummaryPayload(_SpanishModel):
    total_books: int = Field(..., ge=0, alias="totalLibros")
    total_pages: int = Field(..., ge=0, alias="totalPaginas")
    average_pages_per_book: int = Field(..., alias="promedioPaginasPorLibro")
    average_publication_year: int = Field(..., alias="promedioAnioPublicacion")
    year_range: str = Field(..., alias="rangoAnios")
    year_min: int = Field(..., alias="anioMin")
    year_max: int = Field(..., alias="anioMax")
    unique_publishers: int = Field(..., ge=0, alias="editorialesUnicas")
    generated_at: datetime = Field(..., alias="fechaGeneracion")


class GenrePayload(_SpanishModel):
    genre: str = Field(..., alias="genero")
    count: int = Field(..., alias="cantidad")
    percentage: float = Field(..., alias="porcentaje")
    total_pages: int = Field(..., alias="totalPaginas")
    average_pages: float = Field(..., alias="promedioPaginas")
    longest_book: Optional[BookSchema] = Field(default=None, alias="libroMasLargo")


class DecadePayload(_SpanishModel):
    decade: str = Field(..., alias="decada")
    count: int = Field(..., alias="cantidad")
    percentage: float = Field(..., alias="porcentaje")
    year_range: str = Field(..., alias="rangoAnios")


class PublisherPayload(_SpanishModel):
    publisher: str = Field(..., alias="editorial")
    count: int = Field(..., alias="cantidad")
    percentage: float = Field(..., alias="porcentaje")
    total_pages: int = Field(..., alias="totalPaginas")


class AuthorPayload(_SpanishModel):
    author: str = Field(..., alias="autor")
    count: int = Field(..., alias="cantidad")
    percentage: float = Field(..., alias="porcentaje")
    total_pages: int = Field(..., alias="totalPaginas")
    average_year: float = Field(..., alias="promedioAnio")


class RankingsPayload(_SpanishModel):
    oldest_book: Optional[BookSchema] = Field(default=None, alias="libroMasAntiguo")
    newest_book: Optional[BookSchema] = Field(default=None, alias="libroMasReciente")
    longest_book: Optional[BookSchema] = Field(default=None, alias="libroMasLargo")
    shortest_book: Optional[BookSchema] = Field(default=None, alias="libroMasCorto")


class TemporalPayload(_SpanishModel):
    books_last_5_years: int = Field(..., alias="librosUltimos5Anios")
    books_last_10_years: int = Field(..., alias="librosUltimos10Anios")
    books_older_than_50_years: int = Field(..., alias="librosMas50Anios")
    most_productive_decade: str = Field(..., alias="decadaMasProductiva")


class StatisticsPayload(_SpanishModel):
    """Statistics as served by ``GET /reports/stats``."""

    summary: SummaryPayload = Field(..., alias="resumen")
    by_genre: List[GenrePayload] = Field(default_factory=list, alias="porGenero")
    by_decade: List[DecadePayload] = Field(default_factory=list, alias="porDecada")
    by_publisher: List[PublisherPayload] = Field(default_factory=list, alias="porEditorial")
    top_authors: List[AuthorPayload] = Field(default_factory=list, alias="topAutores")
    rankings: RankingsPayload = Field(default_factory=RankingsPayload)
    temporal_analysis: TemporalPayload = Field(..., alias="analisisTemporal")


class StatisticsResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: StatisticsPayload
