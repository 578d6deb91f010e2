"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Genre(str, Enum):
    """Closed set of genres a catalog entry can belong to."""

    fiction = "Ficción"
    non_fiction = "No Ficción"
    science = "Ciencia"
    history = "Historia"
    technology = "Tecnología"
    art = "Arte"
    biography = "Biografía"
    other = "Otro"


@dataclass(frozen=True, slots=True)
class BookRecord:
    """A single catalog entry as handed over by the catalog store."""

    id: str
    title: str
    author: str
    isbn: str
    genre: str
    publication_year: int
    created_at: datetime
    publisher: Optional[str] = None
    page_count: Optional[int] = None
    description: Optional[str] = None

    @property
    def pages(self) -> int:
        """Page count with missing values counted as zero."""
        return self.page_count or 0
