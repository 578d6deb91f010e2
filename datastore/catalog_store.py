from __future__ import annotations
import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Optional

from pydantic import ValidationError

from app.schemas import BookSchema
from models.records import BookRecord
from settings import get_settings

logger = logging.getLogger(__name__)


class CatalogStore:
    """Book records kept in memory and optionally mirrored to a JSON file.

    The file holds a list of books in the same camelCase shape the HTTP API
    returns, so an exported listing can be dropped in as seed data.
    """

    def __init__(self, name: str, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._items: Dict[str, BookRecord] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_item(self, item: BookRecord) -> None:
        with self._lock:
            self._items[item.id] = item
            self._persist()

    def put_items(self, items: Iterable[BookRecord]) -> None:
        with self._lock:
            for item in items:
                self._items[item.id] = item
            self._persist()

    def get_item(self, key: str) -> Optional[BookRecord]:
        with self._lock:
            return self._items.get(key)

    def list_all(self) -> list[BookRecord]:
        """Snapshot of every book, most recently added first."""

        with self._lock:
            items = list(self._items.values())
        return sorted(items, key=lambda item: item.created_at, reverse=True)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = [
            BookSchema.from_record(item).model_dump(mode="json", by_alias=True)
            for item in self._items.values()
        ]
        self.persistence_path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
        )

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text(encoding="utf-8") or "[]"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = []

        if not isinstance(data, list):
            data = []

        for payload in data:
            try:
                record = BookSchema.model_validate(payload).to_record()
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed catalog entry",
                    extra={"reason": f"{exc.error_count()} validation error(s)"},
                )
                continue
            self._items[record.id] = record


@lru_cache
def build_default_store(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> CatalogStore:
    settings = get_settings()
    store_name = settings.store_name if name is None else name
    store_path = settings.data_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return CatalogStore(name=store_name, persistence_path=persistence)
