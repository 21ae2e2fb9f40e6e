from __future__ import annotations
from functools import lru_cache
from threading import Lock
from typing import Dict, Optional

from app.schemas import ProcessingResult
from settings import get_settings


class BatchResultTable:
    """In-memory table of processing results keyed by batch id.

    Items are deep-copied on the way in and out so callers never share state
    with the table.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._items: Dict[str, ProcessingResult] = {}
        self._lock = Lock()

    def put_item(self, item: ProcessingResult) -> None:
        with self._lock:
            self._items[item.batch_id] = item.model_copy(deep=True)

    def get_item(self, key: str) -> Optional[ProcessingResult]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            return item.model_copy(deep=True)

    def scan(self) -> list[ProcessingResult]:
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items.values()]


@lru_cache
def build_default_table(name: Optional[str] = None) -> BatchResultTable:
    settings = get_settings()
    return BatchResultTable(name=settings.table_name if name is None else name)
