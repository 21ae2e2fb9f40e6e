from __future__ import annotations
import io
from contextlib import contextmanager
from functools import lru_cache
from threading import Lock
from typing import Dict, Iterator, List, Optional, TextIO

from settings import get_settings


class UploadStore:
    """In-memory object store for uploaded batch files."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._objects: Dict[str, bytes] = {}
        self._lock = Lock()

    def put_object(self, key: str, data: bytes) -> None:
        with self._lock:
            self._objects[key] = data

    def get_object(self, key: str) -> bytes:
        with self._lock:
            data = self._objects.get(key)
        if data is None:
            raise KeyError(f"Object with key {key!r} not found in store {self.name!r}.")
        return data

    @contextmanager
    def open_text_object(
        self, key: str, encoding: str = "utf-8-sig", newline: Optional[str] = ""
    ) -> Iterator[TextIO]:
        """Yield a text handle over the stored object."""
        buffer = io.TextIOWrapper(
            io.BytesIO(self.get_object(key)), encoding=encoding, newline=newline
        )
        try:
            yield buffer
        finally:
            buffer.close()

    def list_objects(self) -> List[str]:
        with self._lock:
            return sorted(self._objects)


@lru_cache
def build_default_store(name: Optional[str] = None) -> UploadStore:
    settings = get_settings()
    return UploadStore(name=settings.store_name if name is None else name)
