from __future__ import annotations

import io
from typing import Any

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from .base import MergeError, SaveOptions

MAX_ZLIB_LEVEL = 9


def compression_level(objects_per_stream: int) -> int:
    """Map the objects-per-stream hint onto a zlib level (50 -> 9, 20 -> 4, 10 -> 2)."""

    return max(1, min(MAX_ZLIB_LEVEL, objects_per_stream // 5))


class PypdfDocument:
    def __init__(self, reader: PdfReader | None = None) -> None:
        self._reader = reader
        self._writer = PdfWriter() if reader is None else None

    def page_indices(self) -> list[int]:
        if self._reader is not None:
            return list(range(len(self._reader.pages)))
        assert self._writer is not None
        return list(range(len(self._writer.pages)))

    def copy_pages(self, source: "PypdfDocument", indices: list[int]) -> list[Any]:
        if source._reader is None:
            raise TypeError("copy_pages requires a loaded source document")
        return [source._reader.pages[index] for index in indices]

    def add_page(self, page: Any) -> None:
        if self._writer is None:
            raise TypeError("add_page requires a document created with create()")
        self._writer.add_page(page)

    def save(self, options: SaveOptions) -> bytes:
        if self._writer is None:
            raise TypeError("save requires a document created with create()")
        if options.use_object_streams:
            level = compression_level(options.objects_per_stream)
            for page in self._writer.pages:
                page.compress_content_streams(level=level)
            self._writer.compress_identical_objects()
        buffer = io.BytesIO()
        self._writer.write(buffer)
        return buffer.getvalue()


class PypdfBackend:
    def create(self) -> PypdfDocument:
        return PypdfDocument()

    def load(self, data: bytes) -> PypdfDocument:
        try:
            return PypdfDocument(PdfReader(io.BytesIO(data)))
        except PyPdfError as exc:
            raise MergeError("INVALID_PDF", f"Cannot read PDF: {exc}") from exc
