from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from ..config import AppConfig

DEFAULT_WATERMARK_OPACITY = 0.15


class RenderError(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class MergeError(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True, slots=True)
class RenderOptions:
    format: str = "A4"
    orientation: str = "portrait"
    timeout_ms: int = 30000
    theme: str | None = None
    toc: bool = False
    css_path: str | None = None
    watermark_text: str | None = None
    watermark_opacity: float = DEFAULT_WATERMARK_OPACITY

    @classmethod
    def from_config(cls, config: AppConfig) -> "RenderOptions":
        options = config.options
        watermark = options.watermark
        return cls(
            format=options.format,
            orientation=options.orientation,
            timeout_ms=options.timeout,
            theme=options.theme,
            toc=options.toc,
            css_path=options.css_path,
            watermark_text=watermark.text if watermark else None,
            watermark_opacity=(
                watermark.opacity if watermark and watermark.opacity is not None else DEFAULT_WATERMARK_OPACITY
            ),
        )


class Renderer(Protocol):
    label: str
    extensions: tuple[str, ...]

    def render(self, source: Path, target: Path, options: RenderOptions) -> None:  # pragma: no cover - interface
        ...


@dataclass(frozen=True, slots=True)
class SaveOptions:
    use_object_streams: bool = False
    objects_per_stream: int = 20


class PdfDocument(Protocol):
    def page_indices(self) -> list[int]:  # pragma: no cover - interface
        ...

    def copy_pages(self, source: "PdfDocument", indices: list[int]) -> list[Any]:  # pragma: no cover - interface
        ...

    def add_page(self, page: Any) -> None:  # pragma: no cover - interface
        ...

    def save(self, options: SaveOptions) -> bytes:  # pragma: no cover - interface
        ...


class PdfBackend(Protocol):
    def create(self) -> PdfDocument:  # pragma: no cover - interface
        ...

    def load(self, data: bytes) -> PdfDocument:  # pragma: no cover - interface
        ...
