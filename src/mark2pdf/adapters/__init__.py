from __future__ import annotations

import asyncio
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from .base import (
    MergeError,
    PdfBackend,
    PdfDocument,
    RenderError,
    Renderer,
    RenderOptions,
    SaveOptions,
)
from .html import HtmlRenderer
from .markdown import MarkdownRenderer
from .pypdf_backend import PypdfBackend

RendererKind = Literal["markdown", "html"]

_RENDERER_CLASSES: dict[str, type] = {
    "markdown": MarkdownRenderer,
    "html": HtmlRenderer,
}


@lru_cache(maxsize=len(_RENDERER_CLASSES))
def get_renderer(kind: RendererKind) -> Renderer:
    renderer_cls = _RENDERER_CLASSES.get(kind)
    if not renderer_cls:
        raise KeyError(f"No renderer registered for {kind}")
    return renderer_cls()  # type: ignore[return-value]


def staging_path(target: Path) -> Path:
    return target.with_name(f".{target.name}.part")


async def render_async(renderer: Renderer, source: Path, target: Path, options: RenderOptions) -> None:
    """Render in a worker thread, bounded by ``options.timeout_ms`` when positive.

    The renderer writes to a staging file that replaces *target* only on
    success. A timed-out render still holds its slot until the worker
    thread returns, and its output is discarded.
    """

    staging = staging_path(target)
    job = asyncio.create_task(asyncio.to_thread(renderer.render, source, staging, options))
    limit = options.timeout_ms / 1000 if options.timeout_ms > 0 else None
    try:
        await asyncio.wait_for(asyncio.shield(job), timeout=limit)
    except asyncio.TimeoutError as exc:
        await asyncio.wait([job])
        if not job.cancelled():
            job.exception()
        staging.unlink(missing_ok=True)
        raise RenderError("TIMEOUT", f"Rendering exceeded {options.timeout_ms}ms for {source.name}") from exc
    except BaseException:
        staging.unlink(missing_ok=True)
        raise
    if not staging.exists():
        raise RenderError("NO_OUTPUT", f"Renderer produced no output for {source.name}")
    os.replace(staging, target)


__all__ = [
    "HtmlRenderer",
    "MarkdownRenderer",
    "MergeError",
    "PdfBackend",
    "PdfDocument",
    "PypdfBackend",
    "RenderError",
    "RenderOptions",
    "Renderer",
    "SaveOptions",
    "get_renderer",
    "render_async",
    "staging_path",
]
