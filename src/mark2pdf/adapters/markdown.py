from __future__ import annotations

from pathlib import Path

import markdown

from .base import RenderOptions
from .html import HtmlRenderer

MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


class MarkdownRenderer:
    """Render Markdown by converting it to HTML and laying that out as PDF."""

    label = "Markdown"
    extensions: tuple[str, ...] = (".md", ".markdown")

    def __init__(self, html_renderer: HtmlRenderer | None = None) -> None:
        self._html_renderer = html_renderer or HtmlRenderer()

    def render(self, source: Path, target: Path, options: RenderOptions) -> None:
        text = source.read_text(encoding="utf-8", errors="replace")
        html = markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)
        self._html_renderer.render_html(html, target, options)
