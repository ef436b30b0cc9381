from __future__ import annotations

import io
import re
from dataclasses import dataclass, replace
from pathlib import Path

from bs4 import BeautifulSoup
from reportlab.lib.pagesizes import A3, A4, A5, LETTER, landscape, portrait
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from ..utils import atomic_write_bytes
from .base import RenderError, RenderOptions

PAGE_SIZES: dict[str, tuple[float, float]] = {"A4": A4, "Letter": LETTER, "A3": A3, "A5": A5}
MARGIN = 50.0
BLOCK_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6", "p", "li", "pre", "blockquote")
HEADING_SCALE = {"h1": 1.8, "h2": 1.5, "h3": 1.25, "h4": 1.1, "h5": 1.0, "h6": 1.0}
TOC_TAGS = ("h1", "h2", "h3")
PX_TO_PT = 0.75

_COLOR_RULE = re.compile(r"(?<![-\w])color\s*:\s*#([0-9a-fA-F]{6}|[0-9a-fA-F]{3})\b")
_FONT_FAMILY_RULE = re.compile(r"font-family\s*:\s*([^;}]+)", re.IGNORECASE)
_FONT_SIZE_RULE = re.compile(r"font-size\s*:\s*(\d+(?:\.\d+)?)\s*(pt|px)\b", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class Theme:
    font: str
    bold_font: str
    font_size: float
    color: str


THEMES: dict[str, Theme] = {
    "default": Theme("Helvetica", "Helvetica-Bold", 11, "#2d3748"),
    "serif": Theme("Times-Roman", "Times-Bold", 12, "#1a202c"),
    "mono": Theme("Courier", "Courier-Bold", 10, "#1a202c"),
}


@dataclass(frozen=True, slots=True)
class Block:
    tag: str
    text: str


def extract_blocks(html: str) -> list[Block]:
    soup = BeautifulSoup(html, "html.parser")
    blocks: list[Block] = []
    for element in soup.find_all(BLOCK_TAGS):
        if element.find_parent(BLOCK_TAGS) is not None:
            continue
        if element.name == "pre":
            text = element.get_text().rstrip("\n")
        else:
            text = element.get_text(" ", strip=True)
        if text:
            blocks.append(Block(tag=element.name, text=text))
    if not blocks:
        blocks = [Block(tag="p", text=text) for text in soup.stripped_strings]
    return blocks


def resolve_theme(name: str | None) -> Theme:
    if name is None:
        return THEMES["default"]
    return THEMES.get(name, THEMES["default"])


def _family_theme(family: str) -> Theme:
    family = family.lower()
    if "mono" in family or "courier" in family:
        return THEMES["mono"]
    if "serif" in family.replace("sans-serif", "") or "times" in family:
        return THEMES["serif"]
    return THEMES["default"]


def apply_stylesheet(theme: Theme, css: str) -> Theme:
    """Fold the font family, font size and text colour of *css* into *theme*.

    Selectors are ignored and the first declaration of each property wins.
    """

    family = _FONT_FAMILY_RULE.search(css)
    if family:
        base = _family_theme(family.group(1))
        theme = replace(theme, font=base.font, bold_font=base.bold_font)
    size = _FONT_SIZE_RULE.search(css)
    if size:
        value = float(size.group(1))
        theme = replace(theme, font_size=value * PX_TO_PT if size.group(2).lower() == "px" else value)
    color = _COLOR_RULE.search(css)
    if color:
        digits = color.group(1)
        if len(digits) == 3:
            digits = "".join(char * 2 for char in digits)
        theme = replace(theme, color=f"#{digits.lower()}")
    return theme


def load_theme(options: RenderOptions) -> Theme:
    theme = resolve_theme(options.theme)
    if not options.css_path:
        return theme
    try:
        css = Path(options.css_path).read_text(encoding="utf-8")
    except OSError as exc:
        raise RenderError("INVALID_CSS", f"Cannot read stylesheet {options.css_path}: {exc}") from exc
    return apply_stylesheet(theme, css)


class _PageWriter:
    def __init__(self, options: RenderOptions, theme: Theme) -> None:
        try:
            base_size = PAGE_SIZES[options.format]
        except KeyError as exc:
            raise RenderError("UNSUPPORTED_FORMAT", f"Unsupported page format: {options.format}") from exc
        self._size = landscape(base_size) if options.orientation == "landscape" else portrait(base_size)
        self._options = options
        self._theme = theme
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=self._size)
        self._y = self._size[1] - MARGIN

    @property
    def text_width(self) -> float:
        return self._size[0] - 2 * MARGIN

    def write(self, text: str, *, font: str, size: float, indent: float = 0.0, gap: float = 4.0) -> None:
        leading = size * 1.35
        width = self.text_width - indent
        for raw_line in text.splitlines() or [""]:
            for line in simpleSplit(raw_line, font, size, width) or [""]:
                if self._y - leading < MARGIN:
                    self.new_page()
                self._y -= leading
                self._canvas.setFont(font, size)
                self._canvas.setFillColor(self._theme.color)
                self._canvas.drawString(MARGIN + indent, self._y, line)
        self._y -= gap

    def new_page(self) -> None:
        self._decorate()
        self._canvas.showPage()
        self._y = self._size[1] - MARGIN

    def finish(self) -> bytes:
        self._decorate()
        self._canvas.save()
        return self._buffer.getvalue()

    def _decorate(self) -> None:
        text = self._options.watermark_text
        if not text:
            return
        width, height = self._size
        self._canvas.saveState()
        self._canvas.setFillAlpha(self._options.watermark_opacity)
        self._canvas.setFillColor("#a0aec0")
        self._canvas.setFont(self._theme.bold_font, 48)
        self._canvas.translate(width / 2, height / 2)
        self._canvas.rotate(45)
        self._canvas.drawCentredString(0, 0, text)
        self._canvas.restoreState()


class HtmlRenderer:
    label = "HTML"
    extensions: tuple[str, ...] = (".html", ".htm")

    def render(self, source: Path, target: Path, options: RenderOptions) -> None:
        html = source.read_text(encoding="utf-8", errors="replace")
        self.render_html(html, target, options)

    def render_html(self, html: str, target: Path, options: RenderOptions) -> None:
        blocks = extract_blocks(html)
        theme = load_theme(options)
        writer = _PageWriter(options, theme)
        if options.toc:
            self._write_toc(writer, blocks, theme)
        for block in blocks:
            self._write_block(writer, block, theme)
        atomic_write_bytes(target, writer.finish())

    def _write_toc(self, writer: _PageWriter, blocks: list[Block], theme: Theme) -> None:
        headings = [block for block in blocks if block.tag in TOC_TAGS]
        if not headings:
            return
        writer.write("Contents", font=theme.bold_font, size=theme.font_size * HEADING_SCALE["h1"], gap=8)
        for heading in headings:
            indent = (int(heading.tag[1]) - 1) * 14.0
            writer.write(heading.text, font=theme.font, size=theme.font_size, indent=indent, gap=2)
        writer.new_page()

    def _write_block(self, writer: _PageWriter, block: Block, theme: Theme) -> None:
        if block.tag in HEADING_SCALE:
            size = theme.font_size * HEADING_SCALE[block.tag]
            writer.write(block.text, font=theme.bold_font, size=size, gap=size * 0.5)
        elif block.tag == "li":
            writer.write(f"• {block.text}", font=theme.font, size=theme.font_size, indent=12.0)
        elif block.tag == "pre":
            writer.write(block.text, font="Courier", size=theme.font_size * 0.9, indent=8.0, gap=8.0)
        elif block.tag == "blockquote":
            writer.write(block.text, font=theme.font, size=theme.font_size, indent=20.0, gap=8.0)
        else:
            writer.write(block.text, font=theme.font, size=theme.font_size, gap=8.0)


__all__ = [
    "Block",
    "HtmlRenderer",
    "THEMES",
    "Theme",
    "apply_stylesheet",
    "extract_blocks",
    "load_theme",
    "resolve_theme",
]
