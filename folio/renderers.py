"""Body renderers for Folio.

Document bodies are written in Markdown: headings, emphasis, links and
fenced code blocks, plus tables and strikethrough. This module renders them
to HTML with mistune and highlights fenced code with Pygments.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML and collects headings.
- RendererRegistry: Picks a renderer for a source file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .html_utils import escape_html
from .protocols import BodyRenderer


@dataclass
class Heading:
    """A heading found while rendering a body.

    Attributes:
        id: Anchor ID for the heading (URL-friendly slug).
        text: The text content of the heading.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


def generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Unicode word characters are kept, so Turkish headings produce
    readable anchors.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _FolioHTMLRenderer(mistune.HTMLRenderer):
    """mistune renderer with heading anchors and Pygments code blocks."""

    def __init__(self):
        super().__init__(escape=False)
        self.headings: list[Heading] = []
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = generate_heading_id(text) or "section"
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        self.headings.append(Heading(id=heading_id, text=text, level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = info.split()[0] if info else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                return highlight(code, lexer, HtmlFormatter(cssclass="highlight"))
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown bodies to HTML."""

    plugins = ["strikethrough", "table", "url"]

    @property
    def source_type(self) -> str:
        return "markdown"

    def can_render(self, path: Path) -> bool:
        return path.suffix.lower() == ".md"

    def render(self, content: str) -> tuple[str, list[Heading]]:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source.

        Returns:
            Tuple of (rendered HTML, list of Heading objects).
        """
        renderer = _FolioHTMLRenderer()
        markdown = mistune.create_markdown(renderer=renderer, plugins=self.plugins)
        html = markdown(content)
        return html, renderer.headings


class RendererRegistry:
    """Registry for body renderers.

    New source formats can be supported by registering a renderer that
    implements the ``BodyRenderer`` protocol.
    """

    def __init__(self):
        self._renderers: list[BodyRenderer] = []
        self.register(MarkdownRenderer())

    def register(self, renderer: BodyRenderer) -> None:
        self._renderers.append(renderer)

    def get_renderer(self, path: Path) -> BodyRenderer | None:
        """Return the first renderer that can handle ``path``, or None."""
        for renderer in self._renderers:
            if renderer.can_render(path):
                return renderer
        return None


def pygments_css(style: str = "default") -> str:
    """Return Pygments CSS rules for the ``.highlight`` class."""
    return HtmlFormatter(style=style).get_style_defs(".highlight")


default_renderer_registry = RendererRegistry()
