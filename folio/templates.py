"""Layout rendering for Folio.

This module uses Jinja2 to wrap rendered document bodies in layouts. A site
may provide its own layouts in ``<content_dir>/_layouts``; any layout it
does not provide comes from the small built-in set shipped with Folio.

Key class:
- TemplateEngine: Resolves layouts and renders documents.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup

from .collections import DocumentCollection
from .content import Document, LayoutResolver
from .html_utils import join_root_url
from .locales import group_translations
from .renderers import pygments_css

BUILTIN_LAYOUTS_DIR = Path(__file__).parent / "layouts"
LAYOUT_SUFFIXES = (".html.jinja", ".jinja", ".html")


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        content_dir: Directory containing content and the ``_layouts`` folder.
        site: Site configuration exposed to layouts.
        env: Jinja2 environment.
        documents: All documents of the build.
    """

    def __init__(self, content_dir: Path, site: dict[str, Any], root_url: str = ""):
        """Initialize the template engine.

        Args:
            content_dir: Directory with content and site layouts.
            site: Site configuration (title, url, languages, ...).
            root_url: Optional base URL prepended by ``url_for``.
        """
        self.content_dir = content_dir
        self.site = site
        self.root_url = root_url or ""
        self.env = Environment(
            loader=ChoiceLoader(
                [
                    FileSystemLoader(str(content_dir / "_layouts")),
                    FileSystemLoader(str(BUILTIN_LAYOUTS_DIR)),
                ]
            ),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
        )
        self.documents = DocumentCollection([])
        self._translations: dict[str, dict[str, Document]] = {}
        self.env.globals["site"] = self.site
        self.env.globals["url_for"] = self._url_for
        self.env.globals["pygments_css"] = pygments_css
        self.env.globals["documents"] = self.documents

    def update_documents(self, documents: Iterable[Document]) -> None:
        """Make the full document set available to layouts."""
        self.documents = DocumentCollection(documents)
        self._translations = group_translations(self.documents)
        self.env.globals["documents"] = self.documents

    def translations_of(self, doc: Document) -> list[Document]:
        """Other-language variants of ``doc``, in configured language order."""
        variants = self._translations.get(doc.translation_key, {})
        languages = list(self.site.get("languages") or [])

        def position(d: Document) -> int:
            return languages.index(d.lang) if d.lang in languages else len(languages)

        ordered = sorted(variants.values(), key=position)
        return [d for d in ordered if d is not doc]

    def _url_for(self, path: str) -> str:
        """Generate a URL for a path, applying root_url if configured."""
        if path.startswith(("http://", "https://", "//", "mailto:")):
            return path
        path = path if path.startswith("/") else f"/{path}"
        return join_root_url(self.root_url, path) if self.root_url else path

    def render_document(self, doc: Document) -> str:
        """Render a document with its layout.

        Args:
            doc: Document to render.

        Returns:
            Rendered HTML string.
        """
        template = self._resolve_layout_template(
            doc.layout, LayoutResolver.kind_layouts.get(doc.kind, "default")
        )
        return template.render(
            doc=doc,
            page_content=Markup(doc.content),
            translations=self.translations_of(doc),
        )

    def _resolve_layout_template(self, layout: str, kind_layout: str = "default"):
        """Resolve a layout name to a template.

        Unknown layouts fall back to the layout for the document kind, then to
        ``default``.
        """
        names: list[str] = []
        for candidate in dict.fromkeys([layout, kind_layout, "default"]):
            names.extend(f"{candidate}{suffix}" for suffix in LAYOUT_SUFFIXES)
        for name in names:
            try:
                return self.env.get_template(name)
            except TemplateNotFound:
                continue
        raise TemplateNotFound(layout)
