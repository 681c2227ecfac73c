"""Feed generation for Folio.

This module generates sitemap.xml and rss.xml from the built documents.
Feed generation is separate from build orchestration so new formats can be
added by registering another generator.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml with hreflang alternates.
    RSSGenerator: Generates an RSS feed of posts.
    FeedRegistry: Registry for managing feed generators.

Functions:
    create_default_feed_registry: Create a registry with default generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .html_utils import escape_html
from .locales import group_translations
from .models import KIND_POST

if TYPE_CHECKING:
    from .content import Document

RFC822 = "%a, %d %b %Y %H:%M:%S +0000"


class FeedGenerator(ABC):
    """Abstract base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(self, documents: list[Document], site: dict[str, Any]) -> str | None:
        """Generate feed content.

        Args:
            documents: Documents to include.
            site: Site configuration containing the base ``url``.

        Returns:
            Feed content, or None if the feed cannot be generated
            (e.g. no base URL configured).
        """
        ...

    def write(self, output_dir: Path, documents: list[Document], site: dict[str, Any]) -> bool:
        """Generate and write the feed; return False if it was skipped."""
        content = self.generate(documents, site)
        if content is None:
            return False
        (output_dir / self.filename).write_text(content, encoding="utf-8")
        return True


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml following the sitemaps.org protocol.

    Documents with translations list every language variant as an
    ``xhtml:link rel="alternate"`` entry.
    """

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, documents: list[Document], site: dict[str, Any]) -> str | None:
        base_url = str(site.get("url", "")).rstrip("/")
        if not base_url:
            return None
        groups = group_translations(documents)
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9" '
            'xmlns:xhtml="http://www.w3.org/1999/xhtml">',
        ]
        for doc in documents:
            lines.append("  <url>")
            lines.append(f"    <loc>{escape_html(base_url + doc.url)}</loc>")
            if doc.date is not None:
                lines.append(f"    <lastmod>{doc.date.strftime('%Y-%m-%d')}</lastmod>")
            variants = groups.get(doc.translation_key, {})
            if len(variants) > 1:
                for lang, variant in variants.items():
                    href = escape_html(base_url + variant.url)
                    lines.append(
                        f'    <xhtml:link rel="alternate" hreflang="{lang}" href="{href}"/>'
                    )
            lines.append("  </url>")
        lines.append("</urlset>")
        return "\n".join(lines)


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of posts, newest first.

    Requires ``url`` in the site configuration. Uses ``title`` for the
    channel title.
    """

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, documents: list[Document], site: dict[str, Any]) -> str | None:
        base_url = str(site.get("url", "")).rstrip("/")
        if not base_url:
            return None
        title = site.get("title") or "Folio Feed"
        posts = [d for d in documents if d.kind == KIND_POST and not d.draft]
        posts.sort(key=lambda d: d.date or datetime.min, reverse=True)

        items = []
        for doc in posts:
            link = escape_html(base_url + doc.url)
            item = [
                f"<item><title>{escape_html(doc.display_title)}</title>",
                f"<link>{link}</link><guid>{link}</guid>",
                f"<description>{escape_html(doc.description or doc.display_title)}</description>",
            ]
            if doc.date is not None:
                item.append(f"<pubDate>{doc.date.strftime(RFC822)}</pubDate>")
            item.append("</item>")
            items.append("".join(item))

        build_date = datetime.now(timezone.utc).strftime(RFC822)
        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{escape_html(title)}</title>",
            f"<link>{escape_html(base_url)}/</link>",
            f"<description>{escape_html(site.get('description') or title)}</description>",
            f"<lastBuildDate>{build_date}</lastBuildDate>",
        ]
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss)


class FeedRegistry:
    """Registry for managing feed generators."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self, output_dir: Path, documents: Iterable[Document], site: dict[str, Any]
    ) -> list[str]:
        """Generate all registered feeds.

        Returns:
            List of filenames that were written.
        """
        documents = list(documents)
        generated = []
        for generator in self._generators:
            if generator.write(output_dir, documents, site):
                generated.append(generator.filename)
        return generated


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with the sitemap and RSS generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
