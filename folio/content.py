"""Content processing for Folio.

This module discovers content documents, parses their metadata headers and
builds Document objects that carry everything a layout needs.

Key classes:
- Document: Dataclass representing one content document.
- FileContentLoader: Discovers document files in the content directory.
- UrlDeriver: Maps a content path to its site URL.
- LayoutResolver: Picks the layout a document renders with.
- DocumentBuilder: Builds a Document from a file.
- ContentProcessor: Facade that loads every document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from .frontmatter import HeaderError, parse_document, read_document
from .locales import LocaleResolver
from .models import (
    KIND_LISTING,
    KIND_PAGE,
    KIND_POST,
    KIND_PROFILE,
    Listing,
    Profile,
    classify,
)
from .protocols import ContentLoader
from .renderers import Heading, RendererRegistry, default_renderer_registry
from .utils import (
    coerce_datetime,
    extract_date_from_name,
    first_paragraph,
    is_markdown,
    slugify,
    titleize,
)


@dataclass
class Document:
    """A content document with its parsed header and rendered body.

    Attributes:
        title: Title from the header (empty when the header has none).
        body: Markdown body following the header.
        content: Rendered HTML body.
        url: URL path for the document.
        slug: URL-friendly slug.
        lang: Language code.
        translation_key: Path without language prefix, shared by translations.
        kind: ``profile``, ``listing``, ``post`` or ``page``.
        layout: Layout template name.
        date: Publication date, when the header or filename gives one.
        tags: Tags from the header, in authored order.
        description: Header description or first body paragraph.
        draft: Whether this is a draft document.
        path: Path to the source file.
        rel_path: POSIX path relative to the content directory.
        header: Parsed metadata header.
        profile: Typed profile fields, for profile documents.
        listing: Typed listing fields, for listing documents.
        toc: Headings found in the body.
    """

    title: str
    body: str
    content: str
    url: str
    slug: str
    lang: str
    translation_key: str
    kind: str
    layout: str
    date: datetime | None
    tags: list[str]
    description: str
    draft: bool
    path: Path
    rel_path: str
    header: dict[str, Any] = field(default_factory=dict)
    profile: Profile | None = None
    listing: Listing | None = None
    toc: list[Heading] = field(default_factory=list)

    @property
    def display_title(self) -> str:
        """Title for navigation, falling back to the filename."""
        return self.title or titleize(self.path.name)


class FileContentLoader:
    """Discovers document files in a content directory.

    Attributes:
        content_dir: Directory containing content documents.
    """

    def __init__(self, content_dir: Path):
        self.content_dir = content_dir

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """List every document file.

        Directories starting with ``_`` are internal and skipped. Files
        starting with ``_`` are drafts.

        Args:
            include_drafts: Whether to include draft files.

        Returns:
            Sorted list of paths to document files.
        """
        files: list[Path] = []
        for path in sorted(self.content_dir.rglob("*")):
            if path.is_dir() or not is_markdown(path):
                continue
            rel = path.relative_to(self.content_dir)
            if any(part.startswith(("_", ".")) for part in rel.parts[:-1]):
                continue
            if rel.name.startswith("_") and not include_drafts:
                continue
            files.append(path)
        return files


class UrlDeriver:
    """Derives URLs for documents from their location."""

    def derive(self, rel: Path, slug: str) -> str:
        """Derive the URL for a document.

        Args:
            rel: Path relative to the content directory.
            slug: URL-friendly slug.

        Returns:
            URL path for the document, always with a trailing slash.
        """
        segments = [p for p in rel.parent.parts if p]
        url_parts = segments if slug == "index" else segments + [slug]
        path = "/".join(url_parts)
        return f"/{path}/" if path else "/"


class LayoutResolver:
    """Resolves the layout a document renders with.

    An explicit ``layout`` header field wins. Otherwise structured documents
    get the layout named after their kind and plain pages get ``default``.
    """

    kind_layouts = {
        KIND_PROFILE: "profile",
        KIND_LISTING: "listing",
        KIND_POST: "post",
        KIND_PAGE: "default",
    }

    def resolve(self, header: dict[str, Any], kind: str) -> str:
        layout = header.get("layout")
        if isinstance(layout, str) and layout.strip():
            return layout.strip()
        return self.kind_layouts.get(kind, "default")


class DocumentBuilder:
    """Builds Document objects from source files.

    Attributes:
        content_dir: Directory containing content documents.
        locales: Resolver for document languages.
        renderer_registry: Registry of body renderers.
    """

    def __init__(
        self,
        content_dir: Path,
        locales: LocaleResolver | None = None,
        renderer_registry: RendererRegistry | None = None,
    ):
        self.content_dir = content_dir
        self.locales = locales or LocaleResolver()
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.layout_resolver = LayoutResolver()
        self.url_deriver = UrlDeriver()

    def build(self, path: Path, draft: bool = False) -> Document:
        """Build a Document from a source file.

        Args:
            path: Path to the source file.
            draft: Whether this is a draft document.

        Returns:
            Document object.

        Raises:
            HeaderError: If the metadata header is malformed or the
                file is not valid UTF-8.
        """
        rel = path.relative_to(self.content_dir)
        rel_path = rel.as_posix()
        header, body = parse_document(read_document(path), path)

        renderer = self.renderer_registry.get_renderer(path)
        if renderer:
            content, toc = renderer.render(body)
        else:
            content, toc = body, []

        kind = classify(header, rel_path, self.locales.localized_languages)
        slug = slugify(path.stem)
        title = header.get("title")
        tags = header.get("tags") or []
        if not isinstance(tags, list):
            tags = [tags]
        description = header.get("description")
        date = coerce_datetime(header.get("date")) or extract_date_from_name(path.stem)

        return Document(
            title=str(title).strip() if title is not None else "",
            body=body,
            content=content,
            url=self.url_deriver.derive(rel, slug),
            slug=slug,
            lang=self.locales.language_of(rel_path),
            translation_key=self.locales.translation_key(rel_path),
            kind=kind,
            layout=self.layout_resolver.resolve(header, kind),
            date=date,
            tags=[str(t) for t in tags],
            description=str(description) if description else first_paragraph(body),
            draft=draft or bool(header.get("draft", False)),
            path=path,
            rel_path=rel_path,
            header=header,
            profile=Profile.from_header(header) if kind == KIND_PROFILE else None,
            listing=Listing.from_header(header) if kind == KIND_LISTING else None,
            toc=toc,
        )


class ContentProcessor:
    """Facade for loading every document in a content directory.

    Attributes:
        content_dir: Directory containing content documents.
    """

    def __init__(
        self,
        content_dir: Path,
        locales: LocaleResolver | None = None,
        content_loader: ContentLoader | None = None,
        document_builder: DocumentBuilder | None = None,
    ):
        self.content_dir = content_dir
        self._content_loader = content_loader or FileContentLoader(content_dir)
        self._document_builder = document_builder or DocumentBuilder(content_dir, locales)

    def load(self, include_drafts: bool = False) -> list[Document]:
        """Load all documents.

        Args:
            include_drafts: Whether to include draft documents.

        Returns:
            List of Document objects.

        Raises:
            HeaderError: On the first document with a malformed header.
        """
        documents, errors = self.collect(include_drafts)
        if errors:
            raise errors[0]
        return documents

    def collect(
        self, include_drafts: bool = False
    ) -> tuple[list[Document], list[HeaderError]]:
        """Load all documents, gathering header failures instead of raising.

        Returns:
            Tuple of (documents that loaded, header errors).
        """
        documents: list[Document] = []
        errors: list[HeaderError] = []
        for path in self._content_loader.iter_files(include_drafts):
            try:
                doc = self._document_builder.build(
                    path, draft=path.name.startswith("_")
                )
            except HeaderError as exc:
                errors.append(exc)
                continue
            # draft: true in the header hides the document like a _ prefix
            if doc.draft and not include_drafts:
                continue
            documents.append(doc)
        return documents, errors
