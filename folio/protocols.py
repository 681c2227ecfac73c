"""Protocol definitions for Folio.

The build pipeline talks to its pluggable parts through these interfaces,
so a site can register another body format or content check without
touching the pipeline itself.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .checks import Issue
    from .content import Document
    from .renderers import Heading


@runtime_checkable
class BodyRenderer(Protocol):
    """Protocol for rendering document bodies to HTML."""

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file.

        Args:
            path: Path to the source file.

        Returns:
            True if this renderer can process the file.
        """
        ...

    @abstractmethod
    def render(self, content: str) -> tuple[str, list[Heading]]:
        """Render a body to HTML.

        Args:
            content: Body text following the metadata header.

        Returns:
            Tuple of (rendered HTML, list of headings).
        """
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the source type identifier (e.g. 'markdown')."""
        ...


@runtime_checkable
class ContentLoader(Protocol):
    """Protocol for discovering document files."""

    @abstractmethod
    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """List every document file.

        Args:
            include_drafts: Whether to include draft files.

        Returns:
            List of paths to document files.
        """
        ...


@runtime_checkable
class ContentCheck(Protocol):
    """Protocol for a content check run by ContentChecker.

    ``code`` identifies the check in reports and in the ``checks.disable``
    setting.
    """

    code: str

    @abstractmethod
    def run(self, documents: list[Document]) -> list[Issue]:
        """Check a set of documents and return the issues found."""
        ...
