"""Language handling for Folio content.

Localized documents live under a directory named after their language code,
mirroring the default-language tree::

    content/about.md      -> /about/      (en, default)
    content/tr/about.md   -> /tr/about/   (tr)

Documents that share a translation key (their path with the language prefix
removed) are translations of each other.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .content import Document


class LocaleResolver:
    """Maps content paths to languages and translation keys.

    Attributes:
        default_language: Language of documents outside any language folder.
        languages: All configured language codes, default first.
    """

    def __init__(self, default_language: str = "en", languages: Iterable[str] = ("en", "tr")):
        self.default_language = default_language
        ordered = [default_language]
        for code in languages:
            if code not in ordered:
                ordered.append(code)
        self.languages = tuple(ordered)

    @property
    def localized_languages(self) -> tuple[str, ...]:
        """Configured languages other than the default."""
        return self.languages[1:]

    def language_of(self, rel_path: str) -> str:
        """Return the language of a document.

        Args:
            rel_path: POSIX path relative to the content directory.

        Returns:
            The language code of the first path segment when it names a
            non-default language, otherwise the default language.
        """
        parts = PurePosixPath(rel_path).parts
        if len(parts) > 1 and parts[0] in self.localized_languages:
            return parts[0]
        return self.default_language

    def translation_key(self, rel_path: str) -> str:
        """Return ``rel_path`` with any language prefix removed."""
        parts = PurePosixPath(rel_path).parts
        if len(parts) > 1 and parts[0] in self.localized_languages:
            return PurePosixPath(*parts[1:]).as_posix()
        return PurePosixPath(rel_path).as_posix()

    def localized_path(self, key: str, language: str) -> str:
        """Return the path a translation of ``key`` is expected at."""
        if language == self.default_language:
            return key
        return f"{language}/{key}"


def group_translations(documents: Iterable[Document]) -> dict[str, dict[str, Document]]:
    """Group documents by translation key.

    Args:
        documents: Documents to group.

    Returns:
        Mapping of translation key to a mapping of language code to document,
        in first-seen order.
    """
    groups: dict[str, dict[str, Document]] = {}
    for doc in documents:
        groups.setdefault(doc.translation_key, {})[doc.lang] = doc
    return groups
