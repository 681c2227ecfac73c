from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from .content import Document
from .models import KIND_POST


class DocumentCollection(Sequence[Document]):
    """Lightweight helper for working with lists of Documents in templates and code."""

    def __init__(self, documents: Iterable[Document]):
        self._documents = list(documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __getitem__(self, item):
        return self._documents[item]

    def in_language(self, lang: str) -> DocumentCollection:
        return DocumentCollection(d for d in self._documents if d.lang == lang)

    def of_kind(self, kind: str) -> DocumentCollection:
        return DocumentCollection(d for d in self._documents if d.kind == kind)

    def posts(self) -> DocumentCollection:
        return self.of_kind(KIND_POST)

    def with_tag(self, tag: str) -> DocumentCollection:
        return DocumentCollection(d for d in self._documents if tag in d.tags)

    def published(self) -> DocumentCollection:
        return DocumentCollection(d for d in self._documents if not d.draft)

    def sorted(self, reverse: bool = True) -> DocumentCollection:
        """Sort documents by date, then by path.

        Undated documents sort as oldest.

        Args:
            reverse: If True (default), newest first.
        """

        def sort_key(d: Document):
            return (d.date is not None, d.date or 0, d.rel_path)

        if reverse:
            ordered = sorted(self._documents, key=lambda d: d.rel_path)
            ordered.sort(key=lambda d: (d.date is not None, d.date or 0), reverse=True)
            return DocumentCollection(ordered)
        return DocumentCollection(sorted(self._documents, key=sort_key))

    def latest(self, count: int = 5) -> DocumentCollection:
        return DocumentCollection(self.sorted()[:count])

    def get(self, url: str) -> Document | None:
        for doc in self._documents:
            if doc.url == url:
                return doc
        return None

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"DocumentCollection({len(self._documents)} documents)"
