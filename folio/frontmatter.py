"""Document format for Folio.

A content document is a text file with a YAML metadata header followed by a
Markdown body::

    ---
    title: About
    skills:
      Languages: [Python, Go]
    ---
    Free text body.

This module splits, parses and re-serializes that format. Mapping order in
the header is preserved in both directions, so a parsed header can be dumped
and parsed again without reordering lists or keys.

Key functions:
- split_document: Separate header text from body.
- parse_header: Parse header text into a mapping.
- parse_document: split_document + parse_header.
- dump_header: Serialize a mapping back into header text.
- render_document: Inverse of parse_document.
- read_document: Read a document file, reporting bad encodings.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

MARKER = "---"
HEADER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)
# a "#" at line start or after whitespace opens a YAML comment
COMMENT_RE = re.compile(r"(?:^|\s)#", re.MULTILINE)


class HeaderError(Exception):
    """Malformed metadata header.

    Attributes:
        source_path: Path to the document with the bad header.
        message: Human-readable error message.
    """

    def __init__(self, source_path: Path | None, message: str):
        self.source_path = source_path
        self.message = message
        super().__init__(f"{source_path}: {message}" if source_path else message)


class CommentedHeaderError(HeaderError):
    """Header holds YAML comments that a re-serialization would drop."""


def read_document(path: Path) -> str:
    """Read a document file as UTF-8.

    Raises:
        HeaderError: If the file is not valid UTF-8.
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise HeaderError(
            path, f"File is not valid UTF-8 (byte {exc.start})"
        ) from exc


def split_document(text: str, path: Path | None = None) -> tuple[str | None, str]:
    """Separate the header block from the body.

    Args:
        text: Raw file content.
        path: Source path, used in error messages.

    Returns:
        Tuple of (header text or None when the document has no header, body).

    Raises:
        HeaderError: If the document opens a header block that never closes.
    """
    text = text.lstrip("\ufeff")
    match = HEADER_RE.match(text)
    if match:
        return match.group(1), text[match.end() :]
    first_line = text.split("\n", 1)[0].rstrip("\r")
    if first_line.strip() == MARKER:
        raise HeaderError(path, "Header block is not closed with '---'")
    return None, text


def parse_header(header_text: str | None, path: Path | None = None) -> dict[str, Any]:
    """Parse header text into a mapping.

    Args:
        header_text: YAML text between the markers, or None.
        path: Source path, used in error messages.

    Returns:
        Mapping of header fields in document order.

    Raises:
        HeaderError: If the YAML is invalid or is not a mapping.
    """
    if header_text is None or not header_text.strip():
        return {}
    try:
        data = yaml.safe_load(header_text)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f" (header line {mark.line + 1})" if mark is not None else ""
        problem = getattr(exc, "problem", None) or str(exc)
        raise HeaderError(path, f"Invalid YAML{where}: {problem}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise HeaderError(
            path, f"Header must be a mapping, got {type(data).__name__}"
        )
    return data


def parse_document(text: str, path: Path | None = None) -> tuple[dict[str, Any], str]:
    """Parse a whole document into (header, body)."""
    header_text, body = split_document(text, path)
    return parse_header(header_text, path), body


def dump_header(header: dict[str, Any]) -> str:
    """Serialize a header mapping to YAML text.

    Keys keep their insertion order and non-ASCII text is written literally.

    Examples:
        >>> dump_header({"title": "Hakkımda", "tags": ["a", "b"]})
        'title: Hakkımda\\ntags:\\n- a\\n- b\\n'
    """
    if not header:
        return ""
    return yaml.safe_dump(
        header,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=1000,
    )


def render_document(header: dict[str, Any], body: str) -> str:
    """Assemble a document from a header mapping and a body."""
    if not header:
        return body
    return f"{MARKER}\n{dump_header(header)}{MARKER}\n{body}"


def roundtrip_header(header: dict[str, Any]) -> dict[str, Any]:
    """Dump and re-parse a header.

    Used to verify that a header survives serialization unchanged.
    """
    return parse_header(dump_header(header))


def normalize_document(text: str, path: Path | None = None) -> str:
    """Rewrite a document with its header in canonical form.

    Documents without a header are returned unchanged.

    Raises:
        CommentedHeaderError: If the header contains comments, which the
            YAML round trip would drop.
        HeaderError: If the header is malformed.
    """
    header_text, body = split_document(text, path)
    if header_text is None:
        return text
    header = parse_header(header_text, path)
    if COMMENT_RE.search(header_text):
        raise CommentedHeaderError(path, "cannot normalize (comments)")
    return render_document(header, body) if header else text
