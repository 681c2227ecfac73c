"""Content checks for Folio.

Content documents are authored by hand, so nothing enforces their shape
until something reads them. The checks in this module verify the content
contract a site relies on before it is built:

- every document declares a non-empty title,
- project links in listings are valid URLs,
- profile skill categories are non-empty lists,
- localized documents pair with a default-language counterpart and expose
  the same structure,
- headers survive a serialize/parse round trip.

Each check is a small class with a ``code`` and a ``run`` method returning
Issue objects. ContentChecker runs a registry of them and collects a
CheckReport.

Key classes:
- Issue: One problem found in one document.
- CheckReport: All issues from a run.
- ContentChecker: Runs registered checks.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .content import Document
from .frontmatter import HeaderError, roundtrip_header
from .locales import LocaleResolver, group_translations
from .models import KIND_LISTING, KIND_POST, KIND_PROFILE
from .protocols import ContentCheck
from .utils import coerce_datetime, is_valid_url

ERROR = "error"
WARNING = "warning"
HEADER_MALFORMED = "header-malformed"

EXPERIENCE_FIELDS = ("date", "title", "company", "description")
STRUCTURAL_LIST_FIELDS = ("experience", "projects", "featured")
PROJECT_URL_FIELDS = ("github", "demo")


@dataclass
class Issue:
    """A single problem found in a document.

    Attributes:
        path: Source file the issue was found in.
        code: Stable identifier of the check (e.g. ``title-missing``).
        message: Human-readable description.
        severity: ``error`` or ``warning``.
    """

    path: Path
    code: str
    message: str
    severity: str = ERROR

    def to_dict(self, root: Path | None = None) -> dict[str, str]:
        path = self.path
        if root is not None:
            try:
                path = path.relative_to(root)
            except ValueError:
                pass
        return {
            "path": path.as_posix(),
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
        }


@dataclass
class CheckReport:
    """Issues collected from one checker run."""

    issues: list[Issue] = field(default_factory=list)
    checked: int = 0

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == ERROR]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def ok_strict(self) -> bool:
        return not self.issues

    def for_path(self, path: Path) -> list[Issue]:
        return [i for i in self.issues if i.path == path]


class CheckFailed(Exception):
    """Raised when a build is refused because content checks found errors."""

    def __init__(self, report: CheckReport):
        self.report = report
        count = len(report.errors)
        super().__init__(f"{count} content error{'s' if count != 1 else ''}")


class DocumentCheck:
    """Base class for checks that look at one document at a time."""

    code = ""

    def run(self, documents: Iterable[Document]) -> list[Issue]:
        issues: list[Issue] = []
        for doc in documents:
            issues.extend(self.check(doc))
        return issues

    def check(self, doc: Document) -> Iterable[Issue]:  # pragma: no cover - abstract
        raise NotImplementedError

    def issue(self, doc: Document, message: str, severity: str = ERROR) -> Issue:
        return Issue(doc.path, self.code, message, severity)


class TitleCheck(DocumentCheck):
    code = "title-missing"

    def check(self, doc: Document) -> Iterable[Issue]:
        title = doc.header.get("title")
        if title is None:
            yield self.issue(doc, "Header has no 'title'")
        elif not isinstance(title, (str, int, float)) or not str(title).strip():
            yield self.issue(doc, "'title' must be a non-empty string")


class ProjectUrlCheck(DocumentCheck):
    """Listing project links must be absolute http(s) URLs."""

    code = "url-invalid"

    def check(self, doc: Document) -> Iterable[Issue]:
        if doc.kind != KIND_LISTING:
            return
        for list_name in ("featured", "projects"):
            records = doc.header.get(list_name)
            if records is None:
                continue
            if not isinstance(records, list):
                yield self.issue(doc, f"'{list_name}' must be a list of projects")
                continue
            for index, record in enumerate(records):
                if not isinstance(record, Mapping):
                    yield self.issue(
                        doc, f"{list_name}[{index}] must be a mapping of project fields"
                    )
                    continue
                for key in PROJECT_URL_FIELDS:
                    value = record.get(key)
                    if value is not None and not is_valid_url(value):
                        yield self.issue(
                            doc, f"{list_name}[{index}].{key} is not a valid URL: {value!r}"
                        )
        callout = doc.header.get("callout")
        if isinstance(callout, Mapping) and isinstance(callout.get("link"), Mapping):
            url = callout["link"].get("url")
            # site-relative links like /contact/ are fine in a callout
            if url is not None and not (
                isinstance(url, str) and url.startswith("/") or is_valid_url(url)
            ):
                yield self.issue(doc, f"callout.link.url is not a valid URL: {url!r}")


class SkillsCheck(DocumentCheck):
    code = "skills-empty"

    def check(self, doc: Document) -> Iterable[Issue]:
        if doc.kind != KIND_PROFILE or "skills" not in doc.header:
            return
        skills = doc.header["skills"]
        if not isinstance(skills, Mapping):
            yield self.issue(doc, "'skills' must map category names to lists")
            return
        for category, names in skills.items():
            if not isinstance(names, list):
                yield self.issue(doc, f"skills.{category} must be a list")
            elif not names:
                yield self.issue(doc, f"skills.{category} is empty")


class ExperienceCheck(DocumentCheck):
    code = "experience-shape"

    def check(self, doc: Document) -> Iterable[Issue]:
        experience = doc.header.get("experience")
        if experience is None:
            return
        if not isinstance(experience, list):
            yield self.issue(doc, "'experience' must be a list", WARNING)
            return
        for index, entry in enumerate(experience):
            if not isinstance(entry, Mapping):
                yield self.issue(doc, f"experience[{index}] must be a mapping", WARNING)
                continue
            missing = [key for key in EXPERIENCE_FIELDS if not entry.get(key)]
            if missing:
                yield self.issue(
                    doc,
                    f"experience[{index}] is missing {', '.join(missing)}",
                    WARNING,
                )


class PostDateCheck(DocumentCheck):
    code = "date-invalid"

    def check(self, doc: Document) -> Iterable[Issue]:
        if doc.kind != KIND_POST:
            return
        raw = doc.header.get("date")
        if raw is None:
            if doc.date is None:
                yield self.issue(doc, "Post has no 'date' and no date prefix", WARNING)
        elif coerce_datetime(raw) is None:
            yield self.issue(doc, f"'date' is not a date: {raw!r}", WARNING)


class RoundTripCheck(DocumentCheck):
    """Headers must parse back to the same structure after re-serialization."""

    code = "header-roundtrip"

    def check(self, doc: Document) -> Iterable[Issue]:
        try:
            again = roundtrip_header(doc.header)
        except HeaderError as exc:
            yield self.issue(doc, f"Header does not re-parse: {exc.message}")
            return
        if again != doc.header:
            changed = [
                key
                for key in list(dict.fromkeys([*doc.header, *again]))
                if doc.header.get(key) != again.get(key)
            ]
            yield self.issue(
                doc, f"Header changes after re-serialization: {', '.join(map(str, changed))}"
            )
        elif list(again) != list(doc.header):
            yield self.issue(doc, "Header key order changes after re-serialization")


class UrlCollisionCheck:
    """Two documents must not render to the same URL."""

    code = "url-collision"

    def run(self, documents: Iterable[Document]) -> list[Issue]:
        seen: dict[str, Document] = {}
        issues: list[Issue] = []
        for doc in documents:
            first = seen.setdefault(doc.url, doc)
            if first is not doc:
                issues.append(
                    Issue(
                        doc.path,
                        self.code,
                        f"URL {doc.url} is already used by {first.rel_path}",
                    )
                )
        return issues


class TranslationCheck:
    """Localized documents must mirror their default-language counterpart."""

    code = "translation-missing"
    mismatch_code = "translation-mismatch"
    codes = (code, mismatch_code)

    def __init__(self, locales: LocaleResolver):
        self.locales = locales

    def run(self, documents: Iterable[Document]) -> list[Issue]:
        documents = list(documents)
        default = self.locales.default_language
        active = {d.lang for d in documents if d.lang != default}
        issues: list[Issue] = []
        for key, variants in group_translations(documents).items():
            base = variants.get(default)
            if base is None:
                for doc in variants.values():
                    expected = self.locales.localized_path(key, default)
                    issues.append(
                        Issue(
                            doc.path,
                            self.code,
                            f"No {default} counterpart (expected {expected})",
                        )
                    )
                continue
            for lang in sorted(active - set(variants)):
                issues.append(
                    Issue(
                        base.path,
                        self.code,
                        f"No {lang} translation "
                        f"(expected {self.locales.localized_path(key, lang)})",
                        WARNING,
                    )
                )
            for lang, doc in variants.items():
                if lang == default:
                    continue
                issues.extend(self._compare(base, doc))
        return issues

    def _compare(self, base: Document, doc: Document) -> list[Issue]:
        issues: list[Issue] = []
        missing = [k for k in base.header if k not in doc.header]
        extra = [k for k in doc.header if k not in base.header]
        if missing:
            issues.append(
                Issue(doc.path, self.mismatch_code, f"Missing keys: {', '.join(map(str, missing))}")
            )
        if extra:
            issues.append(
                Issue(doc.path, self.mismatch_code, f"Extra keys: {', '.join(map(str, extra))}")
            )
        for name in STRUCTURAL_LIST_FIELDS:
            expected = _length(base.header.get(name))
            actual = _length(doc.header.get(name))
            if expected is not None and actual is not None and expected != actual:
                issues.append(
                    Issue(
                        doc.path,
                        self.mismatch_code,
                        f"'{name}' has {actual} entries, {base.lang} has {expected}",
                    )
                )
        return issues


def _length(value: Any) -> int | None:
    return len(value) if isinstance(value, list) else None


class ContentChecker:
    """Runs registered checks over a set of documents.

    Attributes:
        locales: Resolver used by the translation check.
        disabled: Check codes to skip.
    """

    def __init__(
        self,
        locales: LocaleResolver | None = None,
        disabled: Iterable[str] = (),
        checks: list[ContentCheck] | None = None,
    ):
        self.locales = locales or LocaleResolver()
        self.disabled = {disabled} if isinstance(disabled, str) else set(disabled)
        if checks is None:
            self._checks = [
                TitleCheck(),
                ProjectUrlCheck(),
                SkillsCheck(),
                ExperienceCheck(),
                PostDateCheck(),
                RoundTripCheck(),
                UrlCollisionCheck(),
                TranslationCheck(self.locales),
            ]
        else:
            self._checks = list(checks)

    def register(self, check: ContentCheck) -> None:
        self._checks.append(check)

    @property
    def codes(self) -> list[str]:
        """Every code a run can report, usable in ``checks.disable``."""
        codes = [HEADER_MALFORMED]
        for check in self._checks:
            codes.extend(getattr(check, "codes", (check.code,)))
        return codes

    def run(
        self,
        documents: Iterable[Document],
        header_errors: Iterable[HeaderError] = (),
    ) -> CheckReport:
        """Run every enabled check.

        Args:
            documents: Documents that loaded successfully.
            header_errors: Failures from loading, reported as
                ``header-malformed`` errors.

        Returns:
            CheckReport with issues ordered by path.
        """
        documents = list(documents)
        header_errors = list(header_errors)
        issues: list[Issue] = []
        if HEADER_MALFORMED not in self.disabled:
            for exc in header_errors:
                issues.append(
                    Issue(Path(exc.source_path or ""), HEADER_MALFORMED, exc.message)
                )
        for check in self._checks:
            issues.extend(
                i for i in check.run(documents) if i.code not in self.disabled
            )
        issues.sort(key=lambda i: (i.path.as_posix(), i.severity != ERROR))
        return CheckReport(issues=issues, checked=len(documents) + len(header_errors))
