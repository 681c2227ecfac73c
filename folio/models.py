"""Typed views over parsed metadata headers.

A header is a plain mapping straight from YAML. The classes here give the
two structured document shapes (profile and listing) named fields while
keeping every list in the order it was authored.

Construction is lenient: missing or oddly typed fields become empty values.
Contract violations are reported by :mod:`folio.checks`, never raised here,
so a half-written document can still be previewed.

Key classes:
- Profile: about/home page describing a person.
- Listing: page rendering a collection of projects.
- Project, ExperienceEntry, Callout, Link: nested records.

Key functions:
- classify: Decide the kind of a document from its header and path.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any

KIND_PROFILE = "profile"
KIND_LISTING = "listing"
KIND_POST = "post"
KIND_PAGE = "page"

PROFILE_FIELDS = ("skills", "experience", "social", "role")
LISTING_FIELDS = ("projects", "featured")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _records(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


@dataclass
class Link:
    text: str
    url: str

    @classmethod
    def from_mapping(cls, data: Any) -> Link:
        data = _mapping(data)
        return cls(text=_text(data.get("text")), url=_text(data.get("url")))


@dataclass
class Callout:
    """Call-to-action block at the end of a listing."""

    title: str
    description: str
    link: Link | None = None

    @classmethod
    def from_mapping(cls, data: Any) -> Callout:
        data = _mapping(data)
        link = Link.from_mapping(data["link"]) if "link" in data else None
        return cls(
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            link=link,
        )


@dataclass
class Project:
    """A single project record from a listing's ``featured`` or ``projects``.

    Attributes:
        name: Project name.
        description: One or two sentence summary.
        tech: Technologies used, in display order.
        year: Year (or range) the project was built.
        github: Repository URL.
        demo: Optional live demo URL.
        image: Optional screenshot path or URL.
    """

    name: str
    description: str = ""
    tech: list[str] = field(default_factory=list)
    year: str = ""
    github: str = ""
    demo: str = ""
    image: str = ""

    @classmethod
    def from_mapping(cls, data: Any) -> Project:
        data = _mapping(data)
        tech = data.get("tech") or []
        if not isinstance(tech, list):
            tech = [tech]
        return cls(
            name=_text(data.get("name")),
            description=_text(data.get("description")),
            tech=[_text(t) for t in tech],
            year=_text(data.get("year")),
            github=_text(data.get("github")),
            demo=_text(data.get("demo")),
            image=_text(data.get("image")),
        )


@dataclass
class ExperienceEntry:
    date: str
    title: str
    company: str
    description: str = ""

    @classmethod
    def from_mapping(cls, data: Any) -> ExperienceEntry:
        data = _mapping(data)
        return cls(
            date=_text(data.get("date")),
            title=_text(data.get("title")),
            company=_text(data.get("company")),
            description=_text(data.get("description")),
        )


@dataclass
class Profile:
    """Profile document fields.

    Attributes:
        name: Person's name.
        role: Job title or role line.
        location: Where the person is based.
        avatar: Avatar image path or URL.
        tagline: Short one-line pitch.
        skills: Category name to ordered skill names.
        experience: Ordered work history.
        social: Platform name to handle or URL.
    """

    name: str = ""
    role: str = ""
    location: str = ""
    avatar: str = ""
    tagline: str = ""
    skills: dict[str, list[str]] = field(default_factory=dict)
    experience: list[ExperienceEntry] = field(default_factory=list)
    social: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_header(cls, header: Mapping[str, Any]) -> Profile:
        skills: dict[str, list[str]] = {}
        for category, names in _mapping(header.get("skills")).items():
            if isinstance(names, list):
                skills[_text(category)] = [_text(n) for n in names]
            elif names is None:
                skills[_text(category)] = []
            else:
                skills[_text(category)] = [_text(names)]
        return cls(
            name=_text(header.get("name")),
            role=_text(header.get("role")),
            location=_text(header.get("location")),
            avatar=_text(header.get("avatar")),
            tagline=_text(header.get("tagline")),
            skills=skills,
            experience=[
                ExperienceEntry.from_mapping(item)
                for item in _records(header.get("experience"))
            ],
            social={
                _text(k): _text(v) for k, v in _mapping(header.get("social")).items()
            },
        )


@dataclass
class Listing:
    """Listing document fields."""

    subtitle: str = ""
    featured: list[Project] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    callout: Callout | None = None

    @classmethod
    def from_header(cls, header: Mapping[str, Any]) -> Listing:
        callout = header.get("callout")
        return cls(
            subtitle=_text(header.get("subtitle")),
            featured=[Project.from_mapping(p) for p in _records(header.get("featured"))],
            projects=[Project.from_mapping(p) for p in _records(header.get("projects"))],
            callout=Callout.from_mapping(callout) if isinstance(callout, Mapping) else None,
        )


def classify(header: Mapping[str, Any], rel_path: str, languages: tuple[str, ...] = ()) -> str:
    """Decide the kind of a document.

    Args:
        header: Parsed metadata header.
        rel_path: POSIX path relative to the content directory.
        languages: Language codes that may prefix ``rel_path``.

    Returns:
        One of ``profile``, ``listing``, ``post`` or ``page``.
    """
    if any(key in header for key in LISTING_FIELDS):
        return KIND_LISTING
    if any(key in header for key in PROFILE_FIELDS):
        return KIND_PROFILE
    parts = PurePosixPath(rel_path).parts
    if len(parts) > 1 and parts[0] in languages:
        parts = parts[1:]
    if len(parts) > 1 and parts[0] == "posts":
        return KIND_POST
    stem_parts = PurePosixPath(rel_path).stem.split("-")
    if len(stem_parts) >= 4 and all(p.isdigit() for p in stem_parts[:3]):
        return KIND_POST
    return KIND_PAGE
