from datetime import datetime
from pathlib import Path

import pytest

from folio.content import (
    ContentProcessor,
    DocumentBuilder,
    FileContentLoader,
    LayoutResolver,
    UrlDeriver,
)
from folio.frontmatter import HeaderError
from folio.locales import LocaleResolver
from folio.models import KIND_LISTING, KIND_PAGE, KIND_POST, KIND_PROFILE


def test_loader_skips_internal_dirs_and_drafts(tmp_path, write):
    write(tmp_path, "index.md", "# Home")
    write(tmp_path, "posts/_draft.md", "# Draft")
    write(tmp_path, "_layouts/readme.md", "layouts")
    write(tmp_path, ".git/notes.md", "x")
    write(tmp_path, "notes.txt", "ignore")

    loader = FileContentLoader(tmp_path)
    assert [p.name for p in loader.iter_files()] == ["index.md"]
    assert [p.name for p in loader.iter_files(include_drafts=True)] == [
        "index.md",
        "_draft.md",
    ]


def test_url_deriver():
    deriver = UrlDeriver()
    assert deriver.derive(Path("index.md"), "index") == "/"
    assert deriver.derive(Path("tr/index.md"), "index") == "/tr/"
    assert deriver.derive(Path("tr/posts/a.md"), "a") == "/tr/posts/a/"
    assert deriver.derive(Path("uses.md"), "uses") == "/uses/"


def test_layout_resolver_prefers_header():
    resolver = LayoutResolver()
    assert resolver.resolve({"layout": " projects "}, KIND_LISTING) == "projects"
    assert resolver.resolve({}, KIND_PROFILE) == "profile"
    assert resolver.resolve({"layout": ""}, KIND_PAGE) == "default"
    assert resolver.resolve({"layout": 3}, KIND_POST) == "post"


def test_processor_builds_documents(project):
    docs = ContentProcessor(project / "content").load()
    by_path = {d.rel_path: d for d in docs}
    assert sorted(by_path) == [
        "index.md",
        "posts/2024-01-15-hello-world.md",
        "projects.md",
        "tr/index.md",
        "tr/posts/2024-01-15-hello-world.md",
        "tr/projects.md",
    ]

    home = by_path["index.md"]
    assert home.url == "/"
    assert home.kind == KIND_PROFILE
    assert home.layout == "profile"
    assert home.lang == "en"
    assert home.profile.name == "Ada"
    assert home.profile.skills == {"Languages": ["Python"]}
    assert home.description == "Hello, I am Ada."
    assert home.listing is None

    tr_home = by_path["tr/index.md"]
    assert tr_home.url == "/tr/"
    assert tr_home.lang == "tr"
    assert tr_home.translation_key == "index.md"
    assert tr_home.title == "Hakkımda"

    listing = by_path["projects.md"]
    assert listing.kind == KIND_LISTING
    assert listing.layout == "projects"
    assert listing.listing.projects[0].github == "https://github.com/ada/ledger"
    assert [p.name for p in listing.listing.projects] == ["Ledger", "Zephyr", "Atlas"]
    assert listing.listing.projects[1].tech == ["Go", "HTMX"]

    post = by_path["posts/2024-01-15-hello-world.md"]
    assert post.kind == KIND_POST
    assert post.url == "/posts/hello-world/"
    assert post.slug == "hello-world"
    assert post.date == datetime(2024, 1, 15)
    assert post.tags == ["meta"]
    assert post.toc[0].id == "intro"
    assert '<h1 id="intro">Intro</h1>' in post.content


def test_date_falls_back_to_filename_and_title_to_name(tmp_path, write):
    path = write(tmp_path, "2023-05-01-notes.md", "Just text.\n")
    doc = DocumentBuilder(tmp_path).build(path)
    assert doc.date == datetime(2023, 5, 1)
    assert doc.title == ""
    assert doc.display_title == "Notes"
    assert doc.kind == KIND_POST


def test_header_draft_is_hidden_unless_requested(tmp_path, write):
    write(tmp_path, "index.md", "---\ntitle: Home\n---\n")
    write(tmp_path, "wip.md", "---\ntitle: WIP\ndraft: true\n---\n")
    write(tmp_path, "_secret.md", "---\ntitle: Secret\n---\n")

    processor = ContentProcessor(tmp_path)
    assert [d.rel_path for d in processor.load()] == ["index.md"]
    with_drafts = processor.load(include_drafts=True)
    assert [d.rel_path for d in with_drafts] == ["_secret.md", "index.md", "wip.md"]
    assert all(d.draft for d in with_drafts if d.rel_path != "index.md")


def test_collect_gathers_header_errors(tmp_path, write):
    write(tmp_path, "good.md", "---\ntitle: Good\n---\n")
    bad = write(tmp_path, "bad.md", "---\ntitle: [broken\n---\n")

    processor = ContentProcessor(tmp_path, LocaleResolver())
    docs, errors = processor.collect()
    assert [d.rel_path for d in docs] == ["good.md"]
    assert [e.source_path for e in errors] == [bad]

    with pytest.raises(HeaderError):
        processor.load()


def test_undecodable_file_is_a_header_error(tmp_path, write):
    write(tmp_path, "good.md", "---\ntitle: Good\n---\n")
    latin = tmp_path / "latin.md"
    latin.write_bytes(b"---\ntitle: Caf\xe9\n---\n")

    docs, errors = ContentProcessor(tmp_path).collect()
    assert [d.rel_path for d in docs] == ["good.md"]
    assert [e.source_path for e in errors] == [latin]
    assert errors[0].message.startswith("File is not valid UTF-8")
