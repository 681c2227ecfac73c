from folio.models import (
    KIND_LISTING,
    KIND_PAGE,
    KIND_POST,
    KIND_PROFILE,
    Listing,
    Profile,
    Project,
    classify,
)


def test_classify_by_header_then_path():
    assert classify({"projects": []}, "projects.md") == KIND_LISTING
    assert classify({"skills": {}, "featured": []}, "index.md") == KIND_LISTING
    assert classify({"experience": []}, "index.md") == KIND_PROFILE
    assert classify({"title": "Hi"}, "posts/hello.md") == KIND_POST
    assert classify({"title": "Hi"}, "tr/posts/hello.md", ("tr",)) == KIND_POST
    assert classify({}, "2024-01-15-notes.md") == KIND_POST
    assert classify({"title": "Uses"}, "uses.md") == KIND_PAGE
    assert classify({}, "tr/posts.md", ("tr",)) == KIND_PAGE


def test_profile_keeps_authored_order_and_tolerates_bad_fields():
    header = {
        "name": "Ada",
        "skills": {"Tools": ["Docker", "Git"], "Languages": "Python", "Empty": None},
        "experience": [
            {"date": "2022 - present", "title": "Engineer", "company": "Acme"},
            "not a mapping",
        ],
        "social": {"github": "https://github.com/ada"},
    }
    profile = Profile.from_header(header)
    assert list(profile.skills) == ["Tools", "Languages", "Empty"]
    assert profile.skills["Tools"] == ["Docker", "Git"]
    assert profile.skills["Languages"] == ["Python"]
    assert profile.skills["Empty"] == []
    assert len(profile.experience) == 1
    assert profile.experience[0].company == "Acme"
    assert profile.experience[0].description == ""
    assert profile.social == {"github": "https://github.com/ada"}
    assert profile.role == ""

    assert Profile.from_header({"skills": "oops"}).skills == {}


def test_listing_from_header():
    header = {
        "subtitle": "Things I built",
        "featured": [{"name": "Ledger", "tech": ["Python"], "year": 2024}],
        "projects": [{"name": "dotfiles", "tech": "Shell"}],
        "callout": {"title": "Hire me", "link": {"text": "Contact", "url": "/contact/"}},
    }
    listing = Listing.from_header(header)
    assert listing.subtitle == "Things I built"
    assert listing.featured == [Project(name="Ledger", tech=["Python"], year="2024")]
    assert listing.projects[0].tech == ["Shell"]
    assert listing.callout.title == "Hire me"
    assert listing.callout.link.url == "/contact/"

    empty = Listing.from_header({"projects": None, "callout": "text"})
    assert empty.projects == []
    assert empty.callout is None
