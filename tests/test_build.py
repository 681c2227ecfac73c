import pytest

from folio.build import (
    BuildError,
    CheckFailed,
    ConfigError,
    HeaderError,
    build_site,
    load_config,
    load_content,
)


def test_load_config_defaults_and_language_order(tmp_path):
    config = load_config(tmp_path)
    assert config["content_dir"] == "content"
    assert config["languages"] == ["en", "tr"]
    assert config["ws_port"] == 4001

    (tmp_path / "folio.yaml").write_text(
        "default_language: tr\nlanguages: [en, tr, de]\nport: 5000\nchecks: nope\n",
        encoding="utf-8",
    )
    config = load_config(tmp_path)
    assert config["languages"] == ["tr", "en", "de"]
    assert config["ws_port"] == 5001
    assert config["checks"] == {"disable": []}


def test_load_config_normalizes_disabled_checks(tmp_path):
    config_path = tmp_path / "folio.yaml"
    config_path.write_text("checks:\n  disable: title-missing\n", encoding="utf-8")
    assert load_config(tmp_path)["checks"]["disable"] == ["title-missing"]

    config_path.write_text("checks:\n  disable: [url-invalid]\n", encoding="utf-8")
    assert load_config(tmp_path)["checks"]["disable"] == ["url-invalid"]

    config_path.write_text("checks:\n  disable: 3\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="checks.disable"):
        load_config(tmp_path)


def test_load_config_rejects_bad_yaml(tmp_path):
    (tmp_path / "folio.yaml").write_text("title: [oops\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)
    (tmp_path / "folio.yaml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(tmp_path)


def test_build_writes_pages_and_feeds(project):
    result = build_site(project)
    out = project / "output"
    assert result.output_dir == out
    assert len(result.documents) == 6
    assert result.feeds == ["sitemap.xml", "rss.xml"]
    assert (out / "index.html").exists()
    assert (out / "tr" / "index.html").exists()
    assert (out / "projects" / "index.html").exists()
    assert (out / "tr" / "posts" / "hello-world" / "index.html").exists()
    assert "Hakkımda" in (out / "tr" / "index.html").read_text(encoding="utf-8")
    assert result.report.ok_strict


def test_build_cleans_previous_output(project):
    stale = project / "output" / "old" / "index.html"
    stale.parent.mkdir(parents=True)
    stale.write_text("old", encoding="utf-8")
    build_site(project)
    assert not stale.exists()


def test_build_refuses_failing_content(project, write):
    write(project / "content", "uses.md", "---\ndescription: untitled\n---\n")
    with pytest.raises(CheckFailed) as excinfo:
        build_site(project)
    assert [i.code for i in excinfo.value.report.errors] == ["title-missing"]
    assert not (project / "output").exists()

    result = build_site(project, run_checks=False)
    assert (result.output_dir / "uses" / "index.html").exists()


def test_skipped_checks_still_fail_on_bad_headers(project, write):
    write(project / "content", "broken.md", "---\ntitle: [oops\n---\n")
    with pytest.raises(HeaderError):
        build_site(project, run_checks=False)


def test_drafts_are_built_on_request(project, write):
    write(project / "content", "_wip.md", "---\ntitle: WIP\n---\n")
    write(project / "content", "tr/_wip.md", "---\ntitle: Taslak\n---\n")
    assert not (build_site(project).output_dir / "wip").exists()
    result = build_site(project, include_drafts=True)
    assert (result.output_dir / "wip" / "index.html").exists()


def test_template_errors_name_the_document(project, write):
    write(project / "content", "_layouts/post.html.jinja", "{% if %}")
    with pytest.raises(BuildError) as excinfo:
        build_site(project)
    assert excinfo.value.source_path.name == "2024-01-15-hello-world.md"
    assert "Template syntax error" in excinfo.value.message


def test_output_dir_must_not_wipe_the_project(project):
    (project / "folio.yaml").write_text(
        "title: Test\noutput_dir: .\n", encoding="utf-8"
    )
    with pytest.raises(ConfigError):
        build_site(project)
    assert (project / "content" / "index.md").exists()

    with pytest.raises(ConfigError):
        build_site(project, output_dir_override=project / "content" / "out")


def test_load_content_reports(project, write):
    write(project / "content", "broken.md", "---\ntitle: [oops\n---\n")
    docs, report = load_content(project)
    assert len(docs) == 6
    assert [i.code for i in report.errors] == ["header-malformed"]

    (project / "folio.yaml").write_text(
        "checks:\n  disable: [header-malformed]\n", encoding="utf-8"
    )
    assert load_content(project)[1].ok


def test_missing_content_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        build_site(tmp_path)
