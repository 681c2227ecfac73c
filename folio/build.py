"""Site building functionality for Folio.

This module contains the core logic for building a static site from a
content repository. It loads configuration, loads and checks documents,
renders layouts and writes output files.

Key functions:
- load_config: Loads site configuration from folio.yaml.
- load_content: Loads documents and runs content checks.
- build_site: Builds the entire site.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateSyntaxError

from .checks import CheckFailed, CheckReport, ContentChecker
from .content import ContentProcessor, Document
from .feeds import create_default_feed_registry
from .frontmatter import HeaderError
from .locales import LocaleResolver
from .templates import TemplateEngine
from .utils import ensure_clean_dir

CONFIG_FILENAME = "folio.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "content_dir": "content",
    "output_dir": "output",
    "default_language": "en",
    "languages": ["en", "tr"],
    "title": "",
    "description": "",
    "url": "",
    "port": 4000,
    "checks": {"disable": []},
}


class ConfigError(Exception):
    """Invalid folio.yaml."""


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        documents: All documents written to the site.
        output_dir: Directory where the site was built.
        report: Content check report (empty when checks were skipped).
        feeds: Feed filenames written.
    """

    documents: list[Document]
    output_dir: Path
    report: CheckReport
    feeds: list[str]


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping, or if
            checks.disable is neither a code nor a list of codes.
    """
    config = {**DEFAULT_CONFIG, "checks": {"disable": []}}
    config_path = project_root / CONFIG_FILENAME
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{config_path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path}: expected a mapping of settings")
        config.update(loaded)
    languages = config.get("languages") or []
    if isinstance(languages, str):
        languages = [languages]
    default = str(config.get("default_language") or "en")
    config["default_language"] = default
    config["languages"] = [default] + [str(c) for c in languages if str(c) != default]
    checks = config.get("checks")
    if not isinstance(checks, dict):
        checks = {}
    disable = checks.get("disable") or []
    if isinstance(disable, str):
        disable = [disable]
    elif not isinstance(disable, list):
        raise ConfigError(f"{config_path}: checks.disable must be a list of codes")
    config["checks"] = {**checks, "disable": [str(code) for code in disable]}
    config.setdefault("ws_port", int(config.get("port", 4000)) + 1)
    return config


def locale_resolver(config: dict[str, Any]) -> LocaleResolver:
    return LocaleResolver(config["default_language"], config["languages"])


def content_dir_of(project_root: Path, config: dict[str, Any]) -> Path:
    content_dir = project_root / config.get("content_dir", "content")
    if not content_dir.exists():
        raise FileNotFoundError(f"Expected content directory at {content_dir}")
    return content_dir


def load_content(
    project_root: Path,
    config: dict[str, Any] | None = None,
    include_drafts: bool = False,
) -> tuple[list[Document], CheckReport]:
    """Load every document and run the content checks.

    Args:
        project_root: Root directory of the project.
        config: Loaded configuration; read from folio.yaml when omitted.
        include_drafts: Whether to include draft documents.

    Returns:
        Tuple of (documents that loaded, check report).
    """
    config = config or load_config(project_root)
    locales = locale_resolver(config)
    content_dir = content_dir_of(project_root, config)
    documents, header_errors = ContentProcessor(content_dir, locales).collect(
        include_drafts=include_drafts
    )
    disabled = config["checks"].get("disable") or []
    report = ContentChecker(locales, disabled=disabled).run(documents, header_errors)
    return documents, report


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    root_url: str | None = None,
    run_checks: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include draft documents.
        root_url: Optional base URL for ``url_for`` links.
        run_checks: Whether to refuse the build when content checks fail.
        output_dir_override: Optional path to write the build output instead
            of the configured output_dir.

    Returns:
        BuildResult with the written documents and the check report.

    Raises:
        HeaderError: If checks are skipped and a header is malformed.
        CheckFailed: If content checks report errors.
        BuildError: If a document fails to render.
    """
    config = load_config(project_root)
    content_dir = content_dir_of(project_root, config)
    if run_checks:
        documents, report = load_content(project_root, config, include_drafts)
        if not report.ok:
            raise CheckFailed(report)
    else:
        documents = ContentProcessor(content_dir, locale_resolver(config)).load(
            include_drafts=include_drafts
        )
        report = CheckReport(checked=len(documents))

    output_dir = output_dir_override or (
        project_root / config.get("output_dir", "output")
    )
    _guard_output_dir(output_dir, project_root, content_dir)
    ensure_clean_dir(output_dir)

    engine = TemplateEngine(content_dir, config, root_url=root_url or "")
    engine.update_documents(documents)
    for doc in documents:
        try:
            rendered = engine.render_document(doc)
        except TemplateSyntaxError as exc:
            raise BuildError(
                doc.path,
                f"Template syntax error in {exc.name or 'layout'} "
                f"on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc
        except Exception as exc:
            raise BuildError(doc.path, _format_error_message(exc), exc) from exc
        _write_document(output_dir, doc, rendered)

    feeds = create_default_feed_registry().generate_all(output_dir, documents, config)
    return BuildResult(
        documents=documents, output_dir=output_dir, report=report, feeds=feeds
    )


def _guard_output_dir(output_dir: Path, project_root: Path, content_dir: Path) -> None:
    """Refuse output locations that would wipe the project or its content."""
    resolved = output_dir.resolve()
    content = content_dir.resolve()
    for protected in (project_root.resolve(), content):
        if resolved == protected or resolved in protected.parents:
            raise ConfigError(f"Refusing to clean output directory {output_dir}")
    if content in resolved.parents:
        raise ConfigError(f"Output directory {output_dir} is inside the content")


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    if error_type == "UndefinedError":
        return f"Undefined variable: {exc}"
    if error_type == "TemplateNotFound":
        return f"Layout not found: {exc}"
    return f"{error_type}: {exc}"


def _write_document(output_dir: Path, doc: Document, rendered: str) -> None:
    """Write a rendered document to ``<output_dir>/<url>/index.html``."""
    target_dir = output_dir / doc.url.strip("/")
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / "index.html").write_text(rendered, encoding="utf-8")


__all__ = [
    "BuildError",
    "BuildResult",
    "CheckFailed",
    "ConfigError",
    "HeaderError",
    "build_site",
    "load_config",
    "load_content",
]
