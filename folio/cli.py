"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- new: Scaffold a new content repository.
- check: Check content against the content contract.
- build: Build the site into the output directory.
- fmt: Normalize document headers.
- post: Create a new blog post interactively.
- serve: Run the preview server with live reload.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
from datetime import datetime
from pathlib import Path

import click
import questionary

from . import __version__
from .build import (
    BuildError,
    ConfigError,
    build_site,
    content_dir_of,
    load_config,
    load_content,
)
from .checks import ERROR, CheckFailed, CheckReport
from .content import FileContentLoader
from .frontmatter import (
    CommentedHeaderError,
    HeaderError,
    normalize_document,
    read_document,
    render_document,
)
from .utils import slugify, titleize

# Path to the scaffold copied by `folio new`
_SCAFFOLD_DIR = Path(__file__).parent / "scaffold"


@click.group()
@click.version_option(version=__version__, prog_name="folio")
def cli():
    """Folio content toolkit."""


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new content repository."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Folio site created at {target}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--strict", is_flag=True, help="Fail on warnings too")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Report format",
)
def check(drafts: bool, strict: bool, output_format: str):
    """Check content against the content contract."""
    project_root = Path.cwd()
    config = _load_config_or_fail(project_root)
    try:
        _, report = load_content(project_root, config, include_drafts=drafts)
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from None

    if output_format == "json":
        payload = {
            "checked": report.checked,
            "errors": len(report.errors),
            "warnings": len(report.warnings),
            "issues": [issue.to_dict(project_root) for issue in report.issues],
        }
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        _print_report(report, project_root)

    if not (report.ok_strict if strict else report.ok):
        raise SystemExit(1)


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--skip-checks", is_flag=True, help="Build even if content checks fail")
def build(drafts: bool, skip_checks: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    _load_config_or_fail(project_root)
    try:
        result = build_site(
            project_root, include_drafts=drafts, run_checks=not skip_checks
        )
    except CheckFailed as exc:
        click.echo(click.style("Build refused:", fg="red", bold=True), err=True)
        _print_report(exc.report, project_root, errors_only=True)
        raise SystemExit(1) from None
    except (BuildError, HeaderError) as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        rel_path = _relative(exc.source_path, project_root)
        click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    except (ConfigError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from None
    if result.report.warnings:
        _print_report(result.report, project_root)
    click.echo(f"Built {len(result.documents)} documents into {result.output_dir}")


@cli.command()
@click.option(
    "--check", "check_only", is_flag=True, help="Only report files that would change"
)
def fmt(check_only: bool):
    """Normalize document headers."""
    project_root = Path.cwd()
    config = _load_config_or_fail(project_root)
    try:
        content_dir = content_dir_of(project_root, config)
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from None

    changed: list[Path] = []
    failed = False
    for path in FileContentLoader(content_dir).iter_files(include_drafts=True):
        try:
            original = read_document(path)
            normalized = normalize_document(original, path)
        except HeaderError as exc:
            # commented headers stay untouched, the round trip drops comments
            skipped = isinstance(exc, CommentedHeaderError)
            message = f"{_relative(path, project_root)}: {exc.message}"
            click.echo(
                click.style(message, fg="yellow" if skipped else "red"), err=True
            )
            failed = failed or not skipped
            continue
        if normalized == original:
            continue
        changed.append(path)
        if not check_only:
            path.write_text(normalized, encoding="utf-8")

    verb = "Would reformat" if check_only else "Reformatted"
    for path in changed:
        click.echo(f"{verb} {_relative(path, project_root)}")
    noun = "file" if len(changed) == 1 else "files"
    status = "to reformat" if check_only else "reformatted"
    click.echo(f"{len(changed)} {noun} {status}")
    if failed or (check_only and changed):
        raise SystemExit(1)


@cli.command()
def post():
    """Create a new blog post interactively."""
    project_root = Path.cwd()
    config = _load_config_or_fail(project_root)
    content_dir = project_root / config.get("content_dir", "content")
    if not content_dir.exists():
        raise click.ClickException(
            f"No {content_dir.name}/ directory found. "
            "Run this command from a Folio project root."
        )

    languages = list(config["languages"])
    lang = languages[0]
    if len(languages) > 1:
        lang = questionary.select(
            "Language:", choices=languages, style=_questionary_style()
        ).ask()
        if lang is None:
            raise click.Abort()

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    tags = questionary.text(
        "Tags (comma separated):", default="", style=_questionary_style()
    ).ask()
    if tags is None:
        raise click.Abort()

    add_date = questionary.confirm(
        "Prefix filename with today's date? (YYYY-MM-DD-)",
        default=True,
        style=_questionary_style(),
    ).ask()
    if add_date is None:
        raise click.Abort()

    today = datetime.now()
    slug = slugify(title)
    filename = f"{today:%Y-%m-%d}-{slug}.md" if add_date else f"{slug}.md"
    posts_dir = content_dir / "posts"
    if lang != config["default_language"]:
        posts_dir = content_dir / lang / "posts"
    target_path = posts_dir / filename

    if target_path.exists():
        raise click.ClickException(
            f"File already exists: {_relative(target_path, project_root)}"
        )
    existing = _existing_slugs(posts_dir)
    if slug in existing:
        raise click.ClickException(
            f"A post with slug '{slug}' already exists: {existing[slug]}"
        )

    header = {
        "title": title,
        "date": today.date(),
        "tags": [t.strip() for t in tags.split(",") if t.strip()],
    }
    posts_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(render_document(header, "\n"), encoding="utf-8")
    click.echo(f"Created {_relative(target_path, project_root)}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the preview server (overrides folio.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket (overrides folio.yaml ws_port)",
)
def serve(drafts: bool, port: int | None, ws_port: int | None):
    """Run the preview server with live reload."""
    project_root = Path.cwd()
    _load_config_or_fail(project_root)
    from .server import PreviewServer

    server = PreviewServer(project_root, http_port=port, ws_port=ws_port)
    server.start(include_drafts=drafts)


def _load_config_or_fail(project_root: Path) -> dict:
    try:
        return load_config(project_root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from None


def _relative(path: Path | None, root: Path) -> str:
    if path is None:
        return "<unknown>"
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def _print_report(report: CheckReport, root: Path, errors_only: bool = False) -> None:
    """Print check issues grouped by file."""
    issues = report.errors if errors_only else report.issues
    current = None
    for issue in issues:
        if issue.path != current:
            current = issue.path
            click.echo(click.style(_relative(issue.path, root), bold=True), err=True)
        color = "red" if issue.severity == ERROR else "yellow"
        label = click.style(f"{issue.severity}[{issue.code}]", fg=color)
        click.echo(f"  {label} {issue.message}", err=True)
    summary = (
        f"Checked {report.checked} documents: "
        f"{len(report.errors)} errors, {len(report.warnings)} warnings"
    )
    click.echo(summary, err=not report.ok)


def _existing_slugs(folder: Path) -> dict[str, str]:
    """Map slugs of existing posts in ``folder`` to their filenames."""
    slugs: dict[str, str] = {}
    if folder.exists():
        for f in folder.iterdir():
            if f.is_file() and f.suffix == ".md":
                slugs[slugify(f.stem)] = f.name
    return slugs


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Create the files for a new content repository.

    Args:
        root: Root directory for the new project.
    """
    for src_path in _SCAFFOLD_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        rel_path = src_path.relative_to(_SCAFFOLD_DIR)
        if rel_path.name == "gitignore.txt":
            rel_path = rel_path.with_name(".gitignore")
        dest_path = root / rel_path
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)

    config_path = root / "folio.yaml"
    config_text = config_path.read_text(encoding="utf-8")
    config_path.write_text(
        config_text.replace("title: My Site", f"title: {titleize(root.name)}"),
        encoding="utf-8",
    )
    _try_git_init(root)


def _try_git_init(root: Path) -> None:
    """Initialize a git repository if git is available."""
    if os.environ.get("FOLIO_SKIP_GIT_INIT") == "1":
        return
    git_bin = shutil.which("git")
    if not git_bin:
        return
    try:
        subprocess.run([git_bin, "init"], cwd=root, check=True, capture_output=True)
    except (OSError, subprocess.CalledProcessError):
        # Non-fatal: user can run git init manually
        pass
