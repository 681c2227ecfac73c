"""Folio content toolkit.

This package turns a repository of prose content (blog posts, an about page,
a projects listing and their localized variants) into a static site. Content
documents are Markdown files with a YAML metadata header.

The main entry point is the CLI module, which provides commands for scaffolding
a content repository, checking it against the content contract, normalizing
headers, building the site and running a preview server.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
