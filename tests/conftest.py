from pathlib import Path

import pytest

PROFILE_EN = """---
title: About
name: Ada
role: Engineer
skills:
  Languages:
  - Python
experience:
- date: 2022 - present
  title: Engineer
  company: Acme
  description: APIs.
---
Hello, I am Ada.
"""

PROFILE_TR = """---
title: Hakkımda
name: Ada
role: Mühendis
skills:
  Diller:
  - Python
experience:
- date: 2022 - günümüz
  title: Mühendis
  company: Acme
  description: API'ler.
---
Merhaba, ben Ada.
"""

LISTING_EN = """---
title: Projects
layout: projects
projects:
- name: Ledger
  description: Bookkeeping.
  tech:
  - Python
  github: https://github.com/ada/ledger
- name: Zephyr
  description: Weather station.
  tech:
  - Go
  - HTMX
  github: https://github.com/ada/zephyr
- name: Atlas
  description: Offline maps.
  tech:
  - Rust
  github: https://github.com/ada/atlas
---
"""

LISTING_TR = """---
title: Projeler
layout: projects
projects:
- name: Ledger
  description: Muhasebe.
  tech:
  - Python
  github: https://github.com/ada/ledger
- name: Zephyr
  description: Hava istasyonu.
  tech:
  - Go
  - HTMX
  github: https://github.com/ada/zephyr
- name: Atlas
  description: Çevrimdışı haritalar.
  tech:
  - Rust
  github: https://github.com/ada/atlas
---
"""

POST_EN = """---
title: Hello World
date: 2024-01-15
tags:
- meta
---
# Intro

First post.
"""

POST_TR = """---
title: Merhaba Dünya
date: 2024-01-15
tags:
- meta
---
İlk yazı.
"""

CONFIG = """title: Test Site
url: https://example.com
default_language: en
languages:
- en
- tr
"""


def write_doc(root: Path, rel_path: str, text: str) -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path):
    """A bilingual project whose content passes every check."""
    root = tmp_path / "site"
    write_doc(root, "folio.yaml", CONFIG)
    content = root / "content"
    write_doc(content, "index.md", PROFILE_EN)
    write_doc(content, "tr/index.md", PROFILE_TR)
    write_doc(content, "projects.md", LISTING_EN)
    write_doc(content, "tr/projects.md", LISTING_TR)
    write_doc(content, "posts/2024-01-15-hello-world.md", POST_EN)
    write_doc(content, "tr/posts/2024-01-15-hello-world.md", POST_TR)
    return root


@pytest.fixture
def write():
    return write_doc
