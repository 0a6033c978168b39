"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

ROOT_PYPROJECT = """\
[tool.uv.workspace]
members = ["packages/*"]

[tool.lockstep]
version = "3.9.2"
smoke-test = ["uv run pytest -q"]
"""

PACKAGES = {
    "pkg-alpha": """\
[project]
name = "pkg-alpha"
version = "3.9.2"
dependencies = ["click>=8.0"]
""",
    "pkg-beta": """\
[project]
name = "pkg-beta"
version = "3.9.2"
dependencies = [
    "pkg-alpha>=3.9",
    "requests>=2.0",
]

[project.optional-dependencies]
dev = ["pkg_alpha[extra]>=3.0"]
""",
    "pkg-gamma": """\
[project]
name = "pkg-gamma"
version = "3.9.2"
dependencies = ["pkg-beta==3.9.2"]

[dependency-groups]
lint = ["ruff"]
test = ["pkg-alpha", {include-group = "lint"}]
""",
    "pkg-docs": """\
[project]
name = "pkg-docs"
version = "3.9.2"
classifiers = ["Private :: Do Not Upload"]
dependencies = ["pkg-gamma"]
""",
}


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A uv workspace of four lockstep packages, one of them private."""
    (tmp_path / "pyproject.toml").write_text(ROOT_PYPROJECT)
    for name, content in PACKAGES.items():
        pkg_dir = tmp_path / "packages" / name
        pkg_dir.mkdir(parents=True)
        (pkg_dir / "pyproject.toml").write_text(content)
    return tmp_path


CLEAN_STATUS = """\
On branch release
Your branch is up to date with 'origin/release'.

nothing to commit, working tree clean"""

DIRTY_STATUS = """\
On branch release
Your branch is up to date with 'origin/release'.

Changes not staged for commit:
  (use "git add <file>..." to update what will be committed)
\tmodified:   README.md

no changes added to commit (use "git add" and/or "git commit -a")"""

BEHIND_STATUS = """\
On branch release
Your branch is behind 'origin/release' by 2 commits, and can be fast-forwarded.
  (use "git pull" to update your local branch)

nothing to commit, working tree clean"""
