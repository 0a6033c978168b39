"""pyproject.toml reading and writing.

Uses tomlkit so version rewrites keep the files' formatting and comments.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from packaging.utils import canonicalize_name

from .errors import ConfigError

PRIVATE_CLASSIFIER = "Private :: Do Not Upload"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Raises:
        ConfigError: If the file does not exist.
    """
    if not path.exists():
        raise ConfigError(f"No pyproject.toml found at {path}")
    return tomlkit.parse(path.read_text())


def save_pyproject(path: Path, doc: tomlkit.TOMLDocument) -> None:
    path.write_text(tomlkit.dumps(doc))


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Canonical (PEP 503) name from [project].name."""
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    return doc.get("project", {}).get("version", "0.0.0")


def is_private(doc: tomlkit.TOMLDocument) -> bool:
    """True when the package opts out of publishing via its classifiers."""
    classifiers = doc.get("project", {}).get("classifiers", [])
    return PRIVATE_CLASSIFIER in [str(c) for c in classifiers]


def get_all_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect PEP 508 strings from dependencies, optional-dependencies
    and [dependency-groups]."""
    project = doc.get("project", {})
    deps: list[str] = list(project.get("dependencies", []))
    for group_deps in project.get("optional-dependencies", {}).values():
        deps.extend(group_deps)
    for group_deps in doc.get("dependency-groups", {}).values():
        # PEP 735 groups may also hold {include-group = "..."} tables
        deps.extend(d for d in group_deps if isinstance(d, str))
    return deps


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Member glob patterns from [tool.uv.workspace].

    Raises:
        ConfigError: If no workspace members are defined.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise ConfigError("No [tool.uv.workspace] members defined in root pyproject.toml")
    return list(members)


def get_lockstep_table(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    """The [tool.lockstep] table as plain data.

    Raises:
        ConfigError: If the table is missing.
    """
    table = doc.get("tool", {}).get("lockstep")
    if table is None:
        raise ConfigError("No [tool.lockstep] table in root pyproject.toml")
    return table.unwrap() if hasattr(table, "unwrap") else dict(table)


def set_lockstep_version(doc: tomlkit.TOMLDocument, version: str) -> None:
    """Record `version` as the project's current version in [tool.lockstep]."""
    doc["tool"]["lockstep"]["version"] = version  # type: ignore[index]
