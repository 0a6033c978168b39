"""PEP 508 dependency handling.

Every public package is released at the same version, and internal
dependencies are pinned exactly so consumers always get a set of packages
that were published together.
"""

from __future__ import annotations

from collections.abc import Collection
from pathlib import Path
from typing import Any, cast

from packaging.requirements import Requirement
from packaging.utils import canonicalize_name

from .toml import load_pyproject, save_pyproject


def dep_canonical_name(dep_str: str) -> str:
    """Canonical package name of a PEP 508 string.

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(Requirement(dep_str).name)


def pin_dep(dep_str: str, version: str) -> str:
    """Replace the specifier with `==version`, keeping extras and markers.

    Examples:
        pin_dep("pkg>=2.0", "3.1.0") → "pkg==3.1.0"
        pin_dep("pkg[b,a]~=1.0; python_version>'3.9'", "3.1.0")
            → "pkg[a,b]==3.1.0; python_version > \"3.9\""
    """
    req = Requirement(dep_str)
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}=={version}{marker}"


def rewrite_pyproject(pyproject_path: Path, new_version: str, internal: Collection[str]) -> None:
    """Set [project].version and pin internal deps to the same version.

    Pins are rewritten in [project].dependencies,
    [project].optional-dependencies.* and [dependency-groups].*.

    Args:
        pyproject_path: Package pyproject.toml.
        new_version: Release version.
        internal: Canonical names of all workspace packages.
    """
    doc = load_pyproject(pyproject_path)
    project = cast(dict[str, Any], doc["project"])
    project["version"] = new_version

    lists: list[Any] = [project.get("dependencies")]
    lists.extend((project.get("optional-dependencies") or {}).values())
    lists.extend((doc.get("dependency-groups") or {}).values())
    for deps in lists:
        if isinstance(deps, list):
            _pin_dep_list(deps, new_version, internal)

    save_pyproject(pyproject_path, doc)


def _pin_dep_list(deps: list, version: str, internal: Collection[str]) -> None:
    """Pin internal entries of a dependency list in place."""
    for i, dep in enumerate(deps):
        # dependency groups may contain {include-group = ...} tables
        if not isinstance(dep, str):
            continue
        if dep_canonical_name(str(dep)) in internal:
            deps[i] = pin_dep(str(dep), version)
