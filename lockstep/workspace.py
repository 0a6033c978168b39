"""Workspace discovery, publish ordering and version rewriting."""

from __future__ import annotations

import glob
from pathlib import Path

from .deps import dep_canonical_name, rewrite_pyproject
from .errors import ConfigError
from .models import PackageInfo, VersionBump
from .toml import (
    get_all_dependency_strings,
    get_project_name,
    get_project_version,
    get_workspace_member_globs,
    is_private,
    load_pyproject,
    save_pyproject,
    set_lockstep_version,
)


def discover_packages(root: Path) -> dict[str, PackageInfo]:
    """Find every package listed in [tool.uv.workspace].members.

    Returns:
        Map of canonical package name to PackageInfo, in directory order.

    Raises:
        ConfigError: If no members are defined or none match.
    """
    root_doc = load_pyproject(root / "pyproject.toml")

    member_dirs: list[Path] = []
    for pattern in get_workspace_member_globs(root_doc):
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / "pyproject.toml").exists():
                member_dirs.append(p)

    if not member_dirs:
        raise ConfigError("No packages found matching workspace members")

    packages: dict[str, PackageInfo] = {}
    raw_deps: dict[str, list[str]] = {}
    for d in member_dirs:
        doc = load_pyproject(d / "pyproject.toml")
        name = get_project_name(doc, d.name)
        packages[name] = PackageInfo(
            path=str(d.relative_to(root)),
            version=get_project_version(doc),
            private=is_private(doc),
        )
        raw_deps[name] = get_all_dependency_strings(doc)

    for name, deps in raw_deps.items():
        for dep_str in deps:
            dep_name = dep_canonical_name(dep_str)
            if dep_name in packages and dep_name not in packages[name].deps:
                packages[name].deps.append(dep_name)

    return packages


def publish_order(packages: dict[str, PackageInfo]) -> list[str]:
    """Order packages so every dependency is published before its dependents.

    Independent packages come out alphabetically, so the order is stable
    between runs.

    Raises:
        RuntimeError: If the internal dependencies form a cycle.
    """
    order: list[str] = []
    done: set[str] = set()
    visiting: list[str] = []

    def visit(name: str) -> None:
        if name in done:
            return
        if name in visiting:
            cycle = visiting[visiting.index(name):] + [name]
            raise RuntimeError(f"Dependency cycle detected: {' → '.join(cycle)}")
        visiting.append(name)
        for dep in sorted(packages[name].deps):
            if dep in packages:
                visit(dep)
        visiting.pop()
        done.add(name)
        order.append(name)

    for name in sorted(packages):
        visit(name)
    return order


def write_version(
    root: Path, packages: dict[str, PackageInfo], version: str
) -> dict[str, VersionBump]:
    """Move the whole workspace to `version`.

    Records the version in [tool.lockstep] of the root pyproject.toml and
    in every member's [project].version, pinning internal deps exactly.
    Private packages are versioned too so the workspace stays consistent.

    Returns:
        Map of package name to the bump applied.
    """
    root_pyproject = root / "pyproject.toml"
    root_doc = load_pyproject(root_pyproject)
    set_lockstep_version(root_doc, version)
    save_pyproject(root_pyproject, root_doc)

    bumped: dict[str, VersionBump] = {}
    for name, info in packages.items():
        rewrite_pyproject(root / info.path / "pyproject.toml", version, packages.keys())
        bumped[name] = VersionBump(old=info.version, new=version)
    return bumped
