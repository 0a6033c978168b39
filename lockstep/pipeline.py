"""Release pipeline: guard → smoke test → version → pack → publish.

Stages run strictly in sequence, each gated on the one before. Nothing is
rolled back: if packing fails after the version was committed and pushed,
the bump stays, and the run is resumed with --skip-version (and friends).
To make that possible every stage takes its inputs explicitly and returns
what the next stage needs instead of relying on earlier process state.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from packaging.utils import (
    InvalidSdistFilename,
    InvalidWheelFilename,
    canonicalize_name,
    parse_sdist_filename,
    parse_wheel_filename,
)
from packaging.version import InvalidVersion, Version
from pydantic import BaseModel

from .config import LockstepConfig, load_config
from .errors import MissingCredential, PackagingFailed, SmokeTestFailed
from .guard import GuardVerdict, check_release_state
from .models import PackageInfo
from .registry import OtpPrompt, OtpSource, publish_archives
from .resolver import Channel, ReleaseRequest, expected_branch, resolve_next_version
from .shell import git, ok, run, run_line, skip, step, warn
from .versions import SemanticVersion
from .workspace import discover_packages, publish_order, write_version


class PublishOptions(BaseModel):
    """Options of the manual `lockstep publish` flow."""

    channel: str
    dist_tag: str | None = None
    skip_version: bool = False
    skip_pack: bool = False
    skip_publish: bool = False
    skip_smoke_test: bool = False
    bump_major: bool = False
    bump_minor: bool = False
    force: bool = False


def build_request(config: LockstepConfig, options: PublishOptions) -> ReleaseRequest:
    """Validate channel and flags against the recorded version.

    Raises before any side effect: UnresolvedChannel, MalformedVersion,
    BugfixBumpNotAllowed, ConflictingBumpFlags.
    """
    return ReleaseRequest(
        channel=Channel.parse(options.channel),
        current_version=config.current_version,
        bump_major=options.bump_major,
        bump_minor=options.bump_minor,
        force=options.force,
    )


def guard_stage(request: ReleaseRequest, dist_tag: str) -> GuardVerdict:
    """Check the git state for this channel; warn or raise per finding."""
    step("Checking git state")
    branch = expected_branch(request.channel, dist_tag, request.current_version)
    verdict = check_release_state(git("status"), branch, dist_tag, force=request.force)

    for finding in verdict.warnings:
        warn(f"{finding.message}\n\tPassed option: --force :: ignoring")
    verdict.raise_for_failures()

    if not verdict.findings:
        print(f"  {branch}: clean and in sync")
    return verdict


def smoke_test_stage(config: LockstepConfig) -> None:
    step("Running smoke test")
    for command in config.smoke_test:
        print(f"  $ {command}")
        if run_line(command).returncode != 0:
            raise SmokeTestFailed(f"Smoke test failed: {command}")
    ok("Project passes Smoke Test")


def version_stage(root: Path, config: LockstepConfig, request: ReleaseRequest) -> str:
    """Resolve the next version, write it everywhere, commit, tag and push.

    Returns:
        The new version string.
    """
    version = str(resolve_next_version(request))
    step(f"Versioning {request.current_version} → {version}")

    packages = discover_packages(root)
    bumped = write_version(root, packages, version)
    for name, bump in bumped.items():
        print(f"  {name}: {bump.old} → {bump.new}")

    tag = f"v{version}"
    git("add", str(root / "pyproject.toml"))
    for info in packages.values():
        git("add", str(root / info.path / "pyproject.toml"))
    git("commit", "-m", f"chore: release {tag}")
    git("tag", tag)
    git("push", config.remote, "HEAD")
    git("push", config.remote, tag)

    ok(f"Successfully Versioned {version}")
    return version


def collect_archives(
    dist: Path, packages: dict[str, PackageInfo], version: str
) -> list[Path]:
    """Find the wheel and sdist of every public package at `version`.

    Versions are compared as PEP 440 versions, so `3.28.0-alpha.4` matches
    an archive built as `3.28.0a4`.

    Returns:
        Archive paths in publish order.

    Raises:
        PackagingFailed: If a public package has no archive.
    """
    wanted = Version(version)
    found: dict[str, list[Path]] = {}
    candidates = sorted(dist.iterdir()) if dist.is_dir() else []
    for path in candidates:
        try:
            if path.name.endswith(".whl"):
                name, archive_version, _, _ = parse_wheel_filename(path.name)
            elif path.name.endswith((".tar.gz", ".zip")):
                name, archive_version = parse_sdist_filename(path.name)
            else:
                continue
        except (InvalidWheelFilename, InvalidSdistFilename, InvalidVersion):
            continue
        if archive_version == wanted:
            found.setdefault(canonicalize_name(name), []).append(path)

    archives: list[Path] = []
    for name in publish_order(packages):
        if packages[name].private:
            continue
        if name not in found:
            raise PackagingFailed(f"No archive for {name} {version} in {dist}")
        archives.extend(found[name])
    return archives


def pack_stage(root: Path, config: LockstepConfig, version: str) -> list[Path]:
    """Clean the dist directory and build every public package.

    Returns:
        The archives to publish, in publish order.
    """
    step("Packaging")
    dist = root / config.dist_dir
    shutil.rmtree(dist, ignore_errors=True)
    dist.mkdir(parents=True)

    packages = discover_packages(root)
    for name in publish_order(packages):
        info = packages[name]
        if info.private:
            print(f"  {name}: private, skipped")
            continue
        print(f"\n  {name} ({info.path})")
        result = run("uv", "build", str(root / info.path), "--out-dir", str(dist), check=False)
        if result.returncode != 0:
            raise PackagingFailed(f"Failed to build {name}")

    archives = collect_archives(dist, packages, version)
    ok(f"Successfully Packaged {version}")
    return archives


def publish_stage(
    config: LockstepConfig,
    archives: list[Path],
    dist_tag: str,
    version: str,
    otp_source: OtpSource | None = None,
) -> None:
    step(f"Publishing {len(archives)} archives as {dist_tag}")
    publish_archives(archives, dist_tag, config.publish_command, otp_source)
    ok(f"Successfully Published {version}")


def run_publish(options: PublishOptions, root: Path | None = None) -> str:
    """The manual release flow.

    Returns:
        The version that was (or would have been) published.
    """
    root = root or Path.cwd()
    config = load_config(root)
    request = build_request(config, options)
    dist_tag = options.dist_tag or request.channel.default_dist_tag

    with OtpPrompt() as prompt:
        guard_stage(request, dist_tag)

        if options.skip_smoke_test:
            skip("Skipping Smoke Test")
        else:
            smoke_test_stage(config)

        version = str(request.current_version)
        if options.skip_version:
            skip("Skipping Versioning")
        else:
            version = version_stage(root, config, request)

        archives: list[Path] | None = None
        if options.skip_pack:
            skip("Skipping Packaging")
        else:
            archives = pack_stage(root, config, version)

        if options.skip_publish:
            skip("Skipping Publishing")
        else:
            if archives is None:
                archives = collect_archives(
                    root / config.dist_dir, discover_packages(root), version
                )
            otp_source = prompt if config.uses_otp else None
            publish_stage(config, archives, dist_tag, version, otp_source)

    return version


def run_ci(version: str, dist_tag: str = "canary", root: Path | None = None) -> str:
    """The automated (nightly) flow: version, pack and publish `version`.

    The credential must already be in the environment; nothing is
    prompted, committed or tagged.

    Raises:
        MissingCredential: Before any other work, if the token is unset.
        MalformedVersion: If `version` is not a valid lockstep version.
    """
    root = root or Path.cwd()
    config = load_config(root)
    if not os.environ.get(config.token_env):
        raise MissingCredential(f"{config.token_env} is missing in environment variables")

    resolved = str(SemanticVersion.parse(version))
    step(f"Versioning {resolved}")
    write_version(root, discover_packages(root), resolved)

    archives = pack_stage(root, config, resolved)
    publish_stage(config, archives, dist_tag, resolved)
    return resolved
