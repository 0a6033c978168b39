"""CLI entry point for lockstep."""

from __future__ import annotations

import functools
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

import click

from lockstep.config import load_config
from lockstep.history import VersionHistory, load_published_versions
from lockstep.pipeline import PublishOptions, build_request, run_ci, run_publish
from lockstep.resolver import next_alpha, resolve_next_version
from lockstep.shell import warn


def _report_command_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn a failed git/uv call into a clean CLI error."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or exc.stdout or "").strip()
            cmd = " ".join(str(c) for c in exc.cmd)
            raise click.ClickException(f"`{cmd}` failed with exit code {exc.returncode}\n{detail}")

    return wrapper


@click.group()
@click.version_option()
def cli() -> None:
    """Cut and publish lockstep releases of a uv workspace."""


@cli.command()
@click.argument("channel")
@click.option(
    "-t",
    "--dist-tag",
    "--distTag",
    "dist_tag",
    default=None,
    help="Registry dist tag. Defaults to latest for release, else the channel.",
)
@click.option("--skip-version", "--skipVersion", "skip_version", is_flag=True)
@click.option("--skip-pack", "--skipPack", "skip_pack", is_flag=True)
@click.option("--skip-publish", "--skipPublish", "skip_publish", is_flag=True)
@click.option("--skip-smoke-test", "--skipSmokeTest", "skip_smoke_test", is_flag=True)
@click.option(
    "--bump-major", "--bumpMajor", "bump_major", is_flag=True, help="Start a new major."
)
@click.option(
    "--bump-minor", "--bumpMinor", "bump_minor", is_flag=True, help="Start a new minor."
)
@click.option("--force", is_flag=True, help="Downgrade git state failures to warnings.")
@_report_command_errors
def publish(channel: str, **flags: Any) -> None:
    """Release CHANNEL: release, beta, canary, lts or release-<major>-<minor>.

    Runs the smoke test, bumps and commits the version, packs every public
    package and publishes the archives. Stages can be skipped to resume a
    run that failed part-way; nothing is rolled back.
    """
    run_publish(PublishOptions(channel=channel, **flags))


@cli.command()
@click.option("--version", "version", required=True, help="Version to publish.")
@click.option("-t", "--dist-tag", "--distTag", "dist_tag", default="canary", show_default=True)
@_report_command_errors
def ci(version: str, dist_tag: str) -> None:
    """Pack and publish VERSION non-interactively (usually called from CI)."""
    run_ci(version, dist_tag)


@cli.command("next-alpha")
@click.argument("source", type=click.File("r"), default="-")
def next_alpha_cmd(source: IO[str]) -> None:
    """Print the next nightly alpha given the published versions.

    SOURCE is a JSON document (array of versions, or a registry document
    with a "versions" or "releases" key); defaults to stdin.

        npm view my-pkg versions --json | lockstep next-alpha
    """
    history = VersionHistory.from_strings(load_published_versions(source.read()))
    for entry in history.skipped:
        warn(f"Ignoring unparseable version {entry!r}")
    click.echo(str(next_alpha(history)))


@cli.command("next-version")
@click.argument("channel")
@click.option("--bump-major", "--bumpMajor", "bump_major", is_flag=True)
@click.option("--bump-minor", "--bumpMinor", "bump_minor", is_flag=True)
def next_version_cmd(channel: str, bump_major: bool, bump_minor: bool) -> None:
    """Print the version `publish CHANNEL` would cut, without side effects."""
    config = load_config(Path.cwd())
    options = PublishOptions(channel=channel, bump_major=bump_major, bump_minor=bump_minor)
    click.echo(str(resolve_next_version(build_request(config, options))))
