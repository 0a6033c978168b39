"""Shell and git utilities.

Thin wrappers around subprocess for git and the packaging/publishing
tools, plus the console helpers every stage uses to report progress.
"""

from __future__ import annotations

import shlex
import subprocess

import click


def git(*args: str, check: bool = True) -> str:
    """Run a git command and return its stripped stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status").
        check: If True (default), raise CalledProcessError on non-zero exit.
    """
    result = subprocess.run(["git", *args], capture_output=True, text=True, check=check)
    return result.stdout.strip()


def run(*args: str, check: bool = True) -> subprocess.CompletedProcess[bytes]:
    """Run a command, streaming its output to the terminal."""
    return subprocess.run(args, check=check)


def run_line(command: str, check: bool = False) -> subprocess.CompletedProcess[bytes]:
    """Run a configured command line such as "uv run pytest"."""
    return run(*shlex.split(command), check=check)


def capture(*args: str) -> subprocess.CompletedProcess[str]:
    """Run a command and capture stdout and stderr without raising.

    Used where the caller needs to inspect failure output (the registry
    client reports auth problems only in its error text).
    """
    return subprocess.run(args, capture_output=True, text=True, check=False)


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def ok(msg: str) -> None:
    """Report a finished stage."""
    click.echo(f"✓ {click.style(msg, fg='cyan')}")


def skip(msg: str) -> None:
    click.echo(f"⚠ {click.style(msg, dim=True)}")


def warn(msg: str) -> None:
    """Print a warning to stderr. The run continues."""
    click.echo(click.style(f"WARNING: {msg}", fg="yellow"), err=True)
