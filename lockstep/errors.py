"""Exceptions raised by lockstep.

Every error derives from LockstepError, which is a click.ClickException so
the CLI prints the message and exits with status 1 without a traceback.
"""

from __future__ import annotations

import click


class LockstepError(click.ClickException):
    """Base class for all lockstep failures."""


class MalformedVersion(LockstepError, ValueError):
    """A version string is not `M.m.p` or `M.m.p-<alpha|beta>.<n>`."""


class MalformedVersionFeed(LockstepError):
    """The published-version input is not in a recognised JSON shape."""


class ConflictingBumpFlags(LockstepError):
    """Both --bump-major and --bump-minor were given."""


class BugfixBumpNotAllowed(LockstepError):
    """A major or minor bump was requested for a past release line."""


class UnresolvedChannel(LockstepError):
    """The channel name is not one lockstep knows how to release."""


class ConfigError(LockstepError):
    """The [tool.lockstep] configuration is missing or invalid."""


class MissingCredential(LockstepError):
    """The registry credential is not set in the environment."""


class GuardError(LockstepError):
    """The git state does not match what the release channel expects.

    Carries the captured `git status` output so the user can see why.
    """

    def __init__(self, message: str, status: str | None = None) -> None:
        super().__init__(message)
        self.status = status

    def format_message(self) -> str:
        if self.status:
            return f"{self.message}\n\nStatus:\n{self.status}"
        return self.message


class UncleanWorkingTree(GuardError):
    pass


class BranchNotSynced(GuardError):
    pass


class BranchMismatch(GuardError):
    pass


class SmokeTestFailed(LockstepError):
    pass


class PackagingFailed(LockstepError):
    pass


class PublishError(LockstepError):
    """The registry refused an archive.

    Attributes:
        archive: Path of the archive that failed to publish.
        output: Combined stdout/stderr of the publish command.
    """

    def __init__(self, message: str, archive: str = "", output: str = "") -> None:
        super().__init__(message)
        self.archive = archive
        self.output = output


class CredentialRejected(PublishError):
    """The registry rejected the one-time credential (E401 / EOTP)."""
