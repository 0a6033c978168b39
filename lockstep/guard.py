"""Pre-release checks against `git status` output.

Publishing from a dirty tree, an unsynced branch, or the wrong branch for
the channel can produce a broken release. Each check is evaluated on its
own; with --force every failure becomes a warning, so a forced run reports
all of them rather than just the first.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from .errors import BranchMismatch, BranchNotSynced, GuardError, UncleanWorkingTree

_BRANCH_PREFIX = "On branch "
_CLEAN_PREFIX = "nothing to commit"
_SYNCED_PREFIX = "Your branch is up to date with"


class GitStatus(BaseModel):
    """The facts the guard needs from `git status`.

    Attributes:
        branch: Current branch, or None when HEAD is detached.
        clean: No uncommitted changes.
        synced: Local branch is up to date with its upstream.
        text: The raw status output.
    """

    model_config = ConfigDict(frozen=True)

    branch: str | None
    clean: bool
    synced: bool
    text: str = ""

    @classmethod
    def parse(cls, text: str) -> GitStatus:
        lines = text.splitlines()
        first = lines[0] if lines else ""
        branch = first[len(_BRANCH_PREFIX):].strip() if first.startswith(_BRANCH_PREFIX) else None
        return cls(
            branch=branch,
            clean=any(line.startswith(_CLEAN_PREFIX) for line in lines),
            synced=any(line.startswith(_SYNCED_PREFIX) for line in lines),
            text=text,
        )


class GuardFinding(BaseModel):
    """One failed check.

    Attributes:
        error: Exception class raised if the finding is fatal.
        message: What is wrong.
        fatal: False when --force downgraded the finding to a warning.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error: type[GuardError]
    message: str
    fatal: bool


class GuardVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: GitStatus
    expected_branch: str
    findings: tuple[GuardFinding, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.failures

    @property
    def warnings(self) -> list[GuardFinding]:
        return [f for f in self.findings if not f.fatal]

    @property
    def failures(self) -> list[GuardFinding]:
        return [f for f in self.findings if f.fatal]

    def raise_for_failures(self) -> None:
        """Raise the first fatal finding, with the status text attached."""
        if self.failures:
            first = self.failures[0]
            raise first.error(first.message, status=self.status.text)


def check_release_state(
    status_text: str,
    expected_branch: str,
    dist_tag: str,
    *,
    force: bool = False,
) -> GuardVerdict:
    """Evaluate every guard check against captured `git status` output.

    Args:
        status_text: Output of `git status`.
        expected_branch: Branch the channel must be released from.
        dist_tag: Dist tag being published, used in the mismatch message.
        force: Downgrade failures to warnings.
    """
    status = GitStatus.parse(status_text)
    findings: list[GuardFinding] = []

    if not status.clean:
        findings.append(
            GuardFinding(
                error=UncleanWorkingTree,
                message="Git working tree is not clean",
                fatal=not force,
            )
        )

    if not status.synced:
        findings.append(
            GuardFinding(
                error=BranchNotSynced,
                message="Local git branch is not in sync with origin branch",
                fatal=not force,
            )
        )

    if status.branch != expected_branch:
        found = status.branch or "<detached HEAD>"
        findings.append(
            GuardFinding(
                error=BranchMismatch,
                message=(
                    f"Expected to publish dist tag {dist_tag} from the git branch "
                    f"{expected_branch}, but found {found}"
                ),
                fatal=not force,
            )
        )

    return GuardVerdict(status=status, expected_branch=expected_branch, findings=tuple(findings))
