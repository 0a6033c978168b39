"""Release channels and next-version resolution.

How versions flow through the branches:

    master   3.11.0-alpha.N   nightly, dist tag `canary`
    beta     3.10.0-beta.N    weekly, cut from the last 3.10.0-alpha.N
    release  3.9.N            cut from the last 3.9.0-beta.N
    lts-3-8  3.8.N            cut from the last 3.8.N on release

Major and minor bumps only ever happen on master (or as a deliberate
re-release); every other channel picks them up as changes flow through
the cycle.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator

from .errors import BugfixBumpNotAllowed, ConflictingBumpFlags, UnresolvedChannel
from .history import VersionHistory
from .versions import ALPHA, BETA, Prerelease, SemanticVersion

BUGFIX_CHANNEL_RE = re.compile(r"^release-(0|[1-9]\d*)-(0|[1-9]\d*)$")


class ChannelKind(str, Enum):
    RELEASE = "release"
    LTS = "lts"
    BETA = "beta"
    CANARY = "canary"
    BUGFIX = "bugfix"


class Channel(BaseModel):
    """A release train.

    Attributes:
        kind: Which train.
        line: `(major, minor)` of the past release line a bugfix channel
              patches; None for every other kind.
    """

    model_config = ConfigDict(frozen=True)

    kind: ChannelKind
    line: tuple[int, int] | None = None

    @classmethod
    def parse(cls, name: str) -> Channel:
        """Parse a CLI channel name: release, lts, beta, canary or release-M-m.

        Raises:
            UnresolvedChannel: For any other name.
        """
        if name in ("release", "lts", "beta", "canary"):
            return cls(kind=ChannelKind(name))
        m = BUGFIX_CHANNEL_RE.match(name or "")
        if m:
            return cls.bugfix(int(m.group(1)), int(m.group(2)))
        raise UnresolvedChannel(
            f"Channel must be one of release|beta|canary|lts|release-<major>-<minor>. "
            f"Received {name!r}"
        )

    @classmethod
    def bugfix(cls, major: int, minor: int) -> Channel:
        return cls(kind=ChannelKind.BUGFIX, line=(major, minor))

    def __str__(self) -> str:
        if self.kind is ChannelKind.BUGFIX and self.line is not None:
            return f"release-{self.line[0]}-{self.line[1]}"
        return self.kind.value

    @property
    def default_dist_tag(self) -> str:
        """The registry dist tag a channel publishes under unless overridden."""
        return "latest" if self.kind is ChannelKind.RELEASE else str(self)


class ReleaseRequest(BaseModel):
    """Everything the manual flow needs to pick the next version.

    Raises on construction:
        BugfixBumpNotAllowed: bugfix channel with bump_major or bump_minor.
        ConflictingBumpFlags: bump_major and bump_minor together.
    """

    model_config = ConfigDict(frozen=True)

    channel: Channel
    current_version: SemanticVersion
    bump_major: bool = False
    bump_minor: bool = False
    force: bool = False

    @model_validator(mode="after")
    def _check_bumps(self) -> ReleaseRequest:
        if self.channel.kind is ChannelKind.BUGFIX and (self.bump_major or self.bump_minor):
            raise BugfixBumpNotAllowed("Cannot bump major or minor version of a past release")
        if self.bump_major and self.bump_minor:
            raise ConflictingBumpFlags("Cannot bump both major and minor versions simultaneously")
        return self


def _ahead(front: tuple[int, int], other: tuple[int, int] | None) -> bool:
    return other is None or front > other


def next_alpha(history: VersionHistory) -> SemanticVersion:
    """Pick the next nightly alpha from the published history.

    An alpha cycle is in progress while the alpha front is ahead of both
    the release and beta fronts; then the alpha number is incremented.
    Otherwise that cycle has been promoted and a new one starts two minors
    above the latest release, leaving `release + 1` to the beta train.
    Fronts compare at major.minor; patch numbers are ignored.
    """
    release = history.latest_release()
    alpha = history.latest_prerelease(ALPHA)
    beta = history.latest_prerelease(BETA)

    release_front = release.cycle if release else None
    # No beta yet: the beta train sits where the release train is
    beta_front = beta.cycle if beta else release_front

    if alpha is not None and _ahead(alpha.cycle, release_front) and _ahead(alpha.cycle, beta_front):
        return alpha.next_prerelease(ALPHA)

    if release is not None:
        major, minor = release.major, release.minor + 2
    elif beta is not None:
        major, minor = beta.major, beta.minor + 1
    else:
        major, minor = 0, 1
    return SemanticVersion(
        major=major,
        minor=minor,
        patch=0,
        prerelease=Prerelease(identifier=ALPHA, number=0),
    )


def resolve_next_version(request: ReleaseRequest) -> SemanticVersion:
    """Pick the next version for a manual release.

    - release / lts: a patch release, or with bump_major / bump_minor a
      re-release as the first version of a new major / minor.
    - beta / canary: the next weekly beta or nightly alpha, or with
      bump_major / bump_minor the first pre-release of an upcoming
      major / minor.
    - bugfix: always a patch release of the past line.

    Raises:
        UnresolvedChannel: If the channel kind has no bump rule.
    """
    current = request.current_version
    kind = request.channel.kind

    if kind in (ChannelKind.RELEASE, ChannelKind.LTS):
        if request.bump_major:
            return current.next_major()
        if request.bump_minor:
            return current.next_minor()
        return current.next_patch()

    if kind in (ChannelKind.BETA, ChannelKind.CANARY):
        identifier = BETA if kind is ChannelKind.BETA else ALPHA
        if request.bump_major:
            return current.first_prerelease_of_major(identifier)
        if request.bump_minor:
            return current.first_prerelease_of_minor(identifier)
        return current.next_prerelease(identifier)

    if kind is ChannelKind.BUGFIX:
        return current.next_patch()

    raise UnresolvedChannel(f"No version rule for channel kind {kind!r}")


# Branch policy: channel-keyed rules first, then dist-tag rules.


def _lts_branch(channel: Channel, version: SemanticVersion) -> str:
    return f"lts-{version.major}-{version.minor}"


def _bugfix_branch(channel: Channel, version: SemanticVersion) -> str:
    assert channel.line is not None
    return f"release-{channel.line[0]}-{channel.line[1]}"


CHANNEL_BRANCHES: dict[ChannelKind, Callable[[Channel, SemanticVersion], str]] = {
    ChannelKind.LTS: _lts_branch,
    ChannelKind.BUGFIX: _bugfix_branch,
}

TAG_BRANCHES: dict[str, str] = {
    "canary": "master",
    "latest": "release",
}


def expected_branch(channel: Channel, dist_tag: str, current_version: SemanticVersion) -> str:
    """The git branch a release of `channel` under `dist_tag` must come from.

    Examples:
        lts at 3.8.4              → "lts-3-8"
        release-3-8               → "release-3-8"
        dist tag canary           → "master"
        dist tag latest           → "release"
        anything else (e.g. beta) → the dist tag itself
    """
    branch_for = CHANNEL_BRANCHES.get(channel.kind)
    if branch_for is not None:
        return branch_for(channel, current_version)
    return TAG_BRANCHES.get(dist_tag, dist_tag)
