"""Version parsing, ordering and bumping.

lockstep versions are a strict subset of semver: `M.m.p` for releases and
`M.m.p-alpha.N` / `M.m.p-beta.N` for the two pre-release trains. The
`semver` library validates syntax and provides precedence; the bump rules
are lockstep's own and follow the npm `semver.inc` behaviour the release
process was designed around (e.g. a patch bump of `3.10.0-beta.3` is the
final `3.10.0`, not `3.10.1`).
"""

from __future__ import annotations

import re
from functools import total_ordering
from typing import Literal

import semver
from pydantic import BaseModel, ConfigDict, Field

from .errors import MalformedVersion

PrereleaseId = Literal["alpha", "beta"]

ALPHA: PrereleaseId = "alpha"
BETA: PrereleaseId = "beta"

_PRERELEASE_RE = re.compile(r"^(alpha|beta)\.(0|[1-9]\d*)$")


class Prerelease(BaseModel):
    """The `<identifier>.<number>` suffix of a pre-release version."""

    model_config = ConfigDict(frozen=True)

    identifier: PrereleaseId
    number: int = Field(ge=0)

    def __str__(self) -> str:
        return f"{self.identifier}.{self.number}"


@total_ordering
class SemanticVersion(BaseModel):
    """An immutable `major.minor.patch[-identifier.number]` version.

    Ordering is semver precedence: a release sorts above every pre-release
    of the same `major.minor.patch`, and pre-releases sharing an identifier
    compare by number.
    """

    model_config = ConfigDict(frozen=True)

    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)
    prerelease: Prerelease | None = None

    @classmethod
    def parse(cls, text: str) -> SemanticVersion:
        """Parse a version string.

        Raises:
            MalformedVersion: If `text` is not valid semver, carries build
                metadata, or has a pre-release other than alpha.N / beta.N.
        """
        if not isinstance(text, str):
            raise MalformedVersion(f"Invalid version {text!r}: not a string")
        try:
            parsed = semver.Version.parse(text.strip())
        except (ValueError, TypeError) as exc:
            raise MalformedVersion(f"Invalid version {text!r}: {exc}") from exc
        if parsed.build is not None:
            raise MalformedVersion(f"Invalid version {text!r}: build metadata is not supported")

        prerelease = None
        if parsed.prerelease is not None:
            m = _PRERELEASE_RE.match(parsed.prerelease)
            if m is None:
                raise MalformedVersion(
                    f"Invalid version {text!r}: pre-release must be alpha.<n> or beta.<n>"
                )
            prerelease = Prerelease(identifier=m.group(1), number=int(m.group(2)))

        return cls(
            major=parsed.major,
            minor=parsed.minor,
            patch=parsed.patch,
            prerelease=prerelease,
        )

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{self.prerelease}" if self.prerelease else core

    def to_semver(self) -> semver.Version:
        return semver.Version(
            self.major,
            self.minor,
            self.patch,
            str(self.prerelease) if self.prerelease else None,
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self.to_semver().compare(other.to_semver()) < 0

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    @property
    def cycle(self) -> tuple[int, int]:
        """The `(major, minor)` pair that identifies this version's cycle."""
        return (self.major, self.minor)

    def same_cycle(self, other: SemanticVersion) -> bool:
        """True when both versions share major and minor."""
        return self.cycle == other.cycle

    def has_identifier(self, identifier: str) -> bool:
        return self.prerelease is not None and self.prerelease.identifier == identifier

    # Bumps

    def next_patch(self) -> SemanticVersion:
        """`3.9.2 → 3.9.3`; a pre-release finalises: `3.10.0-beta.3 → 3.10.0`."""
        if self.prerelease is not None:
            return self._release(self.major, self.minor, self.patch)
        return self._release(self.major, self.minor, self.patch + 1)

    def next_minor(self) -> SemanticVersion:
        """`3.9.2 → 3.10.0`; `3.10.0-beta.3 → 3.10.0`."""
        if self.prerelease is not None and self.patch == 0:
            return self._release(self.major, self.minor, 0)
        return self._release(self.major, self.minor + 1, 0)

    def next_major(self) -> SemanticVersion:
        """`3.9.2 → 4.0.0`; `4.0.0-alpha.1 → 4.0.0`."""
        if self.prerelease is not None and self.minor == 0 and self.patch == 0:
            return self._release(self.major, 0, 0)
        return self._release(self.major + 1, 0, 0)

    def next_prerelease(self, identifier: PrereleaseId) -> SemanticVersion:
        """Next pre-release on the `identifier` train.

        - release `3.9.2` → `3.9.3-<identifier>.0`
        - `3.10.0-beta.3` with beta → `3.10.0-beta.4`
        - `3.10.0-alpha.3` with beta → `3.10.0-beta.0`
        """
        if self.prerelease is None:
            return self._pre(self.major, self.minor, self.patch + 1, identifier, 0)
        if self.prerelease.identifier == identifier:
            return self._pre(
                self.major, self.minor, self.patch, identifier, self.prerelease.number + 1
            )
        return self._pre(self.major, self.minor, self.patch, identifier, 0)

    def first_prerelease_of_major(self, identifier: PrereleaseId) -> SemanticVersion:
        """`3.9.2 → 4.0.0-<identifier>.0`, whatever the current pre-release."""
        return self._pre(self.major + 1, 0, 0, identifier, 0)

    def first_prerelease_of_minor(self, identifier: PrereleaseId) -> SemanticVersion:
        """`3.9.2 → 3.10.0-<identifier>.0`, whatever the current pre-release."""
        return self._pre(self.major, self.minor + 1, 0, identifier, 0)

    @classmethod
    def _release(cls, major: int, minor: int, patch: int) -> SemanticVersion:
        return cls(major=major, minor=minor, patch=patch)

    @classmethod
    def _pre(
        cls, major: int, minor: int, patch: int, identifier: PrereleaseId, number: int
    ) -> SemanticVersion:
        return cls(
            major=major,
            minor=minor,
            patch=patch,
            prerelease=Prerelease(identifier=identifier, number=number),
        )
