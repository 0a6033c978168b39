"""The set of versions already published to the registry.

The nightly flow feeds the registry's full version list in here; only the
channel fronts (latest release, latest alpha, latest beta) matter to the
resolver.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

from .errors import MalformedVersion, MalformedVersionFeed
from .versions import SemanticVersion


class VersionHistory(BaseModel):
    """Immutable set of published versions.

    Attributes:
        versions: Every parseable published version.
        skipped: Entries that failed to parse. They are dropped rather than
                 failing resolution; callers may report them.
    """

    model_config = ConfigDict(frozen=True)

    versions: frozenset[SemanticVersion] = frozenset()
    skipped: tuple[str, ...] = ()

    @classmethod
    def from_strings(cls, strings: Iterable[Any]) -> VersionHistory:
        versions: set[SemanticVersion] = set()
        skipped: list[str] = []
        for raw in strings:
            try:
                versions.add(SemanticVersion.parse(raw))
            except MalformedVersion:
                skipped.append(str(raw))
        return cls(versions=frozenset(versions), skipped=tuple(skipped))

    def __len__(self) -> int:
        return len(self.versions)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            try:
                item = SemanticVersion.parse(item)
            except MalformedVersion:
                return False
        return item in self.versions

    def latest_release(self) -> SemanticVersion | None:
        """Highest version without a pre-release suffix, or None."""
        releases = [v for v in self.versions if not v.is_prerelease]
        return max(releases, default=None)

    def latest_prerelease(self, identifier: str) -> SemanticVersion | None:
        """Highest pre-release on the `identifier` train, or None."""
        matching = [v for v in self.versions if v.has_identifier(identifier)]
        return max(matching, default=None)


def load_published_versions(text: str) -> list[Any]:
    """Extract the list of version strings from a registry JSON document.

    Accepted shapes:
        ["1.0.0", "1.1.0-beta.0"]                 (npm view <pkg> versions --json)
        {"versions": ["1.0.0", ...]}              (npm registry / custom feeds)
        {"releases": {"1.0.0": [...], ...}}       (PyPI JSON API)
        "1.0.0"                                   (npm view with a single version)

    Raises:
        MalformedVersionFeed: If the text is not JSON or has another shape.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedVersionFeed(f"Published versions are not valid JSON: {exc}") from exc

    if isinstance(data, str):
        return [data]
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if isinstance(data.get("versions"), list):
            return data["versions"]
        if isinstance(data.get("versions"), dict):
            return list(data["versions"])
        if isinstance(data.get("releases"), dict):
            return list(data["releases"])
    raise MalformedVersionFeed(
        "Published versions must be a JSON array of version strings, "
        'or an object with a "versions" or "releases" key'
    )
