"""Data models for the workspace being released."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PackageInfo(BaseModel):
    """One package of the workspace.

    Attributes:
        path: Package directory relative to the workspace root.
        version: Current [project].version.
        deps: Internal (workspace) dependency names. External deps are not
              tracked; only internal pins move with the release version.
        private: Never packed or published.
    """

    path: str
    version: str
    deps: list[str] = Field(default_factory=list)
    private: bool = False


class VersionBump(BaseModel):
    """A version change written during the version stage."""

    old: str
    new: str
