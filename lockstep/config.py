"""The [tool.lockstep] configuration table.

Example:

    [tool.lockstep]
    version = "3.9.2"
    smoke-test = ["uv run ruff check", "uv run pytest"]
    publish-command = ["uv", "publish", "{archive}"]
    token-env = "UV_PUBLISH_TOKEN"
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError
from .toml import get_lockstep_table, load_pyproject
from .versions import SemanticVersion


class LockstepConfig(BaseModel):
    """Validated [tool.lockstep] settings.

    Attributes:
        version: The project's current version, shared by every package.
        smoke_test: Command lines that must pass before versioning.
        publish_command: Registry client argv. `{archive}`, `{tag}` and
            `{otp}` are substituted per archive.
        token_env: Environment variable holding the CI registry credential.
        dist_dir: Where packaged archives are written, relative to the root.
        remote: Git remote release commits and tags are pushed to.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    version: str
    smoke_test: list[str] = Field(default_factory=lambda: ["uv run pytest"], alias="smoke-test")
    publish_command: list[str] = Field(
        default_factory=lambda: ["uv", "publish", "{archive}"], alias="publish-command"
    )
    token_env: str = Field(default="UV_PUBLISH_TOKEN", alias="token-env")
    dist_dir: str = Field(default="dist", alias="dist-dir")
    remote: str = "origin"

    @property
    def current_version(self) -> SemanticVersion:
        """The recorded version, parsed. Raises MalformedVersion."""
        return SemanticVersion.parse(self.version)

    @property
    def uses_otp(self) -> bool:
        return any("{otp}" in token for token in self.publish_command)


def load_config(root: Path) -> LockstepConfig:
    """Load [tool.lockstep] from `root`/pyproject.toml.

    Raises:
        ConfigError: If the file or table is missing or fails validation.
    """
    table = get_lockstep_table(load_pyproject(root / "pyproject.toml"))
    try:
        return LockstepConfig.model_validate(table)
    except ValidationError as exc:
        raise ConfigError(f"Invalid [tool.lockstep] configuration:\n{exc}") from exc
