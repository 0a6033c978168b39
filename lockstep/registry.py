"""Publishing archives to the package registry.

The registry client is an external command configured in
[tool.lockstep].publish-command. When the registry enforces two-factor
auth, each publish needs a one-time password (OTP); a stale OTP shows up
as `E401` or `EOTP` in the client's error output, and the same archive is
retried with a fresh one. Any other failure aborts the run. Archives that
were already published stay published.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from types import TracebackType

import click

from .errors import CredentialRejected, LockstepError, PublishError
from .shell import capture

AUTH_FAILURE_MARKERS = ("E401", "EOTP")

OtpSource = Callable[[], str]


def is_auth_failure(output: str) -> bool:
    """True when registry error output means the credential was rejected."""
    return any(marker in output for marker in AUTH_FAILURE_MARKERS)


def render_publish_command(
    template: Sequence[str], archive: Path, dist_tag: str, otp: str | None
) -> list[str]:
    """Fill in `{archive}`, `{tag}` and `{otp}` in the publish command.

    Tokens that mention `{otp}` are dropped when there is no OTP, so a
    flag like `--otp={otp}` only appears when one was provided.
    """
    argv: list[str] = []
    for token in template:
        if "{otp}" in token and not otp:
            continue
        argv.append(token.format(archive=archive, tag=dist_tag, otp=otp or ""))
    return argv


def publish_archive(
    template: Sequence[str], archive: Path, dist_tag: str, otp: str | None = None
) -> None:
    """Publish one archive.

    Raises:
        CredentialRejected: The registry refused the credential.
        PublishError: Any other failure.
    """
    argv = render_publish_command(template, archive, dist_tag, otp)
    print(f"  {archive.name} → {dist_tag}")
    result = capture(*argv)
    if result.returncode == 0:
        return

    output = f"{result.stdout}\n{result.stderr}".strip()
    if is_auth_failure(output):
        raise CredentialRejected(
            f"Registry rejected the credential for {archive.name}", str(archive), output
        )
    raise PublishError(f"Failed to publish {archive.name}:\n{output}", str(archive), output)


def publish_archives(
    archives: Sequence[Path],
    dist_tag: str,
    template: Sequence[str],
    otp_source: OtpSource | None = None,
    publish: Callable[..., None] = publish_archive,
) -> None:
    """Publish archives in order, refreshing the OTP whenever it is rejected.

    Args:
        archives: Archives in publish order.
        dist_tag: Registry dist tag.
        template: Publish command template.
        otp_source: Returns a fresh OTP. None means the credential comes
            from the environment and an auth failure is fatal.
        publish: Single-archive publisher.

    Raises:
        PublishError: On the first non-auth failure (or any failure when
            there is no otp_source). Remaining archives are not attempted.
    """
    otp = otp_source() if otp_source else None
    for archive in archives:
        while True:
            try:
                publish(template, archive, dist_tag, otp)
                break
            except CredentialRejected:
                if otp_source is None:
                    raise
                otp = otp_source()


class OtpPrompt:
    """Interactive OTP source, usable once opened and until closed.

    Use as a context manager so the prompt is closed on every exit path:

        with OtpPrompt() as prompt:
            publish_archives(archives, tag, template, prompt)
    """

    def __init__(self, text: str = "Please provide OTP token") -> None:
        self.text = text
        self.closed = False

    def __call__(self) -> str:
        if self.closed:
            raise LockstepError("OTP prompt used after it was closed")
        return str(click.prompt(click.style(self.text, fg="green"), hide_input=True)).strip()

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> OtpPrompt:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
