"""Tests for lockstep.resolver."""

from __future__ import annotations

import pytest

from lockstep.errors import BugfixBumpNotAllowed, ConflictingBumpFlags, UnresolvedChannel
from lockstep.history import VersionHistory
from lockstep.resolver import (
    Channel,
    ChannelKind,
    ReleaseRequest,
    expected_branch,
    next_alpha,
    resolve_next_version,
)
from lockstep.versions import SemanticVersion

ALPHA_SCENARIOS = [
    # alpha front ahead of release and beta: keep counting
    (["3.26.0", "3.27.0-alpha.0", "3.27.0-beta.0", "3.28.0-alpha.4"], "3.28.0-alpha.5"),
    # stale alpha behind release and beta: new cycle two minors above release
    (["3.27.0-alpha.0", "3.27.0-beta.0", "3.28.0", "3.29.0-beta.0"], "3.30.0-alpha.0"),
    # alpha promoted straight to release
    (["3.26.0", "3.27.0-alpha.0", "3.27.0"], "3.29.0-alpha.0"),
    # alpha and beta fronts coincide
    (["3.28.0", "3.29.0-alpha.2", "3.29.0-beta.0"], "3.30.0-alpha.0"),
    # a patch of the released line changes nothing
    (["3.28.0", "3.29.0-alpha.2", "3.28.1", "3.29.0-beta.0"], "3.30.0-alpha.0"),
    # all three fronts on the same minor
    (["3.27.0-alpha.0", "3.27.0-beta.0", "3.27.0"], "3.29.0-alpha.0"),
]


def history(*versions: str) -> VersionHistory:
    return VersionHistory.from_strings(versions)


def v(text: str) -> SemanticVersion:
    return SemanticVersion.parse(text)


class TestNextAlpha:
    @pytest.mark.parametrize(("published", "expected"), ALPHA_SCENARIOS)
    def test_scenarios(self, published: list[str], expected: str) -> None:
        assert str(next_alpha(history(*published))) == expected

    @pytest.mark.parametrize(("published", "expected"), ALPHA_SCENARIOS)
    def test_old_line_patch_is_irrelevant(self, published: list[str], expected: str) -> None:
        assert str(next_alpha(history(*published, "3.20.9", "3.25.3"))) == expected

    @pytest.mark.parametrize(("published", "expected"), ALPHA_SCENARIOS)
    def test_input_order_is_irrelevant(self, published: list[str], expected: str) -> None:
        assert str(next_alpha(history(*reversed(published)))) == expected

    def test_deterministic(self) -> None:
        published = history(*ALPHA_SCENARIOS[0][0])
        assert next_alpha(published) == next_alpha(published)

    def test_malformed_entries_do_not_block_resolution(self) -> None:
        published = history(
            "3.26.0", "garbage", "3.27.0-rc.1", "3.27.0-beta.0", "3.28.0-alpha.4"
        )
        assert str(next_alpha(published)) == "3.28.0-alpha.5"

    def test_alpha_ahead_of_release_but_behind_beta_starts_new_cycle(self) -> None:
        published = history("3.28.0", "3.29.0-alpha.3", "3.30.0-beta.0")
        assert str(next_alpha(published)) == "3.30.0-alpha.0"

    def test_premajor_alpha_counts_as_ahead(self) -> None:
        published = history("3.28.0", "3.29.0-beta.1", "4.0.0-alpha.3")
        assert str(next_alpha(published)) == "4.0.0-alpha.4"

    def test_no_alpha_yet(self) -> None:
        assert str(next_alpha(history("3.28.0", "3.29.0-beta.0"))) == "3.30.0-alpha.0"

    def test_no_release_yet(self) -> None:
        assert str(next_alpha(history("0.1.0-alpha.3"))) == "0.1.0-alpha.4"
        assert str(next_alpha(history("0.1.0-alpha.3", "0.1.0-beta.0"))) == "0.2.0-alpha.0"

    def test_empty_history(self) -> None:
        assert str(next_alpha(history())) == "0.1.0-alpha.0"


class TestChannel:
    @pytest.mark.parametrize("name", ["release", "lts", "beta", "canary"])
    def test_named_channels(self, name: str) -> None:
        channel = Channel.parse(name)
        assert channel.kind == ChannelKind(name)
        assert channel.line is None
        assert str(channel) == name

    def test_bugfix_channel(self) -> None:
        channel = Channel.parse("release-3-8")
        assert channel.kind is ChannelKind.BUGFIX
        assert channel.line == (3, 8)
        assert str(channel) == "release-3-8"

    @pytest.mark.parametrize("name", ["nightly", "release-3", "release-3-8-1", "lts-3-8", ""])
    def test_unknown_channel(self, name: str) -> None:
        with pytest.raises(UnresolvedChannel):
            Channel.parse(name)

    def test_default_dist_tags(self) -> None:
        assert Channel.parse("release").default_dist_tag == "latest"
        assert Channel.parse("beta").default_dist_tag == "beta"
        assert Channel.parse("canary").default_dist_tag == "canary"
        assert Channel.parse("release-3-8").default_dist_tag == "release-3-8"


def request(channel: str, current: str, **flags: bool) -> ReleaseRequest:
    return ReleaseRequest(channel=Channel.parse(channel), current_version=v(current), **flags)


class TestReleaseRequest:
    def test_both_bumps_rejected(self) -> None:
        with pytest.raises(ConflictingBumpFlags):
            request("release", "3.9.2", bump_major=True, bump_minor=True)

    @pytest.mark.parametrize("current", ["3.8.4", "3.9.0-beta.1", "0.0.0"])
    @pytest.mark.parametrize("flag", ["bump_major", "bump_minor"])
    def test_bugfix_bumps_rejected(self, current: str, flag: str) -> None:
        with pytest.raises(BugfixBumpNotAllowed):
            request("release-3-8", current, **{flag: True})

    def test_bugfix_rejection_wins_over_conflict(self) -> None:
        with pytest.raises(BugfixBumpNotAllowed):
            request("release-3-8", "3.8.4", bump_major=True, bump_minor=True)


class TestResolveNextVersion:
    @pytest.mark.parametrize(
        ("channel", "current", "flags", "expected"),
        [
            ("release", "3.9.2", {}, "3.9.3"),
            ("release", "3.9.2", {"bump_minor": True}, "3.10.0"),
            ("release", "3.9.2", {"bump_major": True}, "4.0.0"),
            ("release", "3.10.0-beta.4", {}, "3.10.0"),
            ("lts", "3.8.4", {}, "3.8.5"),
            ("lts", "3.8.4", {"bump_minor": True}, "3.9.0"),
            ("beta", "3.10.0-beta.3", {}, "3.10.0-beta.4"),
            ("beta", "3.10.0-alpha.7", {}, "3.10.0-beta.0"),
            ("beta", "3.10.0-beta.3", {"bump_minor": True}, "3.11.0-beta.0"),
            ("beta", "3.10.0-beta.3", {"bump_major": True}, "4.0.0-beta.0"),
            ("canary", "3.11.0-alpha.2", {}, "3.11.0-alpha.3"),
            ("canary", "3.11.0-alpha.2", {"bump_minor": True}, "3.12.0-alpha.0"),
            ("canary", "3.11.0-alpha.2", {"bump_major": True}, "4.0.0-alpha.0"),
            ("canary", "3.9.2", {}, "3.9.3-alpha.0"),
            ("release-3-8", "3.8.4", {}, "3.8.5"),
        ],
    )
    def test_bump_table(
        self, channel: str, current: str, flags: dict[str, bool], expected: str
    ) -> None:
        assert str(resolve_next_version(request(channel, current, **flags))) == expected

    def test_unknown_kind_is_unresolved(self) -> None:
        bogus = ReleaseRequest.model_construct(
            channel=Channel.model_construct(kind="nightly", line=None),
            current_version=v("3.9.2"),
        )
        with pytest.raises(UnresolvedChannel):
            resolve_next_version(bogus)


class TestExpectedBranch:
    def test_lts_uses_current_line(self) -> None:
        assert expected_branch(Channel.parse("lts"), "lts", v("3.8.4")) == "lts-3-8"

    def test_release_latest(self) -> None:
        assert expected_branch(Channel.parse("release"), "latest", v("3.9.2")) == "release"

    def test_canary_from_master(self) -> None:
        assert expected_branch(Channel.parse("canary"), "canary", v("3.11.0-alpha.2")) == "master"

    def test_beta_uses_tag(self) -> None:
        assert expected_branch(Channel.parse("beta"), "beta", v("3.10.0-beta.3")) == "beta"

    def test_custom_tag_is_branch(self) -> None:
        assert expected_branch(Channel.parse("beta"), "next", v("3.10.0-beta.3")) == "next"

    def test_bugfix_line(self) -> None:
        channel = Channel.parse("release-3-8")
        assert expected_branch(channel, "release-3-8", v("3.8.4")) == "release-3-8"

    def test_channel_rules_win_over_tag(self) -> None:
        assert expected_branch(Channel.parse("release-3-8"), "latest", v("3.8.4")) == "release-3-8"
        assert expected_branch(Channel.parse("lts"), "canary", v("3.8.4")) == "lts-3-8"
