"""Tests for branch name resolution."""

import pytest

from branch_resolver import normalize_branch, resolve
from error_handler import ErrorSeverity, NoCurrentBranch, NoTargetSelected, SameBranch


class TestNormalizeBranch:
    """Tests for normalize_branch function."""

    @pytest.mark.parametrize("name", ["feature", "release/1.2", "fix-123", "user/topic/x"])
    def test_strips_remote_decoration(self, name):
        """Decorated remote selections reduce to the bare branch name."""
        assert normalize_branch(f"[refs/remotes/origin/{name}]") == name

    def test_plain_name_unchanged(self):
        """Undecorated names pass through."""
        assert normalize_branch("develop") == "develop"

    def test_strips_whitespace(self):
        """Surrounding whitespace is removed."""
        assert normalize_branch("  [refs/remotes/origin/feature]\n") == "feature"

    def test_prefix_without_suffix(self):
        """A decoration missing its closing bracket still loses the prefix."""
        assert normalize_branch("[refs/remotes/origin/feature") == "feature"

    @pytest.mark.parametrize("name", ["fix]", "feature]]"])
    def test_bracket_kept_without_prefix(self, name):
        """A trailing bracket on an undecorated name is part of the name."""
        assert normalize_branch(name) == name

    def test_single_bracket_removed(self):
        """Only one closing bracket belongs to the decoration."""
        assert normalize_branch("[refs/remotes/origin/fix]]") == "fix]"

    @pytest.mark.parametrize("raw", [
        "[refs/remotes/origin/feature]",
        "feature]]",
        "[refs/remotes/origin/[refs/remotes/origin/feature]]",
        " [refs/remotes/origin/ [refs/remotes/origin/x]",
        "main",
        "",
    ])
    def test_idempotent(self, raw):
        """Normalizing twice gives the same result as once."""
        once = normalize_branch(raw)
        assert normalize_branch(once) == once

    def test_decoration_only_is_empty(self):
        """A bare decoration normalizes to an empty name."""
        assert normalize_branch("[refs/remotes/origin/]") == ""


class TestResolve:
    """Tests for resolve function."""

    def test_resolve_decorated_target(self):
        """Current and normalized target are returned."""
        assert resolve("main", "[refs/remotes/origin/feature]") == ("main", "feature")

    @pytest.mark.parametrize("current", [None, "", "   "])
    def test_no_current_branch(self, current):
        """Missing current branch raises NoCurrentBranch."""
        with pytest.raises(NoCurrentBranch):
            resolve(current, "feature")

    @pytest.mark.parametrize("target", [None, "", "  ", "[refs/remotes/origin/]"])
    def test_no_target_selected(self, target):
        """Missing or empty target raises NoTargetSelected."""
        with pytest.raises(NoTargetSelected):
            resolve("main", target)

    def test_same_branch(self):
        """Target equal to current after normalization raises SameBranch."""
        with pytest.raises(SameBranch) as exc_info:
            resolve("main", "[refs/remotes/origin/main]")
        assert exc_info.value.severity is ErrorSeverity.WARNING

    def test_current_checked_before_target(self):
        """With nothing supplied, the current branch failure wins."""
        with pytest.raises(NoCurrentBranch):
            resolve(None, None)
