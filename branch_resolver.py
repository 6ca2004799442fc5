"""Resolve the current and target branch names for a merge."""

from error_handler import NoCurrentBranch, NoTargetSelected, SameBranch

REMOTE_DECORATION_PREFIX = "[refs/remotes/origin/"
REMOTE_DECORATION_SUFFIX = "]"


def normalize_branch(raw: str) -> str:
    """Strip the remote-tracking decoration from a selected branch.

    ``[refs/remotes/origin/feature]`` becomes ``feature``. The closing
    bracket is only removed together with the prefix, so a branch really
    named ``fix]`` keeps its name. Applying this twice gives the same
    result as applying it once.
    """
    name = raw.strip()
    while name.startswith(REMOTE_DECORATION_PREFIX):
        name = name[len(REMOTE_DECORATION_PREFIX):]
        if name.endswith(REMOTE_DECORATION_SUFFIX):
            name = name[:-len(REMOTE_DECORATION_SUFFIX)]
        name = name.strip()
    return name


def resolve(current_raw: str | None, target_raw: str | None) -> tuple[str, str]:
    """Return ``(current, target)`` branch names ready for merging.

    Raises:
        NoCurrentBranch: the host could not supply a current branch.
        NoTargetSelected: nothing usable was selected as the target.
        SameBranch: both names normalize to the same branch.
    """
    current = normalize_branch(current_raw) if current_raw else ""
    if not current:
        raise NoCurrentBranch()

    target = normalize_branch(target_raw) if target_raw else ""
    if not target:
        raise NoTargetSelected()

    if current == target:
        raise SameBranch()
    return current, target
