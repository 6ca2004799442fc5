"""Git operations for Git Merge Console."""

import shutil
import subprocess
from pathlib import Path
from typing import List

from logging_config import get_logger

logger = get_logger(__name__)

REMOTE_REF_PREFIX = "refs/remotes/origin/"


def which(cmd: str) -> str | None:
    """Find command in PATH."""
    return shutil.which(cmd)


def git_executable(cfg: dict | None = None) -> str | None:
    """Return the configured git executable, or the one found on PATH."""
    override = (cfg or {}).get("git_executable")
    if override:
        if Path(override).is_absolute():
            return str(override)
        # bare command name; look it up like the shell would
        return which(str(override))
    return which("git")


def run_git(args: List[str], cwd: Path | None = None, check: bool = True) -> subprocess.CompletedProcess[str]:
    """Run a git command with safe argument passing."""
    cmd = ["git"] + list(args)
    logger.debug(f"Running: {' '.join(cmd)}")
    return subprocess.run(
        cmd,
        cwd=str(cwd) if cwd else None,
        check=check,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )


def ensure_repo_root(path: Path) -> Path:
    """Return the repo root for any path inside a Git repo."""
    if not path.is_dir():
        raise ValueError(f"{path} is not a git repository")
    try:
        cp = run_git(["-C", str(path), "rev-parse", "--show-toplevel"])
    except FileNotFoundError:
        raise RuntimeError("Git not found on PATH.")
    except subprocess.CalledProcessError as e:
        raise ValueError(f"{path} is not a git repository: {e.stderr.strip()}")
    return Path(cp.stdout.strip())


def current_branch(repo_root: Path) -> str | None:
    """Return the checked-out branch name, or None on a detached HEAD."""
    cp = run_git(["-C", str(repo_root), "symbolic-ref", "--quiet", "--short", "HEAD"], check=False)
    if cp.returncode != 0:
        return None
    return cp.stdout.strip() or None


def list_branches(repo_root: Path) -> list[str]:
    """Get local branch names."""
    cp = run_git(["-C", str(repo_root), "for-each-ref", "--format=%(refname:short)", "refs/heads"])
    return sorted(line.strip() for line in cp.stdout.splitlines() if line.strip())


def list_remote_branches(repo_root: Path) -> list[str]:
    """Get full refs of origin's remote-tracking branches, without origin/HEAD."""
    cp = run_git(["-C", str(repo_root), "for-each-ref", "--format=%(refname)", REMOTE_REF_PREFIX.rstrip("/")])
    refs = []
    for line in cp.stdout.splitlines():
        line = line.strip()
        if line and line != REMOTE_REF_PREFIX + "HEAD":
            refs.append(line)
    return sorted(refs)
