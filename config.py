"""Configuration management for Git Merge Console."""

import os
import sys
import json
from pathlib import Path

APP_NAME = "GitMergeConsole"
RECENTS_MAX = 15
RECENT_TARGETS_MAX = 10

DEFAULT_CONFIG = {
    "recent_repos": [],  # list[str]
    "last_repo": None,  # str | None
    "auto_reopen_last": True,  # bool
    "window_geometry": None,  # str | None
    "git_executable": None,  # str | None - overrides the git found on PATH
    "keep_staged_script": False,  # bool - leave merge*.sh in the temp dir after a run
    "recent_targets": {},  # dict[str, list[str]] - repo_path -> [branch_names]
}


def _config_dir() -> Path:
    """Get the platform-specific configuration directory."""
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(base) / APP_NAME
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
        return Path(base) / APP_NAME


def _config_path() -> Path:
    """Get the configuration file path."""
    return _config_dir() / "settings.json"


def _defaults() -> dict:
    return json.loads(json.dumps(DEFAULT_CONFIG))


def load_config(path: Path | None = None) -> dict:
    """Load configuration from file, falling back to defaults."""
    p = path or _config_path()
    try:
        with p.open("r", encoding="utf-8") as f:
            cfg = json.load(f)
    except (OSError, ValueError):
        return _defaults()
    if not isinstance(cfg, dict):
        return _defaults()
    for k, v in _defaults().items():
        cfg.setdefault(k, v)
    return cfg


def save_config(cfg: dict, path: Path | None = None):
    """Save configuration to file."""
    p = path or _config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.parent / f".{p.name}.tmp"
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)
    tmp.replace(p)


def push_recent_repo(cfg: dict, repo_root: Path):
    """Add a repository to the recent repositories list."""
    s = str(repo_root)
    recents = [r for r in cfg.get("recent_repos", []) if r != s]
    recents.insert(0, s)
    cfg["recent_repos"] = recents[:RECENTS_MAX]
    cfg["last_repo"] = s


def push_recent_target(cfg: dict, repo_root: Path, branch: str):
    """Add a merge target to the recent targets list for a specific repository."""
    repo_key = str(repo_root)
    recent_targets = cfg.setdefault("recent_targets", {})
    branch_list = [b for b in recent_targets.get(repo_key, []) if b != branch]
    branch_list.insert(0, branch)
    recent_targets[repo_key] = branch_list[:RECENT_TARGETS_MAX]


def get_recent_targets(cfg: dict, repo_root: Path) -> list[str]:
    """Get recent merge targets for a specific repository."""
    return cfg.get("recent_targets", {}).get(str(repo_root), [])
