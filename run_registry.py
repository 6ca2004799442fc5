"""Tracks merge runs that are in flight, one per repository."""

import threading
from pathlib import Path

from logging_config import get_logger
from merge_process import MergeProcess
from models import RunState

logger = get_logger(__name__)


class RunRegistry:
    """Maps repository roots to their active merge run."""

    def __init__(self):
        self._runs: dict[str, MergeProcess] = {}  # {repo_root_str: MergeProcess}
        self._lock = threading.Lock()

    @staticmethod
    def _key(repo_root: Path) -> str:
        return str(repo_root.resolve())

    def try_register(self, repo_root: Path, run: MergeProcess) -> bool:
        """Register a run unless another is still active for the repository."""
        key = self._key(repo_root)
        with self._lock:
            existing = self._runs.get(key)
            if existing is not None and not existing.state.is_terminal:
                return False
            self._runs[key] = run
            return True

    def get_active(self, repo_root: Path) -> MergeProcess | None:
        """Get the run for a repository if it has not finished."""
        with self._lock:
            run = self._runs.get(self._key(repo_root))
        if run is not None and not run.state.is_terminal:
            return run
        return None

    def release(self, repo_root: Path, run: MergeProcess | None = None):
        """Forget the run for a repository; only ``run`` if one is given."""
        key = self._key(repo_root)
        with self._lock:
            if run is not None and self._runs.get(key) is not run:
                return
            self._runs.pop(key, None)
        logger.debug(f"Released merge run slot for {repo_root}")

    def active_runs(self) -> dict[str, MergeProcess]:
        """Get all runs that are still going."""
        with self._lock:
            runs = dict(self._runs)
        return {k: r for k, r in runs.items() if not r.state.is_terminal}

    def cancel_all(self) -> int:
        """Cancel every active run; returns how many were cancelled."""
        cancelled = 0
        for key, run in self.active_runs().items():
            if run.cancel():
                logger.info(f"Cancelled merge run for {key}")
                cancelled += 1
        return cancelled
