"""Find a bash interpreter to run the merge script with."""

from pathlib import Path
from typing import Iterable, List

from logging_config import get_logger

logger = get_logger(__name__)

# Relative to the Git installation root; Git for Windows ships its own bash
GIT_RELATIVE_CANDIDATES = (
    "bin/bash.exe",
    "usr/bin/bash.exe",
    "usr/bin/bash",
    "bin/bash",
)
SYSTEM_CANDIDATES = (
    "/usr/bin/bash",
    "/bin/bash",
)


def candidate_paths(git_path: str | None) -> List[Path]:
    """Build the ordered list of places where bash may live.

    Only an absolute git path says where Git is installed; a bare name
    like ``git`` contributes nothing.
    """
    candidates = []
    if git_path and Path(git_path).is_absolute():
        # <root>/cmd/git.exe or <root>/bin/git
        git_root = Path(git_path).parent.parent
        candidates.extend(git_root / rel for rel in GIT_RELATIVE_CANDIDATES)
    candidates.extend(Path(p) for p in SYSTEM_CANDIDATES)
    return candidates


def locate(git_path: str | None, candidates: Iterable[Path] | None = None) -> Path | None:
    """Return the first candidate that exists as a file, or None."""
    if candidates is None:
        candidates = candidate_paths(git_path)
    for candidate in candidates:
        try:
            if candidate.is_file():
                logger.info(f"Using interpreter {candidate}")
                return candidate
        except OSError as e:
            logger.debug(f"Skipping interpreter candidate {candidate}: {e}")
    logger.warning(f"No bash interpreter found (git: {git_path})")
    return None
