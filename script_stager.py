"""Write the bundled merge script to an executable temp file."""

import os
import stat
import tempfile
from pathlib import Path

from error_handler import PayloadMissing, StageIOError
from logging_config import get_logger

logger = get_logger(__name__)

SCRIPT_PATH = Path(__file__).parent / "assets" / "merge.sh"
TEMP_PREFIX = "merge"
TEMP_SUFFIX = ".sh"


def load_script_payload(path: Path | None = None) -> bytes:
    """Read the bundled merge script."""
    script = path or SCRIPT_PATH
    try:
        return script.read_bytes()
    except OSError as e:
        raise PayloadMissing(f"merge.sh was not found: {script}") from e


def normalize_line_endings(text: str) -> str:
    """Convert CRLF and bare CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def stage(payload: bytes | None) -> Path:
    """Materialize the script payload as an executable temp file.

    The caller owns the returned file; see :func:`discard`.
    """
    if payload is None:
        raise PayloadMissing()

    text = normalize_line_endings(payload.decode("utf-8", errors="replace"))
    path = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb", prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX, delete=False
        ) as f:
            path = Path(f.name)
            f.write(text.encode("utf-8"))
        mode = os.stat(path).st_mode
        os.chmod(path, mode | stat.S_IRUSR | stat.S_IWUSR | stat.S_IXUSR)
    except OSError as e:
        if path is not None:
            discard(path)
        raise StageIOError(f"Failed to write the merge script: {e}") from e

    logger.debug(f"Staged merge script at {path}")
    return path


def discard(path: Path):
    """Remove a staged script; failures are only logged."""
    try:
        path.unlink(missing_ok=True)
        logger.debug(f"Removed staged script {path}")
    except OSError as e:
        logger.warning(f"Failed to remove staged script {path}: {e}")
