"""Messages written to the output console over a merge run."""

from logging_config import get_logger
from models import MergeCommand, OutputKind, OutputSink, ProcessOutcome

logger = get_logger(__name__)


def format_command_line(command: MergeCommand) -> str:
    return f"Running: {command.display}\n\n"


def format_success(current: str, target: str) -> str:
    return f"\n✅ Merged {current} → {target} successfully\n"


def format_failure(exit_code: int) -> str:
    return f"\n❌ Merge failed, exit code: {exit_code}\n"


def format_cancelled() -> str:
    return "\n⛔ Terminated by user\n"


def report(outcome: ProcessOutcome, current: str, target: str, sink: OutputSink):
    """Write the closing line for a finished run.

    Cancelled runs get no extra line; the termination line was already
    written when the cancel was accepted.
    """
    if outcome.cancelled:
        return
    if outcome.exit_code == 0:
        text = format_success(current, target)
    else:
        text = format_failure(outcome.exit_code)
    try:
        sink.write(text, OutputKind.SYSTEM)
    except Exception as e:
        logger.error(f"Failed to write run report: {e}")
