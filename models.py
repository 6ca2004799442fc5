"""Data models for Git Merge Console."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

MERGE_FLAGS = ("--push", "--no-ff")


class OutputKind(Enum):
    """Category of a line written to the output sink."""

    SYSTEM = "system"
    NORMAL = "normal"


class RunState(Enum):
    """Lifecycle of a single merge run."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.SUCCEEDED, RunState.FAILED, RunState.CANCELLED)


class OutputSink(Protocol):
    """Append-only text surface receiving merge output."""

    def write(self, text: str, kind: OutputKind) -> None:
        ...


@dataclass(frozen=True)
class MergeCommand:
    """Command line for one merge run."""

    interpreter: Path
    script: Path
    target: str
    flags: tuple[str, ...] = MERGE_FLAGS

    @property
    def argv(self) -> list[str]:
        return [str(self.interpreter), str(self.script), self.target, *self.flags]

    @property
    def display(self) -> str:
        return " ".join(self.argv)


@dataclass
class RunContext:
    """Everything a merge process needs to run."""

    work_dir: Path
    command: MergeCommand
    sink: OutputSink


@dataclass(frozen=True)
class ProcessOutcome:
    """Final result of a merge run, produced exactly once."""

    exit_code: int
    state: RunState

    @property
    def cancelled(self) -> bool:
        return self.state is RunState.CANCELLED

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.SUCCEEDED
