"""Merge the current branch into a selected target branch."""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

import interpreter_locator
import run_reporter
import script_stager
from branch_resolver import resolve
from error_handler import (
    ErrorHandler,
    InterpreterNotFound,
    MergeError,
    RunInProgress,
    SpawnError,
)
from git_utils import git_executable
from logging_config import get_logger
from merge_process import FinishedCallback, MergeProcess, build_merge_command
from models import OutputSink, ProcessOutcome, RunContext
from run_registry import RunRegistry

logger = get_logger(__name__)


@dataclass
class MergeRequest:
    """What the user asked for: merge the checked-out branch into a target."""

    repo_root: Path
    current_branch: str | None
    target_selection: str | None


class MergeService:
    """Runs the pre-flight checks and launches merge runs."""

    def __init__(
        self,
        error_handler: ErrorHandler,
        cfg: dict | None = None,
        registry: RunRegistry | None = None,
        locate_interpreter: Callable[[str | None], Path | None] = interpreter_locator.locate,
        load_payload: Callable[[], bytes] = script_stager.load_script_payload,
    ):
        self.error_handler = error_handler
        self.cfg = cfg if cfg is not None else {}
        self.registry = registry or RunRegistry()
        self._locate_interpreter = locate_interpreter
        self._load_payload = load_payload

    def merge(
        self,
        request: MergeRequest,
        sink: OutputSink,
        on_finished: Iterable[FinishedCallback] = (),
    ) -> MergeProcess | None:
        """Start a merge run.

        Returns the running process, or None if a pre-flight check failed.
        Each failure is reported to the user once through the error handler.
        """
        try:
            current, target = resolve(request.current_branch, request.target_selection)
            return self._launch(request.repo_root, current, target, sink, on_finished)
        except MergeError as e:
            self.error_handler.handle_merge_error(e, context={
                "repo_root": str(request.repo_root),
                "current_branch": request.current_branch,
                "target_selection": request.target_selection,
            })
            return None

    def _launch(
        self,
        repo_root: Path,
        current: str,
        target: str,
        sink: OutputSink,
        on_finished: Iterable[FinishedCallback],
    ) -> MergeProcess:
        if self.registry.get_active(repo_root) is not None:
            raise RunInProgress()

        interpreter = self._locate_interpreter(git_executable(self.cfg))
        if interpreter is None:
            raise InterpreterNotFound()

        script = script_stager.stage(self._load_payload())
        try:
            command = build_merge_command(interpreter, script, target)
        except ValueError as e:
            script_stager.discard(script)
            raise SpawnError(str(e)) from e

        run = MergeProcess(RunContext(work_dir=repo_root, command=command, sink=sink))
        if not self.registry.try_register(repo_root, run):
            script_stager.discard(script)
            raise RunInProgress()

        def _report(outcome: ProcessOutcome):
            run_reporter.report(outcome, current, target, sink)

        def _cleanup(outcome: ProcessOutcome):
            self.registry.release(repo_root, run)
            if not self.cfg.get("keep_staged_script", False):
                script_stager.discard(script)

        run.add_finished_callback(_report)
        run.add_finished_callback(_cleanup)
        for callback in on_finished:
            run.add_finished_callback(callback)

        try:
            run.start()
        except SpawnError:
            self.registry.release(repo_root, run)
            script_stager.discard(script)
            raise

        logger.info(f"Merging {current} into {target} in {repo_root}")
        return run
