"""Spawn the merge script and stream its output to a sink."""

import codecs
import os
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import Callable, Iterable, List

from error_handler import SpawnError
from logging_config import get_logger, log_exception
from models import MergeCommand, OutputKind, ProcessOutcome, RunContext, RunState
from run_reporter import format_cancelled, format_command_line

logger = get_logger(__name__)

READ_CHUNK_SIZE = 4096

FinishedCallback = Callable[[ProcessOutcome], None]


def _is_executable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def build_merge_command(interpreter: Path, script: Path, target: str) -> MergeCommand:
    """Build the merge command line, checking both files are runnable."""
    if not _is_executable_file(interpreter):
        raise ValueError(f"Interpreter is not an executable file: {interpreter}")
    if not _is_executable_file(script):
        raise ValueError(f"Script is not an executable file: {script}")
    if not target:
        raise ValueError("Target branch must not be empty")
    return MergeCommand(interpreter=interpreter, script=script, target=target)


class MergeProcess:
    """One run of the merge script.

    Owns the child process. Output is read on a background thread and
    written to the sink in arrival order; ``on_finished`` callbacks run on
    that thread once, after the last chunk.
    """

    def __init__(self, context: RunContext, on_finished: Iterable[FinishedCallback] = ()):
        self.context = context
        self._callbacks: List[FinishedCallback] = list(on_finished)
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._state = RunState.NOT_STARTED
        self._cancel_requested = False
        self._outcome: ProcessOutcome | None = None
        self._process: subprocess.Popen | None = None
        self._reader: threading.Thread | None = None

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def outcome(self) -> ProcessOutcome | None:
        return self._outcome

    def add_finished_callback(self, callback: FinishedCallback):
        """Register a callback; must be called before start()."""
        self._callbacks.append(callback)

    def start(self):
        """Spawn the script and return without waiting for it."""
        if self._state is not RunState.NOT_STARTED:
            raise RuntimeError(f"Merge process already {self._state.value}")

        command = self.context.command
        self._write(format_command_line(command), OutputKind.SYSTEM)
        logger.info(f"Starting merge in {self.context.work_dir}: {command.display}")

        kwargs = {}
        if sys.platform.startswith("win"):
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            kwargs["start_new_session"] = True

        try:
            self._process = subprocess.Popen(
                command.argv,
                cwd=str(self.context.work_dir),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                **kwargs,
            )
        except OSError as e:
            raise SpawnError(f"Failed to start the merge script: {e}") from e

        self._state = RunState.RUNNING
        self._reader = threading.Thread(
            target=self._pump_output, name=f"merge-output-{self._process.pid}", daemon=True
        )
        self._reader.start()

    def cancel(self) -> bool:
        """Kill the script and its children if it is still running.

        Returns True if this call terminated the run. Calling it after the
        run has finished, or twice, does nothing. If the script already
        exited but its children still hold the output pipe open, they are
        killed and the run keeps the script's own exit code.
        """
        with self._lock:
            if self._state is not RunState.RUNNING or self._cancel_requested:
                return False
            if self._process.poll() is not None:
                logger.info(f"Merge process {self._process.pid} already exited; killing leftover children")
                self._kill_tree()
                return False
            self._cancel_requested = True
            logger.info(f"Cancelling merge process {self._process.pid}")
            self._kill_tree()
            self.context.sink.write(format_cancelled(), OutputKind.SYSTEM)
        return True

    def wait(self, timeout: float | None = None) -> ProcessOutcome | None:
        """Block until the run finishes; None on timeout."""
        self._done.wait(timeout)
        return self._outcome

    def _write(self, text: str, kind: OutputKind):
        with self._lock:
            self.context.sink.write(text, kind)

    def _kill_tree(self):
        process = self._process
        try:
            if sys.platform.startswith("win"):
                result = subprocess.run(
                    ["taskkill", "/T", "/F", "/PID", str(process.pid)],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                if result.returncode != 0:
                    process.kill()
            else:
                os.killpg(process.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError) as e:
            # process group already empty
            logger.debug(f"Process {process.pid} already gone: {e}")
        except OSError as e:
            logger.warning(f"Failed to kill process tree {process.pid}: {e}")
            process.kill()

    def _pump_output(self):
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        stream = self._process.stdout
        try:
            while True:
                chunk = stream.read1(READ_CHUNK_SIZE)
                if not chunk:
                    break
                text = decoder.decode(chunk)
                if text:
                    self._write(text, OutputKind.NORMAL)
            tail = decoder.decode(b"", final=True)
            if tail:
                self._write(tail, OutputKind.NORMAL)
        except (OSError, ValueError) as e:
            logger.warning(f"Output stream of merge process closed unexpectedly: {e}")
        finally:
            stream.close()
            exit_code = self._process.wait()
            self._finish(exit_code)

    def _finish(self, exit_code: int):
        with self._lock:
            if self._state.is_terminal:
                return
            if self._cancel_requested:
                self._state = RunState.CANCELLED
            elif exit_code == 0:
                self._state = RunState.SUCCEEDED
            else:
                self._state = RunState.FAILED
            self._outcome = ProcessOutcome(exit_code=exit_code, state=self._state)

        logger.info(f"Merge process {self._process.pid} finished: {self._state.value} (exit code {exit_code})")
        for callback in self._callbacks:
            try:
                callback(self._outcome)
            except Exception:
                log_exception(
                    logger, "Merge finished callback failed",
                    callback=getattr(callback, "__qualname__", repr(callback)),
                    pid=self._process.pid,
                    state=self._state.value,
                )
        self._done.set()
