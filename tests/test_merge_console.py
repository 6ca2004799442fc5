"""Tests for delivering merge results to the GUI thread."""

import sys
import time
from pathlib import Path
from unittest.mock import Mock

import pytest
from PySide6.QtCore import QCoreApplication

from error_handler import ErrorHandler
from merge_service import MergeRequest, MergeService
from models import OutputKind, RunState
from ui.merge_console import ConsoleSink, launch

TIMEOUT = 30


@pytest.fixture(scope="module")
def qt_app():
    """A Qt event loop for queued signal delivery."""
    return QCoreApplication.instance() or QCoreApplication([])


def _service(script_body: str) -> MergeService:
    return MergeService(
        ErrorHandler(Mock()),
        locate_interpreter=lambda git_path: Path(sys.executable),
        load_payload=lambda: script_body.encode("utf-8"),
    )


def _process_events_until(predicate, timeout: float = 10.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        QCoreApplication.processEvents()
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestLaunch:
    """Tests for launch function."""

    def test_fast_exit_still_reported(self, qt_app, temp_dir):
        """A script that fails at once still reaches the finish handler."""
        sink = ConsoleSink()
        outcomes = []

        run = launch(_service("import sys\nsys.exit(2)\n"),
                     MergeRequest(temp_dir, "main", "feature"), sink, outcomes.append)
        assert run is not None
        run.wait(TIMEOUT)

        assert _process_events_until(lambda: outcomes)
        assert len(outcomes) == 1
        assert outcomes[0].state is RunState.FAILED
        assert outcomes[0].exit_code == 2

    def test_output_arrives_before_outcome(self, qt_app, temp_dir):
        """Text and the finish signal keep their order across threads."""
        sink = ConsoleSink()
        events = []
        sink.text_written.connect(lambda text, kind: events.append(("text", kind)))

        run = launch(_service("print('hello', flush=True)\n"),
                     MergeRequest(temp_dir, "main", "feature"), sink,
                     lambda outcome: events.append(("finished", outcome.state)))
        run.wait(TIMEOUT)

        assert _process_events_until(lambda: events and events[-1][0] == "finished")
        assert events[-1] == ("finished", RunState.SUCCEEDED)
        assert ("text", OutputKind.NORMAL.value) in events[:-1]

    def test_refused_run_never_finishes(self, qt_app, temp_dir):
        """A merge stopped by a pre-flight check returns None and emits nothing."""
        sink = ConsoleSink()
        outcomes = []

        run = launch(_service("pass\n"), MergeRequest(temp_dir, "main", "main"), sink, outcomes.append)

        assert run is None
        QCoreApplication.processEvents()
        assert outcomes == []
