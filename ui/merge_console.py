"""Live output console for merge runs."""

import re
from typing import Callable

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtGui import QColor, QFont, QTextCharFormat, QTextCursor
from PySide6.QtWidgets import (
    QLabel,
    QPlainTextEdit,
    QPushButton,
    QHBoxLayout,
    QStyle,
    QVBoxLayout,
    QWidget,
)

from merge_process import MergeProcess
from merge_service import MergeRequest, MergeService
from models import OutputKind, ProcessOutcome, RunState

ANSI_ESCAPE = re.compile(r'\x1b\[[0-9;?]*[A-Za-z]')

STATE_LABELS = {
    RunState.NOT_STARTED: "Starting…",
    RunState.RUNNING: "Running",
    RunState.SUCCEEDED: "Succeeded",
    RunState.FAILED: "Failed",
    RunState.CANCELLED: "Cancelled",
}


class ConsoleSink(QObject):
    """OutputSink that hands text to the GUI thread.

    ``write`` may be called from the merge output thread; queued signal
    delivery keeps the arrival order.
    """

    text_written = Signal(str, str)
    finished = Signal(object)

    def write(self, text: str, kind: OutputKind) -> None:
        self.text_written.emit(text, kind.value)

    def on_finished(self, outcome: ProcessOutcome) -> None:
        self.finished.emit(outcome)


class MergeConsole(QWidget):
    """Console showing one merge run, with a Stop button."""

    def __init__(self, parent=None, title: str = "Merge Output"):
        super().__init__(parent)
        self.title = title
        self.process: MergeProcess | None = None
        self.sink = ConsoleSink(self)
        self.sink.text_written.connect(self._append, Qt.ConnectionType.QueuedConnection)
        self.sink.finished.connect(self._on_finished, Qt.ConnectionType.QueuedConnection)

        self._normal_format = QTextCharFormat()
        self._normal_format.setForeground(QColor("#e6e7ee"))
        self._system_format = QTextCharFormat()
        self._system_format.setForeground(QColor("#7c7fff"))
        self._system_format.setFontWeight(QFont.Weight.Bold)

        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(6)

        bar_layout = QHBoxLayout()
        bar_layout.addWidget(QLabel(self.title))
        bar_layout.addStretch()

        self.status_lbl = QLabel("")
        self.status_lbl.setStyleSheet("color: #8b8e98;")
        bar_layout.addWidget(self.status_lbl)

        self.stop_btn = QPushButton("Stop")
        self.stop_btn.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_MediaStop))
        self.stop_btn.setToolTip("Terminate merge.sh")
        self.stop_btn.setEnabled(False)
        self.stop_btn.clicked.connect(self.stop)
        bar_layout.addWidget(self.stop_btn)
        layout.addLayout(bar_layout)

        self.output = QPlainTextEdit()
        self.output.setReadOnly(True)
        self.output.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        font = QFont("monospace", 10)
        font.setStyleHint(QFont.StyleHint.Monospace)
        self.output.setFont(font)
        self.output.setStyleSheet("QPlainTextEdit { background-color: #000000; border: none; }")
        layout.addWidget(self.output, 1)

    def attach(self, process: MergeProcess):
        """Follow a started merge run."""
        self.process = process
        self.stop_btn.setEnabled(not process.state.is_terminal)
        self.status_lbl.setText(STATE_LABELS[process.state])

    def stop(self):
        """Cancel the attached run, if it is still going."""
        if self.process and self.process.cancel():
            self.status_lbl.setText("Stopping…")
        self.stop_btn.setEnabled(False)

    @property
    def is_running(self) -> bool:
        return self.process is not None and not self.process.state.is_terminal

    def _append(self, text: str, kind: str):
        cursor = self.output.textCursor()
        cursor.movePosition(QTextCursor.MoveOperation.End)
        fmt = self._system_format if kind == OutputKind.SYSTEM.value else self._normal_format
        cursor.setCharFormat(fmt)
        cursor.insertText(ANSI_ESCAPE.sub('', text.replace('\r\n', '\n')))
        self.output.setTextCursor(cursor)
        self.output.ensureCursorVisible()

    def _on_finished(self, outcome: ProcessOutcome):
        self.stop_btn.setEnabled(False)
        self.status_lbl.setText(f"{STATE_LABELS[outcome.state]} (exit code {outcome.exit_code})")


def launch(service: MergeService, request: MergeRequest, sink: ConsoleSink,
           on_finished: Callable[[ProcessOutcome], None]) -> MergeProcess | None:
    """Start a merge whose outcome is delivered to ``on_finished`` on the GUI thread.

    The handler is connected before the process starts, so a script that
    exits immediately still reaches it.
    """
    sink.finished.connect(on_finished, Qt.ConnectionType.QueuedConnection)
    return service.merge(request, sink, on_finished=[sink.on_finished])
