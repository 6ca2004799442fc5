"""Tests for error handling and user notification."""

import subprocess
from unittest.mock import Mock

import pytest

from error_handler import (
    ErrorCategory,
    ErrorHandler,
    ErrorSeverity,
    InterpreterNotFound,
    MergeError,
    NoCurrentBranch,
    NoTargetSelected,
    PayloadMissing,
    RunInProgress,
    SameBranch,
    SpawnError,
    StageIOError,
)


class TestMergeErrors:
    """Tests for the merge error taxonomy."""

    @pytest.mark.parametrize("error_cls, severity, category", [
        (NoCurrentBranch, ErrorSeverity.ERROR, ErrorCategory.PRECONDITION),
        (NoTargetSelected, ErrorSeverity.ERROR, ErrorCategory.PRECONDITION),
        (SameBranch, ErrorSeverity.WARNING, ErrorCategory.PRECONDITION),
        (PayloadMissing, ErrorSeverity.ERROR, ErrorCategory.PRECONDITION),
        (InterpreterNotFound, ErrorSeverity.ERROR, ErrorCategory.PRECONDITION),
        (RunInProgress, ErrorSeverity.WARNING, ErrorCategory.PRECONDITION),
        (StageIOError, ErrorSeverity.ERROR, ErrorCategory.STAGING),
        (SpawnError, ErrorSeverity.ERROR, ErrorCategory.STAGING),
    ])
    def test_classification(self, error_cls, severity, category):
        error = error_cls()
        assert isinstance(error, MergeError)
        assert error.severity is severity
        assert error.category is category
        assert error.user_message

    def test_custom_message(self):
        """A custom message overrides the default."""
        error = StageIOError("disk full")
        assert error.user_message == "disk full"
        assert str(error) == "disk full"


class TestErrorHandler:
    """Tests for ErrorHandler class."""

    def test_notifies_once(self):
        """Each handled error produces exactly one notification."""
        notifier = Mock()
        handler = ErrorHandler(notifier)

        info = handler.handle_merge_error(SameBranch(), context={"target": "main"})

        notifier.assert_called_once_with("Git Merge", SameBranch.default_message, ErrorSeverity.WARNING)
        assert info.severity is ErrorSeverity.WARNING
        assert info.context == {"target": "main"}

    def test_notifier_failure_swallowed(self):
        """A failing notifier does not raise out of the handler."""
        notifier = Mock(side_effect=RuntimeError("no display"))
        handler = ErrorHandler(notifier)

        info = handler.handle_merge_error(InterpreterNotFound())

        notifier.assert_called_once()
        assert info.category is ErrorCategory.PRECONDITION

    def test_no_notifier(self):
        """Without a notifier errors are only logged."""
        info = ErrorHandler().handle_merge_error(NoTargetSelected())
        assert info.user_message == NoTargetSelected.default_message

    def test_set_notifier(self):
        """A notifier can be registered later."""
        handler = ErrorHandler()
        notifier = Mock()
        handler.set_notifier(notifier)

        handler.notify("hello")

        notifier.assert_called_once_with("Git Merge", "hello", ErrorSeverity.INFO)

    def test_traceback_captured(self):
        """Raised errors keep their traceback."""
        handler = ErrorHandler(Mock())
        try:
            raise StageIOError("Permission denied")
        except StageIOError as e:
            info = handler.handle_merge_error(e)

        assert "StageIOError" in info.traceback_str

    def test_generic_error_message(self):
        """Non-merge errors get a message from their category."""
        notifier = Mock()
        info = ErrorHandler(notifier).handle_error(ValueError("bad key"), category=ErrorCategory.CONFIGURATION)

        assert info.user_message == "Configuration error: bad key"
        notifier.assert_called_once_with("Git Merge", "Configuration error: bad key", ErrorSeverity.ERROR)

    def test_git_failure_message(self):
        """Failed git commands are reported as git errors."""
        notifier = Mock()
        error = subprocess.CalledProcessError(128, ["git", "for-each-ref"])

        info = ErrorHandler(notifier).handle_error(
            error, category=ErrorCategory.GIT_OPERATION, context={"repo": "/tmp/repo"}
        )

        assert info.user_message.startswith("Git operation failed: ")
        assert "128" in info.user_message
        notifier.assert_called_once_with("Git Merge", info.user_message, ErrorSeverity.ERROR)
