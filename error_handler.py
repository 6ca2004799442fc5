"""Centralized error handling and user feedback for merge runs."""

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any, Callable

from logging_config import get_logger

logger = get_logger(__name__)

NOTIFICATION_TITLE = "Git Merge"


class ErrorSeverity(Enum):
    """Error severity levels for user feedback."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ErrorCategory(Enum):
    """Categories of errors for better organization."""
    PRECONDITION = "precondition"
    STAGING = "staging"
    GIT_OPERATION = "git_operation"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


Notifier = Callable[[str, str, ErrorSeverity], None]


class MergeError(Exception):
    """Base class for failures that abandon a merge run before it starts."""

    severity = ErrorSeverity.ERROR
    category = ErrorCategory.PRECONDITION
    default_message = "The merge could not be started."

    def __init__(self, user_message: Optional[str] = None):
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class NoCurrentBranch(MergeError):
    default_message = "Cannot determine the current branch (detached HEAD or no repository)."


class NoTargetSelected(MergeError):
    default_message = "Cannot determine the target branch."


class SameBranch(MergeError):
    severity = ErrorSeverity.WARNING
    default_message = "The current branch and the target branch are the same; nothing to merge."


class PayloadMissing(MergeError):
    default_message = "merge.sh was not found."


class InterpreterNotFound(MergeError):
    default_message = "bash was not found. Please make sure Git is configured correctly."


class RunInProgress(MergeError):
    severity = ErrorSeverity.WARNING
    default_message = "A merge is already running for this repository."


class StageIOError(MergeError):
    category = ErrorCategory.STAGING
    default_message = "Failed to write the merge script to a temporary file."


class SpawnError(MergeError):
    category = ErrorCategory.STAGING
    default_message = "Failed to start the merge script."


@dataclass
class ErrorInfo:
    """Structured error information."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    context: Optional[Dict[str, Any]] = None
    exception: Optional[Exception] = None
    traceback_str: Optional[str] = None


class ErrorHandler:
    """Routes merge errors to the log and to the user notifier."""

    def __init__(self, notifier: Optional[Notifier] = None):
        self.notifier = notifier

    def set_notifier(self, notifier: Notifier):
        """Set the callback used for user notifications."""
        self.notifier = notifier
        logger.debug("Error notifier registered")

    def handle_merge_error(
        self,
        exception: MergeError,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorInfo:
        """Log a merge error and notify the user exactly once."""
        return self.handle_error(
            exception,
            category=exception.category,
            severity=exception.severity,
            user_message=exception.user_message,
            context=context,
        )

    def handle_error(
        self,
        exception: Exception,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorInfo:
        """Handle an error with logging and user feedback."""
        traceback_str = None
        if exception.__traceback__ is not None:
            traceback_str = "".join(traceback.format_exception(
                type(exception), exception, exception.__traceback__
            ))

        error_info = ErrorInfo(
            category=category,
            severity=severity,
            message=str(exception),
            user_message=user_message or self._generate_user_message(exception, category),
            context=context or {},
            exception=exception,
            traceback_str=traceback_str,
        )

        self._log_error(error_info)
        self.notify(error_info.user_message, severity)
        return error_info

    def notify(self, message: str, severity: ErrorSeverity = ErrorSeverity.INFO):
        """Send a message to the notifier, never raising."""
        if not self.notifier:
            logger.debug(f"No notifier registered, dropping message: {message}")
            return
        try:
            self.notifier(NOTIFICATION_TITLE, message, severity)
        except Exception as e:
            logger.error(f"Error in notification callback: {e}")

    def _log_error(self, error_info: ErrorInfo):
        """Log error information appropriately based on severity."""
        log_message = f"[{error_info.category.value}] {error_info.message}"

        if error_info.context:
            log_message += f" | Context: {error_info.context}"

        if error_info.severity == ErrorSeverity.ERROR:
            # traceback only for staging faults
            exc_info = error_info.exception if error_info.category == ErrorCategory.STAGING else None
            logger.error(log_message, exc_info=exc_info)
        elif error_info.severity == ErrorSeverity.WARNING:
            logger.warning(log_message)
        else:
            logger.info(log_message)

    def _generate_user_message(self, exception: Exception, category: ErrorCategory) -> str:
        """Generate user-friendly error message."""
        if category == ErrorCategory.GIT_OPERATION:
            return f"Git operation failed: {exception}"
        elif category == ErrorCategory.STAGING:
            return f"File system error: {exception}"
        elif category == ErrorCategory.CONFIGURATION:
            return f"Configuration error: {exception}"
        else:
            return f"An unexpected error occurred: {exception}"
