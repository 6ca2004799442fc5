"""Logging configuration for Git Merge Console."""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path

from config import _config_dir

LOG_FORMAT = '%(asctime)s [%(threadName)s] %(name)s %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

MAIN_LOG = "merge_console.log"
ERROR_LOG = "errors.log"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for feeding log files to other tools."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'thread': record.threadName,
            'pid': getattr(record, 'pid', None),
            'message': record.getMessage(),
        }
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        extra = getattr(record, 'extra_data', None)
        if extra:
            entry['extra'] = extra
        return json.dumps(entry, ensure_ascii=False, default=str)


class ContextFilter(logging.Filter):
    """Stamp records with the application's process id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.pid = os.getpid()
        return True


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter,
                      max_file_size: int, backup_count: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_file_size, backupCount=backup_count, encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    return handler


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_to_console: bool = True,
    json_format: bool = False,
    max_file_size: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    log_dir: Path | None = None,
) -> logging.Logger:
    """Configure the root logger.

    Console output goes to stdout at INFO. With ``log_to_file`` everything
    down to DEBUG is written to ``merge_console.log`` and errors are
    duplicated into ``errors.log``, both rotating, under ``log_dir``
    (default: ``<config dir>/logs``).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    formatter = JSONFormatter() if json_format else logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(ContextFilter())
        root_logger.addHandler(console_handler)

    if log_to_file:
        log_dir = log_dir or _config_dir() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(
            _rotating_handler(log_dir / MAIN_LOG, logging.DEBUG, formatter, max_file_size, backup_count)
        )
        root_logger.addHandler(
            _rotating_handler(log_dir / ERROR_LOG, logging.ERROR, formatter, max_file_size, backup_count)
        )

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_exception(logger: logging.Logger, message: str, **context):
    """Log the exception being handled, attaching ``context`` as structured data."""
    logger.error(message, exc_info=True, extra={'extra_data': context})


def configure_qt_logging():
    """Route Qt's own warnings into the ``qt`` logger."""
    from PySide6.QtCore import QtMsgType, qInstallMessageHandler

    qt_logger = get_logger('qt')
    levels = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def qt_message_handler(msg_type, context, message: str):
        qt_logger.log(levels.get(msg_type, logging.WARNING), f"Qt: {message}")

    qInstallMessageHandler(qt_message_handler)
