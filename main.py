#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Git Merge Console
Entry point for the application.
"""

import sys
import time

from logging_config import setup_logging, get_logger, configure_qt_logging

logger = get_logger(__name__)


def main() -> int:
    setup_logging(level="INFO", log_to_file=True, log_to_console=True)
    startup_start_time = time.time()

    try:
        logger.info("Starting Git Merge Console")

        from PySide6.QtWidgets import QApplication
        from ui.main_window import App

        app = QApplication(sys.argv)
        configure_qt_logging()

        app.setApplicationName("Git Merge Console")
        app.setApplicationDisplayName("Git Merge")
        app.setApplicationVersion("1.0")

        window = App()
        window.show()
        logger.info(f"Application startup completed in {(time.time() - startup_start_time) * 1000:.1f}ms")

        exit_code = app.exec()
        logger.info(f"Application exiting with code {exit_code}")
        return exit_code

    except Exception as e:
        logger.critical(f"Fatal error during application startup: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
