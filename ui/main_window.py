"""Main window and application logic."""

import subprocess
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QComboBox, QPushButton, QCheckBox, QSplitter,
    QStatusBar, QMessageBox, QFileDialog, QListWidget,
    QListWidgetItem, QTabWidget
)

from branch_resolver import normalize_branch
from config import (
    load_config, save_config, push_recent_repo, push_recent_target, get_recent_targets
)
from error_handler import ErrorCategory, ErrorHandler, ErrorSeverity
from git_utils import ensure_repo_root, current_branch, list_branches, list_remote_branches
from logging_config import get_logger
from merge_service import MergeRequest, MergeService
from models import ProcessOutcome
from run_registry import RunRegistry

from .merge_console import MergeConsole, launch

logger = get_logger(__name__)

DARK_STYLE = """
    QWidget {
        background-color: #0f1115;
        color: #e6e7ee;
    }
    QLabel {
        background-color: transparent;
    }
    QPushButton {
        background-color: #1a1f2e;
        color: #e6e7ee;
        border: 1px solid #404757;
        border-radius: 4px;
        padding: 8px 12px;
        font-size: 11px;
    }
    QPushButton:hover {
        background-color: #20273a;
    }
    QPushButton:pressed {
        background-color: #26304a;
    }
    QPushButton:disabled {
        color: #5c6170;
    }
    QComboBox, QListWidget {
        background-color: #151823;
        color: #e6e7ee;
        border: 1px solid #404757;
        border-radius: 4px;
        padding: 6px;
    }
    QListWidget::item:selected {
        background-color: #7c7fff;
    }
    QTabBar::tab {
        background-color: #1a1f2e;
        padding: 6px 12px;
    }
    QTabBar::tab:selected {
        background-color: #26304a;
    }
    QStatusBar {
        background-color: #1a1f2e;
        color: #9aa1b2;
        border-top: 1px solid #404757;
    }
"""


class App(QMainWindow):
    """Main application window."""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Git Merge Console")
        self.resize(1000, 640)
        self.setMinimumSize(800, 480)

        self.cfg = load_config()

        self.repo_root: Path | None = None
        self.current_branch: str | None = None

        self.error_handler = ErrorHandler(self._notify)
        self.registry = RunRegistry()
        self.merge_service = MergeService(self.error_handler, cfg=self.cfg, registry=self.registry)

        self._setup_ui()
        self.setStyleSheet(DARK_STYLE)
        self._setup_menus()
        self._restore_settings()

    def _setup_ui(self):
        """Setup the main UI."""
        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        main_layout = QVBoxLayout(central_widget)
        main_layout.setContentsMargins(12, 12, 12, 12)
        main_layout.setSpacing(6)

        # Top bar
        top_layout = QHBoxLayout()
        top_layout.setSpacing(6)
        top_layout.addWidget(QLabel("Repository:"))

        self.repo_combo = QComboBox()
        self.repo_combo.setEditable(True)
        self.repo_combo.setMinimumWidth(400)
        self.repo_combo.addItems(self.cfg.get("recent_repos", []))
        self.repo_combo.setToolTip("Enter or select a Git repository path")
        top_layout.addWidget(self.repo_combo, 1)

        pick_btn = QPushButton("Pick…")
        pick_btn.clicked.connect(self.choose_repo)
        top_layout.addWidget(pick_btn)

        open_btn = QPushButton("Open")
        open_btn.clicked.connect(self.open_repo_from_entry)
        top_layout.addWidget(open_btn)

        refresh_btn = QPushButton("Refresh")
        refresh_btn.setToolTip("Reload branches (F5)")
        refresh_btn.clicked.connect(self.refresh)
        top_layout.addWidget(refresh_btn)

        self.auto_reopen_cb = QCheckBox("Auto‑reopen last")
        self.auto_reopen_cb.setChecked(bool(self.cfg.get("auto_reopen_last", True)))
        self.auto_reopen_cb.toggled.connect(self._persist_auto_reopen)
        top_layout.addWidget(self.auto_reopen_cb)

        main_layout.addLayout(top_layout)

        splitter = QSplitter(Qt.Orientation.Horizontal)

        # Left: branch picker
        left = QWidget()
        left_layout = QVBoxLayout(left)
        left_layout.setContentsMargins(0, 0, 0, 0)

        self.current_lbl = QLabel("Current branch: –")
        left_layout.addWidget(self.current_lbl)

        left_layout.addWidget(QLabel("Merge into:"))
        self.branch_list = QListWidget()
        self.branch_list.itemDoubleClicked.connect(lambda _item: self.merge_selected())
        left_layout.addWidget(self.branch_list, 1)

        self.merge_btn = QPushButton("Merge current → selected")
        self.merge_btn.setToolTip("Run merge.sh <target> --push --no-ff (Ctrl+M)")
        self.merge_btn.clicked.connect(self.merge_selected)
        left_layout.addWidget(self.merge_btn)
        splitter.addWidget(left)

        # Right: one console tab per run
        self.console_tabs = QTabWidget()
        self.console_tabs.setTabsClosable(True)
        self.console_tabs.tabCloseRequested.connect(self._close_console_tab)
        splitter.addWidget(self.console_tabs)

        splitter.setSizes([300, 700])
        main_layout.addWidget(splitter, 1)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_label = QLabel("Ready")
        self.status_label.setStyleSheet("color: #9aa1b2; padding: 6px 12px;")
        self.status_bar.addWidget(self.status_label)

    def _setup_menus(self):
        """Setup the menu bar."""
        menubar = self.menuBar()

        file_menu = menubar.addMenu("File")

        open_action = QAction("Open repository…", self)
        open_action.setShortcut(QKeySequence("Ctrl+O"))
        open_action.triggered.connect(self.choose_repo)
        file_menu.addAction(open_action)

        file_menu.addSeparator()
        self.recent_menu = file_menu.addMenu("Recent Repositories")
        self._rebuild_recent_menu()
        file_menu.addSeparator()

        exit_action = QAction("Exit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        merge_menu = menubar.addMenu("Merge")

        merge_action = QAction("Merge current → selected", self)
        merge_action.setShortcut(QKeySequence("Ctrl+M"))
        merge_action.triggered.connect(self.merge_selected)
        merge_menu.addAction(merge_action)

        stop_action = QAction("Stop current run", self)
        stop_action.triggered.connect(self.stop_current)
        merge_menu.addAction(stop_action)

        refresh_action = QAction("Refresh", self)
        refresh_action.setShortcut(QKeySequence("F5"))
        refresh_action.triggered.connect(self.refresh)
        merge_menu.addAction(refresh_action)

        help_menu = menubar.addMenu("Help")
        about_action = QAction("About", self)
        about_action.triggered.connect(self._show_about)
        help_menu.addAction(about_action)

    def _rebuild_recent_menu(self):
        """Rebuild the recent repositories menu."""
        self.recent_menu.clear()
        recents = self.cfg.get("recent_repos", [])
        if not recents:
            empty_action = QAction("(Empty)", self)
            empty_action.setEnabled(False)
            self.recent_menu.addAction(empty_action)
            return

        for path in recents:
            action = QAction(path, self)
            action.triggered.connect(lambda checked, p=path: self._open_repo_by_path(p))
            self.recent_menu.addAction(action)

        self.recent_menu.addSeparator()
        clear_action = QAction("Clear history", self)
        clear_action.triggered.connect(self._clear_recents)
        self.recent_menu.addAction(clear_action)

    def _notify(self, title: str, message: str, severity: ErrorSeverity):
        """Show a notification popup."""
        if severity == ErrorSeverity.ERROR:
            QMessageBox.critical(self, title, message)
        elif severity == ErrorSeverity.WARNING:
            QMessageBox.warning(self, title, message)
        else:
            QMessageBox.information(self, title, message)

    def _show_about(self):
        QMessageBox.about(
            self,
            "About",
            "Git Merge Console\n"
            "Merge the checked-out branch into another branch with merge.sh\n"
            "and watch the output live.\n"
            "Built with PySide6."
        )

    def _restore_settings(self):
        """Restore window geometry and last repo."""
        geom = self.cfg.get("window_geometry")
        if geom and 'x' in geom and '+' in geom:
            try:
                size_part, pos_part = geom.split('+', 1)
                width, height = map(int, size_part.split('x'))
                x, y = map(int, pos_part.split('+'))
                self.resize(width, height)
                self.move(x, y)
            except ValueError:
                logger.warning(f"Ignoring malformed window geometry {geom!r}")

        if self.cfg.get("auto_reopen_last") and self.cfg.get("last_repo"):
            last = Path(self.cfg["last_repo"])
            if last.exists():
                try:
                    self.repo_root = ensure_repo_root(last)
                except (ValueError, RuntimeError) as e:
                    logger.warning(f"Could not reopen {last}: {e}")
                    return
                self.repo_combo.setCurrentText(str(self.repo_root))
                self.refresh()

    def choose_repo(self):
        """Choose repository using file dialog."""
        folder = QFileDialog.getExistingDirectory(self, "Choose a Git repository")
        if folder:
            self._open_repo_by_path(folder)

    def open_repo_from_entry(self):
        """Open repository from current combo box text."""
        val = self.repo_combo.currentText().strip()
        if val:
            self._open_repo_by_path(val)

    def _open_repo_by_path(self, path_str: str):
        """Open repository by path string."""
        try:
            self.repo_root = ensure_repo_root(Path(path_str))
        except (ValueError, RuntimeError) as e:
            QMessageBox.critical(self, "Not a Git repository", str(e))
            return
        push_recent_repo(self.cfg, self.repo_root)
        save_config(self.cfg)
        self.repo_combo.clear()
        self.repo_combo.addItems(self.cfg.get("recent_repos", []))
        self.repo_combo.setCurrentText(str(self.repo_root))
        self._rebuild_recent_menu()
        self._set_status(f"📂 Repository opened: {self.repo_root.name}")
        self.refresh()

    def refresh(self):
        """Reload current branch and merge targets."""
        if not self.repo_root:
            return
        try:
            self.current_branch = current_branch(self.repo_root)
            local = list_branches(self.repo_root)
            remote = list_remote_branches(self.repo_root)
        except (subprocess.CalledProcessError, OSError) as e:
            self.error_handler.handle_error(
                e, category=ErrorCategory.GIT_OPERATION, context={"repo": str(self.repo_root)}
            )
            return

        self.current_lbl.setText(f"Current branch: {self.current_branch or '(detached)'}")
        self.branch_list.clear()

        recent = [b for b in get_recent_targets(self.cfg, self.repo_root) if b in local]
        for name in recent + [b for b in local if b not in recent]:
            item = QListWidgetItem(name)
            item.setData(Qt.ItemDataRole.UserRole, name)
            if name in recent:
                item.setToolTip("Recently merged into")
            self.branch_list.addItem(item)
        for ref in remote:
            # remote selections keep the decorated form; the resolver strips it
            item = QListWidgetItem(ref.replace("refs/remotes/", "", 1))
            item.setData(Qt.ItemDataRole.UserRole, f"[{ref}]")
            self.branch_list.addItem(item)

    def _selected_target(self) -> str | None:
        item = self.branch_list.currentItem()
        if item is None:
            return None
        return item.data(Qt.ItemDataRole.UserRole)

    def merge_selected(self):
        """Merge the current branch into the selected branch."""
        if not self.repo_root:
            QMessageBox.critical(self, "Select a repository", "Please choose a Git repository.")
            return

        try:
            branch = current_branch(self.repo_root)
        except OSError as e:
            logger.warning(f"Could not read current branch: {e}")
            branch = None

        console = MergeConsole(self)
        request = MergeRequest(
            repo_root=self.repo_root,
            current_branch=branch,
            target_selection=self._selected_target(),
        )
        run = launch(
            self.merge_service, request, console.sink,
            lambda outcome, r=self.repo_root, t=request.target_selection: self._on_run_finished(r, t, outcome),
        )
        if run is None:
            console.deleteLater()
            return

        console.attach(run)
        index = self.console_tabs.addTab(console, normalize_branch(request.target_selection))
        self.console_tabs.setCurrentIndex(index)
        self._set_status(f"▶ Merging into {normalize_branch(request.target_selection)}…")

    def stop_current(self):
        """Stop the run shown in the active console tab."""
        console = self.console_tabs.currentWidget()
        if isinstance(console, MergeConsole):
            console.stop()

    def _on_run_finished(self, repo_root: Path, target_selection: str, outcome: ProcessOutcome):
        target = normalize_branch(target_selection)
        if outcome.succeeded:
            push_recent_target(self.cfg, repo_root, target)
            save_config(self.cfg)
            self._set_status(f"✅ Merged into {target}")
        elif outcome.cancelled:
            self._set_status(f"⛔ Merge into {target} stopped")
        else:
            self._set_status(f"❌ Merge into {target} failed (exit code {outcome.exit_code})")
        if repo_root == self.repo_root:
            self.refresh()

    def _close_console_tab(self, index: int):
        console = self.console_tabs.widget(index)
        if isinstance(console, MergeConsole) and console.is_running:
            reply = QMessageBox.question(
                self,
                "Merge running",
                "The merge is still running. Stop it and close the console?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
                QMessageBox.StandardButton.No
            )
            if reply != QMessageBox.StandardButton.Yes:
                return
            console.stop()
        self.console_tabs.removeTab(index)
        console.deleteLater()

    def _persist_auto_reopen(self, checked: bool):
        """Persist auto-reopen setting."""
        self.cfg["auto_reopen_last"] = checked
        save_config(self.cfg)

    def _clear_recents(self):
        """Clear recent repositories."""
        self.cfg["recent_repos"] = []
        save_config(self.cfg)
        self.repo_combo.clear()
        self._rebuild_recent_menu()

    def _set_status(self, text: str):
        """Set status bar text."""
        self.status_label.setText(text)

    def closeEvent(self, event):
        """Handle close event."""
        cancelled = self.registry.cancel_all()
        if cancelled:
            logger.info(f"Cancelled {cancelled} running merge(s) on exit")

        geometry = self.geometry()
        self.cfg["window_geometry"] = f"{geometry.width()}x{geometry.height()}+{geometry.x()}+{geometry.y()}"
        if self.repo_root:
            self.cfg["last_repo"] = str(self.repo_root)
        try:
            save_config(self.cfg)
        except OSError as e:
            logger.error(f"Failed to save settings: {e}")

        event.accept()
