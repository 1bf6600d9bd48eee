"""Main window for the CyberMD application."""

import logging
import os
from typing import Dict

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QActionGroup, QCloseEvent, QKeySequence, QTextCursor
from PySide6.QtWidgets import (
    QDockWidget, QFileDialog, QListWidget, QListWidgetItem, QMainWindow, QMessageBox
)

from reparse import EditorSession, HighlightPassResult, ReparseError

from cybermd.code_editor import CodeEditor
from cybermd.editor_settings import EditorSettings
from cybermd.markdown_view_highlighter import MarkdownViewHighlighter, utf16_mapper
from cybermd.style_manager import ColorMode, StyleManager


SETTINGS_PATH = os.path.expanduser("~/.cybermd/settings.json")
MARKDOWN_FILTER = "Markdown Files (*.md *.markdown);;All Files (*)"


class MainWindow(QMainWindow):
    """Main window for the application."""

    def __init__(self, settings_path: str = SETTINGS_PATH) -> None:
        """
        Initialize the main window.

        Args:
            settings_path: Where editor settings are loaded from and saved to
        """
        super().__init__()
        self._logger = logging.getLogger("MainWindow")

        self._settings_path = settings_path
        self._settings = self._load_settings()

        self._style_manager = StyleManager()
        self._style_manager.set_user_font_size(self._settings.font_size)
        self._style_manager.set_color_mode(self._settings.theme)

        self._current_file: str | None = None
        self._loading = False

        self._editor = CodeEditor(self, tab_width=self._settings.tab_width)
        self.setCentralWidget(self._editor)

        self._highlighter = MarkdownViewHighlighter(self._editor.document())
        self._session = EditorSession(self._highlighter, debounce_ms=self._settings.debounce_ms)
        self._session.on_updated = self._on_highlights_updated
        self._session.on_error = self._on_reparse_error

        self._outline_list = QListWidget(self)
        self._outline_list.itemActivated.connect(self._on_outline_item_activated)
        self._outline_list.itemClicked.connect(self._on_outline_item_activated)
        self._outline_dock = QDockWidget("Outline", self)
        self._outline_dock.setObjectName("OutlineDock")
        self._outline_dock.setWidget(self._outline_list)
        self.addDockWidget(Qt.DockWidgetArea.LeftDockWidgetArea, self._outline_dock)

        self._create_actions()
        self._create_menus()

        self._editor.textChanged.connect(self._on_text_changed)

        self.resize(1024, 768)
        self._update_title()
        self.statusBar().showMessage("Ready")

    def _load_settings(self) -> EditorSettings:
        """Load settings, falling back to defaults if they are missing or unreadable."""
        if not os.path.exists(self._settings_path):
            return EditorSettings.create_default()

        try:
            return EditorSettings.load(self._settings_path)

        except (ValueError, OSError) as e:
            self._logger.warning("failed to load settings from %s: %s", self._settings_path, str(e))
            return EditorSettings.create_default()

    def _save_settings(self) -> None:
        try:
            self._settings.save(self._settings_path)

        except OSError as e:
            self._logger.warning("failed to save settings to %s: %s", self._settings_path, str(e))

    def _create_actions(self) -> None:
        self._new_action = QAction("&New", self)
        self._new_action.setShortcut(QKeySequence.StandardKey.New)
        self._new_action.triggered.connect(self._new_file)

        self._open_action = QAction("&Open...", self)
        self._open_action.setShortcut(QKeySequence.StandardKey.Open)
        self._open_action.triggered.connect(self._open_file)

        self._save_action = QAction("&Save", self)
        self._save_action.setShortcut(QKeySequence.StandardKey.Save)
        self._save_action.triggered.connect(self._save_file)

        self._save_as_action = QAction("Save &As...", self)
        self._save_as_action.setShortcut(QKeySequence.StandardKey.SaveAs)
        self._save_as_action.triggered.connect(self._save_file_as)

        self._quit_action = QAction("&Quit", self)
        self._quit_action.setMenuRole(QAction.MenuRole.QuitRole)
        self._quit_action.setShortcut(QKeySequence("Ctrl+Q"))
        self._quit_action.triggered.connect(self.close)

        self._theme_group = QActionGroup(self)
        self._theme_actions: Dict[ColorMode, QAction] = {}
        for mode, label in ((ColorMode.LIGHT, "&Light Theme"), (ColorMode.DARK, "&Dark Theme")):
            action = QAction(label, self)
            action.setCheckable(True)
            action.setChecked(mode == self._settings.theme)
            action.triggered.connect(lambda _checked=False, m=mode: self._set_theme(m))
            self._theme_group.addAction(action)
            self._theme_actions[mode] = action

        self._about_action = QAction("&About CyberMD", self)
        self._about_action.setMenuRole(QAction.MenuRole.AboutRole)
        self._about_action.triggered.connect(self._show_about_dialog)

    def _create_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")
        file_menu.addAction(self._new_action)
        file_menu.addAction(self._open_action)
        file_menu.addSeparator()
        file_menu.addAction(self._save_action)
        file_menu.addAction(self._save_as_action)
        file_menu.addSeparator()
        file_menu.addAction(self._quit_action)

        view_menu = self.menuBar().addMenu("&View")
        for action in self._theme_actions.values():
            view_menu.addAction(action)

        view_menu.addSeparator()
        view_menu.addAction(self._outline_dock.toggleViewAction())

        help_menu = self.menuBar().addMenu("&Help")
        help_menu.addAction(self._about_action)

    def _update_title(self) -> None:
        name = os.path.basename(self._current_file) if self._current_file else "Untitled"
        self.setWindowTitle(f"{name}[*] - CyberMD")

    def _on_text_changed(self) -> None:
        """Hand every edit to the session; parsing happens once typing pauses."""
        self._session.on_text_changed(self._editor.toPlainText())
        if not self._loading:
            self.setWindowModified(True)
            self.statusBar().showMessage("Modified")

    def _on_highlights_updated(self, _version: int, result: HighlightPassResult) -> None:
        if result.anomaly_count:
            self.statusBar().showMessage(
                f"Parsed - {len(result.ranges)} highlight ranges, {result.anomaly_count} recovered issues"
            )

        else:
            self.statusBar().showMessage(f"Parsed - {len(result.ranges)} highlight ranges")

        self._update_outline(result)

    def _on_reparse_error(self, error: ReparseError) -> None:
        self.statusBar().showMessage(f"Parse error: {str(error)}")

    def _update_outline(self, result: HighlightPassResult) -> None:
        self._outline_list.clear()
        for entry in result.outline:
            item = QListWidgetItem(f"{'  ' * (entry.level - 1)}{entry.title}")
            item.setData(Qt.ItemDataRole.UserRole, entry.start)
            self._outline_list.addItem(item)

    def _on_outline_item_activated(self, item: QListWidgetItem) -> None:
        """Move the cursor to the selected heading."""
        offset = item.data(Qt.ItemDataRole.UserRole)
        if offset is None:
            return

        to_utf16 = utf16_mapper(self._editor.toPlainText())
        cursor = self._editor.textCursor()
        cursor.setPosition(to_utf16(offset))
        cursor.movePosition(QTextCursor.MoveOperation.StartOfBlock)
        self._editor.setTextCursor(cursor)
        self._editor.centerCursor()
        self._editor.setFocus()

    def _confirm_discard(self) -> bool:
        """
        Ask whether unsaved changes may be discarded, saving them if asked to.

        Returns:
            True if it is fine to carry on
        """
        if not self.isWindowModified():
            return True

        result = QMessageBox.question(
            self,
            "Unsaved Changes",
            "The document has been modified.\nDo you want to save your changes?",
            QMessageBox.StandardButton.Save | QMessageBox.StandardButton.Discard | QMessageBox.StandardButton.Cancel
        )

        if result == QMessageBox.StandardButton.Save:
            return self._save_file()

        return result == QMessageBox.StandardButton.Discard

    def _set_document_text(self, text: str) -> None:
        # Positions in the old highlights only make sense for the old text
        self._session.clear_view()

        self._loading = True
        try:
            self._editor.setPlainText(text)

        finally:
            self._loading = False

        self.setWindowModified(False)
        self._session.reparse_now()

    def _new_file(self) -> None:
        if not self._confirm_discard():
            return

        self._current_file = None
        self._set_document_text("")
        self._update_title()
        self.statusBar().showMessage("Ready")

    def _open_file(self) -> None:
        if not self._confirm_discard():
            return

        path, _ = QFileDialog.getOpenFileName(self, "Open File", "", MARKDOWN_FILTER)
        if not path:
            return

        try:
            with open(path, 'r', encoding='utf-8') as f:
                text = f.read()

        except (OSError, UnicodeDecodeError) as e:
            self._logger.warning("failed to open %s: %s", path, str(e))
            QMessageBox.warning(self, "Open File", f"Could not open {path}:\n{str(e)}")
            return

        self._current_file = path
        self._set_document_text(text)
        self._update_title()
        self.statusBar().showMessage(f"File opened: {path}")

    def _save_file(self) -> bool:
        if self._current_file is None:
            return self._save_file_as()

        return self._write_file(self._current_file)

    def _save_file_as(self) -> bool:
        path, _ = QFileDialog.getSaveFileName(self, "Save File", self._current_file or "", MARKDOWN_FILTER)
        if not path:
            return False

        if not self._write_file(path):
            return False

        self._current_file = path
        self._update_title()
        return True

    def _write_file(self, path: str) -> bool:
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(self._editor.toPlainText())

        except OSError as e:
            self._logger.warning("failed to save %s: %s", path, str(e))
            QMessageBox.warning(self, "Save File", f"Could not save {path}:\n{str(e)}")
            return False

        self.setWindowModified(False)
        self.statusBar().showMessage(f"File saved: {path}")
        return True

    def _set_theme(self, mode: ColorMode) -> None:
        self._style_manager.set_color_mode(mode)
        self._settings.theme = mode
        self._save_settings()

    def _show_about_dialog(self) -> None:
        QMessageBox.about(
            self,
            "About CyberMD",
            "CyberMD\n\nA Markdown editor that re-highlights in the background as you type."
        )

    def closeEvent(self, event: QCloseEvent) -> None:
        """Check for unsaved changes and stop background work before closing."""
        if not self._confirm_discard():
            event.ignore()
            return

        self._session.close()
        event.accept()
