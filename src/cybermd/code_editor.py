from PySide6.QtWidgets import QPlainTextEdit, QWidget, QTextEdit
from PySide6.QtCore import Qt, QRect, QSize
from PySide6.QtGui import QPainter, QPaintEvent, QPalette, QBrush, QResizeEvent, QTextFormat

from cybermd.color_role import ColorRole
from cybermd.style_manager import StyleManager


class _Gutter(QWidget):
    """The strip to the left of the editor's viewport; all drawing is done by the editor."""

    def __init__(self, editor: "CodeEditor") -> None:
        super().__init__(editor)
        self._editor = editor

    def sizeHint(self) -> QSize:
        return QSize(self._editor.gutter_width(), 0)

    def paintEvent(self, event: QPaintEvent) -> None:
        self._editor.paint_gutter(event)


class CodeEditor(QPlainTextEdit):
    """Plain text editor with a line number gutter and current line highlight."""

    def __init__(self, parent: QWidget | None = None, tab_width: int = 4) -> None:
        """
        Initialize the editor.

        Args:
            parent: Optional parent widget
            tab_width: Number of spaces per tab stop
        """
        super().__init__(parent)

        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAsNeeded)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAsNeeded)
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)

        self._style_manager = StyleManager()
        self._tab_width = tab_width
        self._gutter = _Gutter(self)

        self.blockCountChanged.connect(self._update_gutter_margin)
        self.updateRequest.connect(self._scroll_gutter)
        self.cursorPositionChanged.connect(self._highlight_current_line)
        self._style_manager.style_changed.connect(self._handle_style_changed)

        # Selected text keeps its syntax colours
        palette = self.palette()
        palette.setBrush(QPalette.ColorRole.HighlightedText, QBrush(Qt.BrushStyle.NoBrush))
        self.setPalette(palette)

        self._handle_style_changed()

    def set_tab_width(self, tab_width: int) -> None:
        """
        Set the number of spaces per tab stop.

        Args:
            tab_width: Number of spaces per tab stop
        """
        self._tab_width = tab_width
        self.setTabStopDistance(self.fontMetrics().horizontalAdvance(' ') * self._tab_width)

    def _handle_style_changed(self) -> None:
        """Update fonts and colours after a theme or font size change."""
        font = self.font()
        font.setFamilies(self._style_manager.monospace_font_families)
        font.setFixedPitch(True)
        font.setPointSizeF(self._style_manager.base_font_size())
        self.setFont(font)
        self._gutter.setFont(font)

        self.setStyleSheet(f"""
            QPlainTextEdit {{
                background-color: {self._style_manager.get_color_str(ColorRole.BACKGROUND_PRIMARY)};
                color: {self._style_manager.get_color_str(ColorRole.TEXT_PRIMARY)};
            }}
        """)

        self.set_tab_width(self._tab_width)
        self._update_gutter_margin()
        self._highlight_current_line()
        self.viewport().update()

    def gutter_width(self) -> int:
        """
        Get the width the gutter needs for the current line count.

        Returns:
            Width in pixels: the digits of the last line number plus four digits of padding
        """
        digits = len(str(max(1, self.blockCount())))
        return self.fontMetrics().horizontalAdvance('9') * (digits + 4)

    def _update_gutter_margin(self) -> None:
        self.setViewportMargins(self.gutter_width(), 0, 0, 0)

    def _scroll_gutter(self, rect: QRect, dy: int) -> None:
        """Keep the gutter in step with the viewport when it scrolls or repaints."""
        if dy:
            self._gutter.scroll(0, dy)

        else:
            self._gutter.update(0, rect.y(), self._gutter.width(), rect.height())

        if rect.contains(self.viewport().rect()):
            self._update_gutter_margin()

    def resizeEvent(self, event: QResizeEvent) -> None:
        """Keep the gutter the full height of the editor."""
        super().resizeEvent(event)
        cr = self.contentsRect()
        self._gutter.setGeometry(cr.left(), cr.top(), self.gutter_width(), cr.height())

    def paint_gutter(self, event: QPaintEvent) -> None:
        """
        Draw the line numbers of the visible blocks.

        Args:
            event: The gutter's paint event
        """
        painter = QPainter(self._gutter)
        painter.fillRect(event.rect(), self._style_manager.get_color(ColorRole.LINE_NUMBER_BACKGROUND))
        painter.setFont(self.font())
        painter.setPen(self._style_manager.get_color(ColorRole.LINE_NUMBER))

        metrics = self.fontMetrics()
        right_padding = metrics.horizontalAdvance('9') * 2
        block = self.firstVisibleBlock()
        top = self.blockBoundingGeometry(block).translated(self.contentOffset()).top()

        while block.isValid() and top <= event.rect().bottom():
            height = self.blockBoundingRect(block).height()
            if block.isVisible() and top + height >= event.rect().top():
                number_rect = QRect(0, int(top), self._gutter.width() - right_padding, metrics.height())
                painter.drawText(number_rect, Qt.AlignmentFlag.AlignRight, str(block.blockNumber() + 1))

            top += height
            block = block.next()

        painter.end()

    def _highlight_current_line(self) -> None:
        """Shade the line holding the cursor."""
        if self.isReadOnly():
            self.setExtraSelections([])
            return

        selection = QTextEdit.ExtraSelection()
        selection.format.setBackground(self._style_manager.get_color(ColorRole.CURRENT_LINE))
        selection.format.setProperty(QTextFormat.Property.FullWidthSelection, True)
        selection.cursor = self.textCursor()
        selection.cursor.clearSelection()
        self.setExtraSelections([selection])
