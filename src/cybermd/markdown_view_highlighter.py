"""
Show highlight ranges computed off the event loop in a QTextDocument.
"""

import logging
from typing import Callable, List, Tuple

from PySide6.QtGui import QSyntaxHighlighter, QTextDocument

from highlight import ApplyOp, ClearOp, HighlightStyle, ViewOp

from cybermd.style_manager import StyleManager


def utf16_mapper(text: str) -> Callable[[int], int]:
    """
    Build a function that converts code point offsets in a string to UTF-16 offsets.

    Qt positions count UTF-16 code units, so characters outside the basic
    multilingual plane take two positions in a QTextDocument but one in Python.

    Args:
        text: The string the offsets refer to

    Returns:
        A function mapping a code point offset to a UTF-16 offset, clamped to the text
    """
    length = len(text)
    if all(ord(ch) < 0x10000 for ch in text):
        return lambda offset: max(0, min(offset, length))

    prefix = [0]
    for ch in text:
        prefix.append(prefix[-1] + (2 if ord(ch) > 0xFFFF else 1))

    return lambda offset: prefix[max(0, min(offset, length))]


class MarkdownViewHighlighter(QSyntaxHighlighter):
    """
    Applies the reconciler's view operations to a document.

    Ranges are held in UTF-16 document positions.  Each block is painted by
    applying the ranges that intersect it widest first, so narrower ranges
    win where they overlap.
    """

    def __init__(self, parent: QTextDocument) -> None:
        """Initialize the highlighter."""
        super().__init__(parent)

        self._style_manager = StyleManager()
        self._style_manager.style_changed.connect(self.rehighlight)

        # (start, end, style) in UTF-16 positions, sorted by start
        self._ranges: List[Tuple[int, int, HighlightStyle]] = []
        self._logger = logging.getLogger("MarkdownViewHighlighter")

    def apply_highlights(self, ops: List[ViewOp]) -> None:
        """
        Apply view operations and repaint the blocks they touch.

        Args:
            ops: Clear and apply operations, in order
        """
        if not ops:
            return

        to_utf16 = utf16_mapper(self.document().toPlainText())
        touched_start: int | None = None
        touched_end = 0

        for op in ops:
            start = to_utf16(op.start)
            end = to_utf16(op.end)
            if isinstance(op, ClearOp):
                self._clear(start, end)

            elif isinstance(op, ApplyOp):
                if end > start:
                    self._ranges.append((start, end, op.style))

            touched_start = start if touched_start is None else min(touched_start, start)
            touched_end = max(touched_end, end)

        self._ranges.sort(key=lambda r: (r[0], r[0] - r[1]))

        if touched_start is not None:
            self._rehighlight_region(touched_start, touched_end)

    def _clear(self, start: int, end: int) -> None:
        """
        Remove styling from a region, trimming ranges that straddle its edges.

        Args:
            start: First position to clear
            end: Position one past the last to clear
        """
        kept: List[Tuple[int, int, HighlightStyle]] = []
        for range_start, range_end, style in self._ranges:
            if range_end <= start or range_start >= end:
                kept.append((range_start, range_end, style))
                continue

            if range_start < start:
                kept.append((range_start, start, style))

            if range_end > end:
                kept.append((end, range_end, style))

        self._ranges = kept

    def _rehighlight_region(self, start: int, end: int) -> None:
        document = self.document()
        block = document.findBlock(start)
        while block.isValid() and block.position() <= end:
            self.rehighlightBlock(block)
            block = block.next()

    def highlightBlock(self, text: str) -> None:
        """Apply highlighting to the given block of text."""
        try:
            block = self.currentBlock()
            block_start = block.position()
            block_end = block_start + block.length() - 1

            overlapping = []
            for range_start, range_end, style in self._ranges:
                if range_start >= block_end:
                    break

                if range_end > block_start:
                    overlapping.append((range_start, range_end, style))

            # Widest first so narrower ranges are painted over them
            overlapping.sort(key=lambda r: r[0] - r[1])
            for range_start, range_end, style in overlapping:
                start = max(range_start, block_start)
                end = min(range_end, block_end)
                self.setFormat(start - block_start, end - start, self._style_manager.get_highlight(style))

        except Exception:
            self._logger.exception("highlighting exception")
