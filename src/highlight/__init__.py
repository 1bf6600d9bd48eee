"""Markdown highlighting: AST to styled ranges, and ranges to view operations."""

from highlight.highlight_reconciler import HighlightReconciler, diff
from highlight.highlight_style import HighlightStyle
from highlight.highlight_types import ApplyOp, ClearOp, HighlightRange, HighlightState, ViewOp
from highlight.markdown_highlighter import MarkdownHighlighter, highlight


__all__ = [
    "ApplyOp",
    "ClearOp",
    "HighlightRange",
    "HighlightReconciler",
    "HighlightState",
    "HighlightStyle",
    "MarkdownHighlighter",
    "ViewOp",
    "diff",
    "highlight"
]
