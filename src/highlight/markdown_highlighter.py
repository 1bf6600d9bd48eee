"""
Convert a Markdown AST into a flat list of styled ranges.
"""

from typing import List

from mdast.markdown_ast_node import (
    MarkdownASTVisitor, MarkdownASTNode, MarkdownASTHeadingNode, MarkdownASTStrongNode,
    MarkdownASTEmphasisNode, MarkdownASTInlineCodeNode, MarkdownASTCodeBlockNode, MarkdownASTBlockquoteNode,
    MarkdownASTListItemNode, MarkdownASTThematicBreakNode, MarkdownASTLinkNode, MarkdownASTImageNode
)

from highlight.highlight_style import HighlightStyle
from highlight.highlight_types import HighlightRange


class MarkdownHighlighter(MarkdownASTVisitor):
    """
    Visitor that walks an AST depth first and emits a highlight range per styled node.

    Nodes with no visual style of their own (documents, paragraphs, lists, text
    and line breaks) emit nothing but are still descended into.
    """

    def __init__(self) -> None:
        """Initialize the highlighter."""
        super().__init__()
        self._ranges: List[HighlightRange] = []
        self._depth = 0

    def highlight(self, document: MarkdownASTNode) -> List[HighlightRange]:
        """
        Produce the highlight ranges for a document.

        Args:
            document: Root of the AST

        Returns:
            Ranges sorted by start, with wider ranges first where starts are equal
        """
        self._ranges = []
        self._depth = 0
        self.visit(document)

        # Where starts are equal the wider range comes first, so the narrower one,
        # applied later, wins.  The sort is stable, so equal ranges keep walk order
        # (outer before inner).
        return sorted(self._ranges, key=lambda r: (r.start, -r.length))

    def _emit(self, start: int, end: int, style: HighlightStyle) -> None:
        if end > start:
            self._ranges.append(HighlightRange(start, end, style, self._depth))

    def generic_visit(self, node: MarkdownASTNode) -> None:
        """
        Descend into a node's children one level deeper.

        Args:
            node: The node whose children should be visited
        """
        self._depth += 1
        super().generic_visit(node)
        self._depth -= 1

    def visit_MarkdownASTHeadingNode(self, node: MarkdownASTHeadingNode) -> None:  # pylint: disable=invalid-name
        """Headings style their whole line, inline children layer on top."""
        self._emit(node.start, node.end, HighlightStyle.for_heading_level(node.level))
        self.generic_visit(node)

    def visit_MarkdownASTStrongNode(self, node: MarkdownASTStrongNode) -> None:  # pylint: disable=invalid-name
        self._emit(node.start, node.end, HighlightStyle.BOLD)
        self.generic_visit(node)

    def visit_MarkdownASTEmphasisNode(self, node: MarkdownASTEmphasisNode) -> None:  # pylint: disable=invalid-name
        self._emit(node.start, node.end, HighlightStyle.ITALIC)
        self.generic_visit(node)

    def visit_MarkdownASTInlineCodeNode(self, node: MarkdownASTInlineCodeNode) -> None:  # pylint: disable=invalid-name
        self._emit(node.start, node.end, HighlightStyle.INLINE_CODE)

    def visit_MarkdownASTCodeBlockNode(self, node: MarkdownASTCodeBlockNode) -> None:  # pylint: disable=invalid-name
        self._emit(node.start, node.end, HighlightStyle.CODE_BLOCK)

    def visit_MarkdownASTBlockquoteNode(self, node: MarkdownASTBlockquoteNode) -> None:  # pylint: disable=invalid-name
        self._emit(node.start, node.end, HighlightStyle.QUOTE)
        self.generic_visit(node)

    def visit_MarkdownASTListItemNode(self, node: MarkdownASTListItemNode) -> None:  # pylint: disable=invalid-name
        """Only the bullet or number is styled; the item's content keeps its own styles."""
        self._emit(node.marker_start, node.marker_end, HighlightStyle.LIST_MARKER)
        self.generic_visit(node)

    def visit_MarkdownASTThematicBreakNode(self, node: MarkdownASTThematicBreakNode) -> None:  # pylint: disable=invalid-name
        self._emit(node.start, node.end, HighlightStyle.LIST_MARKER)

    def visit_MarkdownASTLinkNode(self, node: MarkdownASTLinkNode) -> None:  # pylint: disable=invalid-name
        """The label is styled as a link; the target stays plain."""
        self._emit(node.start, node.label_end, HighlightStyle.LINK)
        self.generic_visit(node)

    def visit_MarkdownASTImageNode(self, node: MarkdownASTImageNode) -> None:  # pylint: disable=invalid-name
        self._emit(node.start, node.label_end, HighlightStyle.LINK)


def highlight(document: MarkdownASTNode) -> List[HighlightRange]:
    """
    Produce the highlight ranges for a document.

    Args:
        document: Root of the AST

    Returns:
        Ranges sorted by (start, -length)
    """
    return MarkdownHighlighter().highlight(document)
