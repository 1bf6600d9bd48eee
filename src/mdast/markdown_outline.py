"""Extract a heading outline from a Markdown AST."""

from dataclasses import dataclass
from typing import List

from mdast.markdown_ast_node import (
    MarkdownASTVisitor, MarkdownASTNode, MarkdownASTHeadingNode, MarkdownASTTextNode,
    MarkdownASTInlineCodeNode, MarkdownASTImageNode, MarkdownASTLineBreakNode, MarkdownASTCodeBlockNode
)


@dataclass(frozen=True)
class OutlineEntry:
    """
    A heading in the document outline.

    Attributes:
        level: The heading level (1-6)
        title: The heading's plain text
        start: Document offset of the start of the heading
        end: Document offset of the end of the heading
    """
    level: int
    title: str
    start: int
    end: int


class MarkdownOutlineVisitor(MarkdownASTVisitor):
    """Visitor that collects headings, in document order."""

    def __init__(self) -> None:
        """Initialize with an empty outline."""
        super().__init__()
        self.entries: List[OutlineEntry] = []

    def visit_MarkdownASTHeadingNode(self, node: MarkdownASTHeadingNode) -> None:  # pylint: disable=invalid-name
        """
        Record a heading.

        Args:
            node: The heading node to visit
        """
        title = "".join(self._plain_text(child) for child in node.children)
        self.entries.append(OutlineEntry(node.level, title, node.start, node.end))

    def visit_MarkdownASTCodeBlockNode(self, node: MarkdownASTCodeBlockNode) -> None:  # pylint: disable=invalid-name
        """Code blocks never contain headings."""

    def _plain_text(self, node: MarkdownASTNode) -> str:
        """
        Get the plain text of an inline node.

        Args:
            node: The inline node

        Returns:
            The text a reader would see
        """
        if isinstance(node, (MarkdownASTTextNode, MarkdownASTInlineCodeNode)):
            return node.content

        if isinstance(node, MarkdownASTImageNode):
            return node.alt

        if isinstance(node, MarkdownASTLineBreakNode):
            return " "

        return "".join(self._plain_text(child) for child in node.children)


def document_outline(document: MarkdownASTNode) -> List[OutlineEntry]:
    """
    Get the outline of a document.

    Args:
        document: The root of the AST

    Returns:
        The headings of the document, in document order
    """
    visitor = MarkdownOutlineVisitor()
    visitor.visit(document)
    return visitor.entries
