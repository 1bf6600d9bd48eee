"""
Visitor class to render markdown AST structures for debugging
"""
from typing import List

from mdast.markdown_ast_node import (
    MarkdownASTVisitor, MarkdownASTNode, MarkdownASTTextNode, MarkdownASTHeadingNode, MarkdownASTInlineCodeNode,
    MarkdownASTCodeBlockNode, MarkdownASTListNode, MarkdownASTLinkNode, MarkdownASTImageNode
)


class MarkdownASTPrinter(MarkdownASTVisitor):
    """Visitor that renders the AST structure as indented text, one node per line."""
    def __init__(self) -> None:
        """Initialize the AST printer with zero indentation."""
        super().__init__()
        self.indent_level = 0
        self._lines: List[str] = []

    def format(self, node: MarkdownASTNode) -> str:
        """
        Render a tree.

        Args:
            node: The root of the tree to render

        Returns:
            The rendered tree
        """
        self.indent_level = 0
        self._lines = []
        self.visit(node)
        return "\n".join(self._lines)

    def _emit(self, node: MarkdownASTNode, description: str) -> None:
        """
        Add a line describing a node at the current indentation.

        Args:
            node: The node being described
            description: The description of the node
        """
        self._lines.append(f"{'  ' * self.indent_level}{description} [{node.start}, {node.end})")

    def _visit_children(self, node: MarkdownASTNode) -> None:
        """
        Visit the children of a node one level deeper.

        Args:
            node: The node whose children should be visited
        """
        self.indent_level += 1
        super().generic_visit(node)
        self.indent_level -= 1

    def generic_visit(self, node: MarkdownASTNode) -> None:
        """
        Default visit method that prints the node type.

        Args:
            node: The node to visit
        """
        self._emit(node, node.__class__.__name__.removeprefix("MarkdownAST").removesuffix("Node"))
        self._visit_children(node)

    def visit_MarkdownASTTextNode(self, node: MarkdownASTTextNode) -> None:  # pylint: disable=invalid-name
        """
        Visit a text node and print its content.

        Args:
            node: The text node to visit
        """
        self._emit(node, f"Text: {node.content!r}")

    def visit_MarkdownASTHeadingNode(self, node: MarkdownASTHeadingNode) -> None:  # pylint: disable=invalid-name
        """
        Visit a heading node and print its level.

        Args:
            node: The heading node to visit
        """
        self._emit(node, f"Heading (level {node.level})")
        self._visit_children(node)

    def visit_MarkdownASTListNode(self, node: MarkdownASTListNode) -> None:  # pylint: disable=invalid-name
        """
        Visit a list node and print its type.

        Args:
            node: The list node to visit
        """
        kind = f"ordered, start {node.start_number}" if node.ordered else "bullet"
        spacing = "tight" if node.tight else "loose"
        self._emit(node, f"List ({kind}, {spacing})")
        self._visit_children(node)

    def visit_MarkdownASTInlineCodeNode(self, node: MarkdownASTInlineCodeNode) -> None:  # pylint: disable=invalid-name
        """
        Visit an inline code node and print its content.

        Args:
            node: The inline code node to visit
        """
        self._emit(node, f"InlineCode: {node.content!r}")

    def visit_MarkdownASTLinkNode(self, node: MarkdownASTLinkNode) -> None:  # pylint: disable=invalid-name
        """
        Visit a link node and print its target and title.

        Args:
            node: The link node to visit
        """
        title_info = f", title={node.title!r}" if node.title is not None else ""
        self._emit(node, f"Link: target={node.target!r}{title_info}")
        self._visit_children(node)

    def visit_MarkdownASTImageNode(self, node: MarkdownASTImageNode) -> None:  # pylint: disable=invalid-name
        """
        Visit an image node and print its target and alt text.

        Args:
            node: The image node to visit
        """
        title_info = f", title={node.title!r}" if node.title is not None else ""
        self._emit(node, f"Image: target={node.target!r}, alt={node.alt!r}{title_info}")

    def visit_MarkdownASTCodeBlockNode(self, node: MarkdownASTCodeBlockNode) -> None:  # pylint: disable=invalid-name
        """
        Visit a code block node and print its language and content size.

        Args:
            node: The code block node to visit
        """
        kind = "fenced" if node.fenced else "indented"
        self._emit(node, f"CodeBlock ({kind}): language={node.language!r}, {len(node.content)} chars")
