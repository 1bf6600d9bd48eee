"""
Immutable AST node types for Markdown documents.

Every node carries a half-open span [start, end) of offsets into the text it
was parsed from.  Children are held in a tuple owned by their parent and nodes
never refer back to their parents, so a tree can be shared freely between
threads once it has been built.
"""

from dataclasses import dataclass
from typing import Any, List, Tuple


@dataclass(frozen=True, kw_only=True)
class MarkdownASTNode:
    """Base class for all Markdown AST nodes."""
    start: int
    end: int
    children: Tuple["MarkdownASTNode", ...] = ()


class MarkdownASTVisitor:
    """
    Base visitor class for Markdown AST traversal.

    Dispatches to `visit_<ClassName>` methods, falling back to `generic_visit`.
    """

    def visit(self, node: MarkdownASTNode) -> Any:
        """
        Visit a node and dispatch to the appropriate visit method.

        Args:
            node: The node to visit

        Returns:
            The result of visiting the node
        """
        method_name = f'visit_{node.__class__.__name__}'
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: MarkdownASTNode) -> List[Any]:
        """
        Default visit method for nodes without specific handlers.

        Args:
            node: The node to visit

        Returns:
            A list of results from visiting each child
        """
        results = []
        for child in node.children:
            results.append(self.visit(child))

        return results


@dataclass(frozen=True, kw_only=True)
class MarkdownASTDocumentNode(MarkdownASTNode):
    """Root node representing an entire document."""


@dataclass(frozen=True, kw_only=True)
class MarkdownASTHeadingNode(MarkdownASTNode):
    """Node representing an ATX heading, levels 1 through 6."""
    level: int


@dataclass(frozen=True, kw_only=True)
class MarkdownASTParagraphNode(MarkdownASTNode):
    """Node representing a paragraph."""


@dataclass(frozen=True, kw_only=True)
class MarkdownASTListNode(MarkdownASTNode):
    """
    Node representing a bullet or ordered list.

    Attributes:
        ordered: True for numbered lists
        start_number: The number of the first item for ordered lists
        tight: False if any items are separated by, or contain, blank lines
    """
    ordered: bool
    start_number: int | None = None
    tight: bool = True


@dataclass(frozen=True, kw_only=True)
class MarkdownASTListItemNode(MarkdownASTNode):
    """Node representing a list item, with the span of its marker."""
    marker_start: int
    marker_end: int


@dataclass(frozen=True, kw_only=True)
class MarkdownASTCodeBlockNode(MarkdownASTNode):
    """Node representing a fenced or indented code block."""
    content: str
    language: str | None = None
    fenced: bool = True


@dataclass(frozen=True, kw_only=True)
class MarkdownASTBlockquoteNode(MarkdownASTNode):
    """Node representing a block quote."""


@dataclass(frozen=True, kw_only=True)
class MarkdownASTThematicBreakNode(MarkdownASTNode):
    """Node representing a thematic break (horizontal rule)."""


@dataclass(frozen=True, kw_only=True)
class MarkdownASTTextNode(MarkdownASTNode):
    """Node representing literal text, with escapes already resolved."""
    content: str


@dataclass(frozen=True, kw_only=True)
class MarkdownASTEmphasisNode(MarkdownASTNode):
    """Node representing emphasised text."""


@dataclass(frozen=True, kw_only=True)
class MarkdownASTStrongNode(MarkdownASTNode):
    """Node representing strongly emphasised text."""


@dataclass(frozen=True, kw_only=True)
class MarkdownASTInlineCodeNode(MarkdownASTNode):
    """Node representing an inline code span."""
    content: str


@dataclass(frozen=True, kw_only=True)
class MarkdownASTLinkNode(MarkdownASTNode):
    """
    Node representing an inline link.

    The span covers `[label](target)`; `label_end` marks the end of the `]`.
    """
    target: str
    title: str | None = None
    label_end: int


@dataclass(frozen=True, kw_only=True)
class MarkdownASTImageNode(MarkdownASTNode):
    """
    Node representing an inline image.

    The span covers `![alt](target)`; `label_end` marks the end of the `]`.
    """
    target: str
    alt: str
    title: str | None = None
    label_end: int


@dataclass(frozen=True, kw_only=True)
class MarkdownASTLineBreakNode(MarkdownASTNode):
    """Node representing a hard line break."""
