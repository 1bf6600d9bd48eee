"""A total, position-preserving Markdown parser."""

from mdast.markdown_ast_builder import MarkdownASTBuilder
from mdast.markdown_ast_node import (
    MarkdownASTBlockquoteNode,
    MarkdownASTCodeBlockNode,
    MarkdownASTDocumentNode,
    MarkdownASTEmphasisNode,
    MarkdownASTHeadingNode,
    MarkdownASTImageNode,
    MarkdownASTInlineCodeNode,
    MarkdownASTLineBreakNode,
    MarkdownASTLinkNode,
    MarkdownASTListItemNode,
    MarkdownASTListNode,
    MarkdownASTNode,
    MarkdownASTParagraphNode,
    MarkdownASTStrongNode,
    MarkdownASTTextNode,
    MarkdownASTThematicBreakNode,
    MarkdownASTVisitor
)
from mdast.markdown_ast_printer import MarkdownASTPrinter
from mdast.markdown_outline import OutlineEntry, document_outline
from mdast.markdown_parse_result import AnomalyKind, MarkdownParseResult, ParseAnomaly


def parse_with_diagnostics(text: str) -> MarkdownParseResult:
    """
    Parse markdown text, reporting any malformed constructs that were recovered from.

    Args:
        text: The markdown text

    Returns:
        The document and its anomalies
    """
    return MarkdownASTBuilder().build(text)


def parse(text: str) -> MarkdownASTDocumentNode:
    """
    Parse markdown text into an AST.

    This never raises for string input: malformed markdown degrades to plain text.

    Args:
        text: The markdown text

    Returns:
        The root of the AST
    """
    return parse_with_diagnostics(text).document


__all__ = [
    "AnomalyKind",
    "MarkdownASTBlockquoteNode",
    "MarkdownASTBuilder",
    "MarkdownASTCodeBlockNode",
    "MarkdownASTDocumentNode",
    "MarkdownASTEmphasisNode",
    "MarkdownASTHeadingNode",
    "MarkdownASTImageNode",
    "MarkdownASTInlineCodeNode",
    "MarkdownASTLineBreakNode",
    "MarkdownASTLinkNode",
    "MarkdownASTListItemNode",
    "MarkdownASTListNode",
    "MarkdownASTNode",
    "MarkdownASTParagraphNode",
    "MarkdownASTPrinter",
    "MarkdownASTStrongNode",
    "MarkdownASTTextNode",
    "MarkdownASTThematicBreakNode",
    "MarkdownASTVisitor",
    "MarkdownParseResult",
    "OutlineEntry",
    "ParseAnomaly",
    "document_outline",
    "parse",
    "parse_with_diagnostics"
]
