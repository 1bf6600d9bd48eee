"""
Tests for the block structure produced by the markdown AST builder
"""
import logging

import pytest

from mdast import (
    AnomalyKind,
    MarkdownASTBlockquoteNode,
    MarkdownASTBuilder,
    MarkdownASTCodeBlockNode,
    MarkdownASTHeadingNode,
    MarkdownASTListItemNode,
    MarkdownASTListNode,
    MarkdownASTParagraphNode,
    MarkdownASTTextNode,
    MarkdownASTThematicBreakNode
)
from mdast.markdown_ast_builder import MAX_BLOCK_NESTING


@pytest.fixture
def ast_builder():
    """Fixture providing a markdown AST builder instance."""
    return MarkdownASTBuilder()


def test_empty_document(ast_builder):
    """Test parsing an empty document."""
    result = ast_builder.build("")
    assert result.document.children == ()
    assert result.document.start == 0
    assert result.document.end == 0
    assert not result.recovered


def test_blank_lines_only(ast_builder):
    """Test that whitespace-only documents have no blocks."""
    result = ast_builder.build("\n  \n\t\n")
    assert result.document.children == ()
    assert result.document.end == 6


def test_builder_is_reusable(ast_builder):
    """Test that a builder gives independent results for successive documents."""
    first = ast_builder.build("`unclosed")
    second = ast_builder.build("plain")
    assert first.recovered
    assert not second.recovered


def test_recovery_is_logged(ast_builder, caplog):
    """Test only documents the parser had to recover from are logged."""
    with caplog.at_level(logging.DEBUG, logger="MarkdownASTBuilder"):
        ast_builder.build("plain")
        assert "recovered anomalies" not in caplog.text

        ast_builder.build("*a `b")
        assert "parsed 5 chars with 2 recovered anomalies" in caplog.text


class TestHeadings:
    """Test ATX heading parsing."""

    def test_heading_spans_whole_line(self, ast_builder):
        """Test a level 1 heading covers the full line."""
        doc = ast_builder.build("# Hello").document
        assert len(doc.children) == 1
        heading = doc.children[0]
        assert isinstance(heading, MarkdownASTHeadingNode)
        assert heading.level == 1
        assert (heading.start, heading.end) == (0, 7)
        assert len(heading.children) == 1
        assert heading.children[0].content == "Hello"
        assert (heading.children[0].start, heading.children[0].end) == (2, 7)

    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5, 6])
    def test_heading_levels(self, ast_builder, level):
        """Test each heading level is recognised."""
        doc = ast_builder.build("#" * level + " Title").document
        assert isinstance(doc.children[0], MarkdownASTHeadingNode)
        assert doc.children[0].level == level

    def test_seven_hashes_is_paragraph(self, ast_builder):
        """Test that more than six hashes is not a heading."""
        doc = ast_builder.build("####### Title").document
        assert isinstance(doc.children[0], MarkdownASTParagraphNode)

    def test_hash_without_space_is_paragraph(self, ast_builder):
        """Test that a hash must be followed by whitespace."""
        doc = ast_builder.build("#hashtag").document
        assert isinstance(doc.children[0], MarkdownASTParagraphNode)

    def test_closing_hashes_stripped(self, ast_builder):
        """Test that a closing run of hashes is not part of the content."""
        heading = ast_builder.build("## Title ##").document.children[0]
        assert heading.level == 2
        assert (heading.start, heading.end) == (0, 11)
        assert heading.children[0].content == "Title"
        assert (heading.children[0].start, heading.children[0].end) == (3, 8)

    def test_empty_heading(self, ast_builder):
        """Test a heading with no content."""
        heading = ast_builder.build("#").document.children[0]
        assert isinstance(heading, MarkdownASTHeadingNode)
        assert heading.children == ()
        assert (heading.start, heading.end) == (0, 1)

    def test_indented_heading(self, ast_builder):
        """Test a heading indented by up to three spaces."""
        heading = ast_builder.build("   # Title").document.children[0]
        assert isinstance(heading, MarkdownASTHeadingNode)
        assert heading.start == 3


class TestThematicBreaks:
    """Test thematic break parsing."""

    @pytest.mark.parametrize("text", ["---", "***", "___", "* * *", "-  -  -", "------"])
    def test_thematic_break(self, ast_builder, text):
        """Test the forms of thematic break."""
        doc = ast_builder.build(text).document
        assert len(doc.children) == 1
        assert isinstance(doc.children[0], MarkdownASTThematicBreakNode)
        assert (doc.children[0].start, doc.children[0].end) == (0, len(text))

    def test_two_dashes_is_paragraph(self, ast_builder):
        """Test that two characters are not enough."""
        doc = ast_builder.build("--").document
        assert isinstance(doc.children[0], MarkdownASTParagraphNode)

    def test_break_interrupts_paragraph(self, ast_builder):
        """Test a thematic break ends a paragraph."""
        doc = ast_builder.build("text\n***").document
        assert isinstance(doc.children[0], MarkdownASTParagraphNode)
        assert isinstance(doc.children[1], MarkdownASTThematicBreakNode)

    def test_break_wins_over_list_item(self, ast_builder):
        """Test that `- - -` is a break, not a list."""
        doc = ast_builder.build("- - -").document
        assert isinstance(doc.children[0], MarkdownASTThematicBreakNode)


class TestCodeBlocks:
    """Test fenced and indented code blocks."""

    def test_fenced_code_with_language(self, ast_builder):
        """Test a fenced code block with an info string."""
        result = ast_builder.build("```python\nprint(1)\n```")
        block = result.document.children[0]
        assert isinstance(block, MarkdownASTCodeBlockNode)
        assert block.language == "python"
        assert block.content == "print(1)"
        assert block.fenced
        assert (block.start, block.end) == (0, 22)
        assert not result.recovered

    def test_fenced_code_without_language(self, ast_builder):
        """Test a fenced code block with no info string."""
        block = ast_builder.build("~~~\na\nb\n~~~").document.children[0]
        assert block.language is None
        assert block.content == "a\nb"

    def test_language_is_first_word(self, ast_builder):
        """Test that only the first word of the info string is the language."""
        block = ast_builder.build("``` js title=x\ncode\n```").document.children[0]
        assert block.language == "js"

    def test_markdown_inside_fence_is_not_parsed(self, ast_builder):
        """Test that fence content is verbatim."""
        block = ast_builder.build("```\n# not a heading\n*x*\n```").document.children[0]
        assert block.children == ()
        assert block.content == "# not a heading\n*x*"

    def test_closing_fence_must_match(self, ast_builder):
        """Test that a shorter or different fence does not close the block."""
        block = ast_builder.build("````\n```\n~~~~\n````").document.children[0]
        assert block.content == "```\n~~~~"

    def test_unterminated_fence(self, ast_builder):
        """Test an unterminated fence runs to the end of the document."""
        result = ast_builder.build("```\ncode")
        block = result.document.children[0]
        assert isinstance(block, MarkdownASTCodeBlockNode)
        assert block.content == "code"
        assert (block.start, block.end) == (0, 8)
        assert [a.kind for a in result.anomalies] == [AnomalyKind.UNTERMINATED_FENCE]

    def test_backtick_fence_info_cannot_contain_backticks(self, ast_builder):
        """Test that a backtick in the info string stops the fence opening."""
        doc = ast_builder.build("``` a`b\ncode").document
        assert isinstance(doc.children[0], MarkdownASTParagraphNode)

    def test_indented_code(self, ast_builder):
        """Test an indented code block."""
        block = ast_builder.build("    code\n    more").document.children[0]
        assert isinstance(block, MarkdownASTCodeBlockNode)
        assert not block.fenced
        assert block.language is None
        assert block.content == "code\nmore"
        assert (block.start, block.end) == (0, 17)

    def test_indented_code_with_tab(self, ast_builder):
        """Test that a tab counts as four columns of indentation."""
        block = ast_builder.build("\tcode").document.children[0]
        assert isinstance(block, MarkdownASTCodeBlockNode)
        assert block.content == "code"

    def test_indented_code_excludes_trailing_blank_lines(self, ast_builder):
        """Test interior blank lines are kept and trailing ones dropped."""
        doc = ast_builder.build("    a\n\n    b\n\n\npara").document
        block = doc.children[0]
        assert block.content == "a\n\nb"
        assert isinstance(doc.children[1], MarkdownASTParagraphNode)

    def test_indented_line_continues_paragraph(self, ast_builder):
        """Test that an indented line after a paragraph is not code."""
        doc = ast_builder.build("text\n    more").document
        assert len(doc.children) == 1
        assert isinstance(doc.children[0], MarkdownASTParagraphNode)


class TestBlockquotes:
    """Test block quote parsing."""

    def test_simple_quote(self, ast_builder):
        """Test a single line block quote."""
        quote = ast_builder.build("> quote").document.children[0]
        assert isinstance(quote, MarkdownASTBlockquoteNode)
        assert (quote.start, quote.end) == (0, 7)
        paragraph = quote.children[0]
        assert isinstance(paragraph, MarkdownASTParagraphNode)
        assert (paragraph.start, paragraph.end) == (2, 7)

    def test_lazy_continuation(self, ast_builder):
        """Test a paragraph line without `>` continues the quote."""
        quote = ast_builder.build("> a\nb").document.children[0]
        assert isinstance(quote, MarkdownASTBlockquoteNode)
        assert quote.end == 5
        assert quote.children[0].children[0].content == "a\nb"

    def test_no_lazy_continuation_into_open_fence(self, ast_builder):
        """Test an unquoted line after quoted code ends the quote instead of joining the code."""
        result = ast_builder.build("> ```\n> x\ny")
        quote, paragraph = result.document.children
        assert isinstance(quote, MarkdownASTBlockquoteNode)
        assert quote.end == 9
        code = quote.children[0]
        assert isinstance(code, MarkdownASTCodeBlockNode)
        assert code.content == "x"
        assert isinstance(paragraph, MarkdownASTParagraphNode)
        assert (paragraph.start, paragraph.end) == (10, 11)
        assert [a.kind for a in result.anomalies] == [AnomalyKind.UNTERMINATED_FENCE]

    def test_no_lazy_continuation_after_closed_fence(self, ast_builder):
        """Test a closed fence leaves no paragraph open for a lazy line."""
        doc = ast_builder.build("> ```\n> x\n> ```\ny").document
        assert [type(child) for child in doc.children] == [MarkdownASTBlockquoteNode, MarkdownASTParagraphNode]
        assert doc.children[0].children[0].content == "x"

    def test_nested_quote(self, ast_builder):
        """Test a block quote inside a block quote."""
        quote = ast_builder.build("> > inner").document.children[0]
        inner = quote.children[0]
        assert isinstance(inner, MarkdownASTBlockquoteNode)
        assert inner.start == 2
        assert inner.children[0].children[0].content == "inner"

    def test_quote_contains_blocks(self, ast_builder):
        """Test that quote content is parsed as blocks."""
        quote = ast_builder.build("> # Title\n> - item").document.children[0]
        assert isinstance(quote.children[0], MarkdownASTHeadingNode)
        assert isinstance(quote.children[1], MarkdownASTListNode)

    def test_blank_line_ends_quote(self, ast_builder):
        """Test a blank line ends a block quote."""
        doc = ast_builder.build("> a\n\nb").document
        assert isinstance(doc.children[0], MarkdownASTBlockquoteNode)
        assert isinstance(doc.children[1], MarkdownASTParagraphNode)

    def test_deep_nesting_is_limited(self, ast_builder):
        """Test that very deep nesting degrades to a paragraph with an anomaly."""
        result = ast_builder.build(">" * (MAX_BLOCK_NESTING + 8) + " x")
        assert AnomalyKind.NESTING_LIMIT in [a.kind for a in result.anomalies]

        depth = 0
        node = result.document.children[0]
        while isinstance(node, MarkdownASTBlockquoteNode):
            depth += 1
            node = node.children[0]

        assert depth == MAX_BLOCK_NESTING
        assert isinstance(node, MarkdownASTParagraphNode)


class TestLists:
    """Test list parsing."""

    def test_bullet_list(self, ast_builder):
        """Test a tight bullet list."""
        lst = ast_builder.build("- a\n- b").document.children[0]
        assert isinstance(lst, MarkdownASTListNode)
        assert not lst.ordered
        assert lst.tight
        assert (lst.start, lst.end) == (0, 7)
        assert len(lst.children) == 2

        first, second = lst.children
        assert isinstance(first, MarkdownASTListItemNode)
        assert (first.start, first.end) == (0, 3)
        assert (first.marker_start, first.marker_end) == (0, 1)
        assert (second.marker_start, second.marker_end) == (4, 5)
        assert first.children[0].children[0].content == "a"

    def test_loose_list(self, ast_builder):
        """Test a blank line between items makes the list loose."""
        lst = ast_builder.build("- a\n\n- b").document.children[0]
        assert len(lst.children) == 2
        assert not lst.tight

    def test_ordered_list(self, ast_builder):
        """Test an ordered list and its start number."""
        lst = ast_builder.build("1. one\n2. two").document.children[0]
        assert lst.ordered
        assert lst.start_number == 1
        assert (lst.children[0].marker_start, lst.children[0].marker_end) == (0, 2)

    def test_ordered_list_start_number(self, ast_builder):
        """Test an ordered list starting at another number."""
        lst = ast_builder.build("3) three").document.children[0]
        assert lst.ordered
        assert lst.start_number == 3

    def test_changing_bullet_starts_new_list(self, ast_builder):
        """Test that a different bullet character starts a new list."""
        doc = ast_builder.build("- a\n+ b").document
        assert len(doc.children) == 2
        assert all(isinstance(child, MarkdownASTListNode) for child in doc.children)

    def test_nested_list(self, ast_builder):
        """Test an indented list inside a list item."""
        lst = ast_builder.build("- a\n  - b").document.children[0]
        assert len(lst.children) == 1
        item = lst.children[0]
        assert isinstance(item.children[0], MarkdownASTParagraphNode)
        nested = item.children[1]
        assert isinstance(nested, MarkdownASTListNode)
        assert (nested.children[0].marker_start, nested.children[0].marker_end) == (6, 7)
        assert item.end == nested.end == 9

    def test_item_continuation(self, ast_builder):
        """Test indented lines after a blank line stay in the item."""
        lst = ast_builder.build("- a\n\n  b").document.children[0]
        item = lst.children[0]
        assert len(item.children) == 2
        assert not lst.tight

    def test_no_lazy_continuation_into_item_fence(self, ast_builder):
        """Test an unindented line after an item's open fence starts a paragraph."""
        doc = ast_builder.build("- ```\n  x\ny").document
        lst, paragraph = doc.children
        assert isinstance(lst, MarkdownASTListNode)
        code = lst.children[0].children[0]
        assert isinstance(code, MarkdownASTCodeBlockNode)
        assert code.content == "x"
        assert isinstance(paragraph, MarkdownASTParagraphNode)
        assert paragraph.children[0].content == "y"

    def test_no_lazy_continuation_after_item_heading(self, ast_builder):
        """Test only a paragraph in the item takes lazy lines."""
        doc = ast_builder.build("- # H\nb").document
        assert [type(child) for child in doc.children] == [MarkdownASTListNode, MarkdownASTParagraphNode]

    def test_lazy_item_continuation(self, ast_builder):
        """Test an unindented paragraph line continues the item's paragraph."""
        doc = ast_builder.build("- a\nb").document
        assert len(doc.children) == 1
        assert doc.children[0].children[0].children[0].children[0].content == "a\nb"

    def test_list_interrupts_paragraph(self, ast_builder):
        """Test a bullet item ends a paragraph."""
        doc = ast_builder.build("para\n- x").document
        assert isinstance(doc.children[0], MarkdownASTParagraphNode)
        assert isinstance(doc.children[1], MarkdownASTListNode)

    def test_ordered_item_not_starting_at_one_does_not_interrupt(self, ast_builder):
        """Test `2.` inside a paragraph is paragraph text."""
        doc = ast_builder.build("para\n2. x").document
        assert len(doc.children) == 1
        assert doc.children[0].children[0].content == "para\n2. x"

    def test_empty_item(self, ast_builder):
        """Test a marker with no content."""
        lst = ast_builder.build("-\n- b").document.children[0]
        assert len(lst.children) == 2
        assert lst.children[0].children == ()
        assert (lst.children[0].start, lst.children[0].end) == (0, 1)


class TestParagraphs:
    """Test paragraph parsing."""

    def test_simple_paragraph(self, ast_builder):
        """Test parsing a simple paragraph."""
        paragraph = ast_builder.build("This is a paragraph.").document.children[0]
        assert isinstance(paragraph, MarkdownASTParagraphNode)
        assert len(paragraph.children) == 1
        assert isinstance(paragraph.children[0], MarkdownASTTextNode)
        assert paragraph.children[0].content == "This is a paragraph."

    def test_multiline_paragraph_strips_indent(self, ast_builder):
        """Test continuation lines lose their leading whitespace."""
        paragraph = ast_builder.build("one\n  two  ").document.children[0]
        assert paragraph.children[0].content == "one\ntwo"
        assert (paragraph.start, paragraph.end) == (0, 9)

    def test_blank_line_separates_paragraphs(self, ast_builder):
        """Test two paragraphs separated by a blank line."""
        doc = ast_builder.build("one\n\ntwo").document
        assert len(doc.children) == 2
        assert (doc.children[1].start, doc.children[1].end) == (5, 8)

    def test_crlf_line_endings(self, ast_builder):
        """Test Windows line endings keep offsets exact."""
        doc = ast_builder.build("# A\r\nb").document
        assert (doc.children[0].start, doc.children[0].end) == (0, 3)
        assert (doc.children[1].start, doc.children[1].end) == (5, 6)

    def test_cr_line_endings(self, ast_builder):
        """Test old Mac line endings split lines."""
        doc = ast_builder.build("# A\rb").document
        assert len(doc.children) == 2
