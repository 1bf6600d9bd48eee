"""Tests for the inline markdown lexer."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mdast.markdown_inline_lexer import InlineTokenType, MarkdownInlineLexer


@pytest.fixture
def lexer():
    """Fixture providing an inline lexer instance."""
    return MarkdownInlineLexer()


def token_summary(lexer, text):
    """Lex text and return (type, value) pairs."""
    lexer.lex(text)
    return [(token.type, token.value) for token in lexer.tokens()]


def test_plain_text(lexer):
    """Test plain words are gathered into text tokens."""
    assert token_summary(lexer, "hello") == [(InlineTokenType.TEXT, "hello")]


def test_delimiter_runs(lexer):
    """Test runs of emphasis characters are single tokens."""
    assert token_summary(lexer, "**a_") == [
        (InlineTokenType.DELIMITER, "**"),
        (InlineTokenType.TEXT, "a"),
        (InlineTokenType.DELIMITER, "_")
    ]


def test_mixed_delimiters_are_separate_runs(lexer):
    """Test that `*_` is two runs."""
    assert token_summary(lexer, "*_") == [
        (InlineTokenType.DELIMITER, "*"),
        (InlineTokenType.DELIMITER, "_")
    ]


def test_backtick_run(lexer):
    """Test backtick runs."""
    assert token_summary(lexer, "``x`") == [
        (InlineTokenType.BACKTICKS, "``"),
        (InlineTokenType.TEXT, "x"),
        (InlineTokenType.BACKTICKS, "`")
    ]


def test_brackets_and_images(lexer):
    """Test bracket and image opener tokens."""
    assert token_summary(lexer, "![a][b]!") == [
        (InlineTokenType.IMAGE_OPEN, "!["),
        (InlineTokenType.TEXT, "a"),
        (InlineTokenType.CLOSE_BRACKET, "]"),
        (InlineTokenType.OPEN_BRACKET, "["),
        (InlineTokenType.TEXT, "b"),
        (InlineTokenType.CLOSE_BRACKET, "]"),
        (InlineTokenType.TEXT, "!")
    ]


def test_escape(lexer):
    """Test a backslash escape is one token."""
    assert token_summary(lexer, "\\*") == [(InlineTokenType.ESCAPE, "\\*")]


def test_trailing_backslash(lexer):
    """Test a backslash at the end of the input is text."""
    assert token_summary(lexer, "a\\") == [(InlineTokenType.TEXT, "a"), (InlineTokenType.TEXT, "\\")]


def test_hard_breaks(lexer):
    """Test both forms of hard line break."""
    assert token_summary(lexer, "a  \nb\\\nc") == [
        (InlineTokenType.TEXT, "a"),
        (InlineTokenType.HARD_BREAK, "  \n"),
        (InlineTokenType.TEXT, "b"),
        (InlineTokenType.HARD_BREAK, "\\\n"),
        (InlineTokenType.TEXT, "c")
    ]


def test_single_space_before_newline_is_soft(lexer):
    """Test one space before a newline is not a hard break."""
    assert token_summary(lexer, "a \nb") == [
        (InlineTokenType.TEXT, "a"),
        (InlineTokenType.TEXT, " "),
        (InlineTokenType.NEWLINE, "\n"),
        (InlineTokenType.TEXT, "b")
    ]


@given(st.text(alphabet="ab *_`[]!\\\n ", max_size=200))
@settings(max_examples=200)
def test_tokens_tile_input(source):
    """Every character of the input belongs to exactly one token, in order."""
    lexer = MarkdownInlineLexer()
    lexer.lex(source)
    position = 0
    for token in lexer.tokens():
        assert token.start == position
        assert token.value
        position = token.end

    assert position == len(source)
