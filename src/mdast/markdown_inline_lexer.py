"""Lexer for the inline content of Markdown blocks."""

from dataclasses import dataclass
from enum import IntEnum, auto
from typing import Callable, ClassVar, List, Set


# ASCII punctuation that a backslash can escape
ESCAPABLE_CHARS = frozenset("!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~")


class InlineTokenType(IntEnum):
    """Type of inline lexical token."""
    BACKTICKS = auto()
    CLOSE_BRACKET = auto()
    DELIMITER = auto()
    ESCAPE = auto()
    HARD_BREAK = auto()
    IMAGE_OPEN = auto()
    NEWLINE = auto()
    OPEN_BRACKET = auto()
    TEXT = auto()


@dataclass
class InlineToken:
    """
    Represents a token in the inline input stream.

    Attributes:
        type: The type of the token
        value: The string value of the token
        start: The starting position of the token in the input stream
    """
    type: InlineTokenType
    value: str
    start: int

    @property
    def end(self) -> int:
        """The position just past the end of the token."""
        return self.start + len(self.value)


class MarkdownInlineLexer:
    """
    Lexer that splits block text into inline tokens.

    The lexer only finds the pieces that inline parsing cares about: runs of
    emphasis delimiters, backtick runs, brackets, escapes and line breaks.
    Everything else is gathered into TEXT tokens.  Tokens tile the input, so
    every character belongs to exactly one token.
    """

    _SPECIAL_CHARS: ClassVar[Set[str]] = set("*_`[]!\\\n ")

    def __init__(self) -> None:
        self._input: str = ""
        self._input_len: int = 0
        self._position: int = 0
        self._tokens: List[InlineToken] = []

    def lex(self, input_str: str) -> None:
        """
        Lex all the tokens in the input.

        Args:
            input_str: The input string to lex
        """
        self._input = input_str
        self._input_len = len(input_str)
        self._position = 0
        self._tokens = []

        while self._position < self._input_len:
            ch = self._input[self._position]
            self._get_lexing_function(ch)()

    def tokens(self) -> List[InlineToken]:
        """
        Get all the tokens produced by the last call to `lex`.

        Returns:
            The list of tokens in input order
        """
        return self._tokens

    def _get_lexing_function(self, ch: str) -> Callable[[], None]:
        """
        Get the lexing function that matches a given start character.

        Args:
            ch: The start character

        Returns:
            The lexing function
        """
        if ch in ('*', '_'):
            return self._read_delimiter_run

        if ch == '`':
            return self._read_backticks

        if ch == '[':
            return self._read_open_bracket

        if ch == ']':
            return self._read_close_bracket

        if ch == '!':
            return self._read_bang

        if ch == '\\':
            return self._read_backslash

        if ch == ' ':
            return self._read_spaces

        if ch == '\n':
            return self._read_newline

        return self._read_text

    def _read_run(self, ch: str) -> int:
        """
        Find the end of a run of identical characters starting at the current position.

        Args:
            ch: The character making up the run

        Returns:
            The position just past the end of the run
        """
        pos = self._position + 1
        while pos < self._input_len and self._input[pos] == ch:
            pos += 1

        return pos

    def _emit(self, token_type: InlineTokenType, end: int) -> None:
        """
        Emit a token covering the input from the current position up to `end`.

        Args:
            token_type: The type of token to emit
            end: The position just past the end of the token
        """
        self._tokens.append(InlineToken(
            type=token_type,
            value=self._input[self._position:end],
            start=self._position
        ))
        self._position = end

    def _read_delimiter_run(self) -> None:
        """Read a run of `*` or `_` characters."""
        self._emit(InlineTokenType.DELIMITER, self._read_run(self._input[self._position]))

    def _read_backticks(self) -> None:
        """Read a run of backticks."""
        self._emit(InlineTokenType.BACKTICKS, self._read_run('`'))

    def _read_open_bracket(self) -> None:
        """Read an opening link bracket."""
        self._emit(InlineTokenType.OPEN_BRACKET, self._position + 1)

    def _read_close_bracket(self) -> None:
        """Read a closing link bracket."""
        self._emit(InlineTokenType.CLOSE_BRACKET, self._position + 1)

    def _read_bang(self) -> None:
        """Read a `!`, which opens an image if a `[` follows it."""
        pos = self._position + 1
        if pos < self._input_len and self._input[pos] == '[':
            self._emit(InlineTokenType.IMAGE_OPEN, pos + 1)
            return

        self._read_text()

    def _read_backslash(self) -> None:
        """Read a backslash escape, a backslash hard break, or a literal backslash."""
        pos = self._position + 1
        if pos < self._input_len:
            ch = self._input[pos]
            if ch == '\n':
                self._emit(InlineTokenType.HARD_BREAK, pos + 1)
                return

            if ch in ESCAPABLE_CHARS:
                self._emit(InlineTokenType.ESCAPE, pos + 1)
                return

        self._emit(InlineTokenType.TEXT, pos)

    def _read_spaces(self) -> None:
        """Read a run of spaces; two or more before a newline make a hard break."""
        end = self._read_run(' ')
        if end < self._input_len and self._input[end] == '\n' and end - self._position >= 2:
            self._emit(InlineTokenType.HARD_BREAK, end + 1)
            return

        self._emit(InlineTokenType.TEXT, end)

    def _read_newline(self) -> None:
        """Read a soft line break."""
        self._emit(InlineTokenType.NEWLINE, self._position + 1)

    def _read_text(self) -> None:
        """Read plain text up to the next character that might be significant."""
        pos = self._position + 1
        while pos < self._input_len and self._input[pos] not in self._SPECIAL_CHARS:
            pos += 1

        self._emit(InlineTokenType.TEXT, pos)
