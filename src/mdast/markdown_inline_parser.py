"""
Inline parser for Markdown.

Turns the text content of a block into inline AST nodes using a delimiter
stack: emphasis delimiter runs are recorded as they are met and paired up
once the closer is seen, innermost pairs first.  Code spans bind before
anything else, and link brackets bind before emphasis.
"""

import bisect
from dataclasses import dataclass, field
import logging
import unicodedata
from typing import Dict, List, Sequence, Tuple

from mdast.markdown_ast_node import (
    MarkdownASTNode, MarkdownASTTextNode, MarkdownASTEmphasisNode, MarkdownASTStrongNode,
    MarkdownASTInlineCodeNode, MarkdownASTLinkNode, MarkdownASTImageNode, MarkdownASTLineBreakNode
)
from mdast.markdown_inline_lexer import ESCAPABLE_CHARS, InlineToken, InlineTokenType, MarkdownInlineLexer
from mdast.markdown_parse_result import AnomalyKind, ParseAnomaly


# Deepest nesting of emphasis and links that will be built
MAX_INLINE_NESTING = 32


@dataclass
class _Literal:
    """Literal text, in local coordinates."""
    start: int
    end: int
    content: str


@dataclass
class _Delimiter:
    """A run of `*` or `_` that may still open or close emphasis."""
    char: str
    start: int
    end: int
    can_open: bool
    can_close: bool
    original_length: int

    @property
    def length(self) -> int:
        """Number of delimiter characters not yet used."""
        return self.end - self.start


@dataclass
class _Bracket:
    """An opening `[` or `![` waiting for its `]`."""
    start: int
    end: int
    image: bool
    index: int


@dataclass
class _Inline:
    """A finished inline construct, in local coordinates."""
    node_type: type
    start: int
    end: int
    children: List["_Piece"] = field(default_factory=list)
    content: str = ""
    target: str = ""
    title: str | None = None
    label_end: int = 0
    depth: int = 1


_Piece = _Literal | _Delimiter | _Bracket | _Inline


class MarkdownInlineParser:
    """
    Parser for the inline content of a single block.

    The text handed to the parser is the block's content with any container
    prefixes removed, so it carries a parallel list of document offsets, one
    per character, used to give every node its position in the document.
    """

    def __init__(self) -> None:
        """Initialize the inline parser."""
        self._logger = logging.getLogger("MarkdownInlineParser")
        self._text = ""
        self._offsets: Sequence[int] = ()
        self._anomalies: List[ParseAnomaly] = []
        self._backtick_runs: Dict[int, List[int]] = {}
        self._inactive_below = 0

    def parse(
        self,
        text: str,
        offsets: Sequence[int],
        anomalies: List[ParseAnomaly]
    ) -> Tuple[MarkdownASTNode, ...]:
        """
        Parse inline content into AST nodes.

        Args:
            text: The inline text of a block
            offsets: Document offset of each character of `text`
            anomalies: List that any recovered anomalies are appended to

        Returns:
            The inline nodes, in document order
        """
        assert len(text) == len(offsets), "Every character needs a document offset"
        if not text:
            return ()

        self._text = text
        self._offsets = offsets
        self._anomalies = anomalies

        lexer = MarkdownInlineLexer()
        lexer.lex(text)
        pieces = self._scan(lexer.tokens())
        self._process_emphasis(pieces)
        return self._build_nodes(pieces)

    def _scan(self, tokens: List[InlineToken]) -> List[_Piece]:
        """
        Convert tokens into pieces, resolving code spans and links as they close.

        Args:
            tokens: The tokens for the block's inline text

        Returns:
            The list of pieces, which tile the text
        """
        pieces: List[_Piece] = []
        brackets: List[_Bracket] = []
        position = 0
        index = 0
        self._inactive_below = 0
        self._backtick_runs = {}
        for i, token in enumerate(tokens):
            if token.type == InlineTokenType.BACKTICKS:
                self._backtick_runs.setdefault(len(token.value), []).append(i)


        while index < len(tokens):
            token = tokens[index]
            if token.end <= position:
                index += 1
                continue

            if token.start < position:
                # We resumed part way through a token after a link, so the rest of it is literal
                pieces.append(_Literal(position, token.end, self._text[position:token.end]))
                position = token.end
                index += 1
                continue

            token_type = token.type
            if token_type in (InlineTokenType.TEXT, InlineTokenType.NEWLINE):
                pieces.append(_Literal(token.start, token.end, token.value))

            elif token_type == InlineTokenType.ESCAPE:
                pieces.append(_Literal(token.start, token.end, token.value[1]))

            elif token_type == InlineTokenType.HARD_BREAK:
                pieces.append(_Inline(MarkdownASTLineBreakNode, token.start, token.end))

            elif token_type == InlineTokenType.BACKTICKS:
                closer_index = self._find_code_span_closer(tokens, index)
                if closer_index >= 0:
                    closer = tokens[closer_index]
                    content = self._normalize_code_span(self._text[token.end:closer.start])
                    pieces.append(_Inline(MarkdownASTInlineCodeNode, token.start, closer.end, content=content))
                    position = closer.end
                    index = closer_index + 1
                    continue

                self._add_anomaly(AnomalyKind.UNMATCHED_BACKTICKS, token.start, token.end, "Unmatched backtick run")
                pieces.append(_Literal(token.start, token.end, token.value))

            elif token_type == InlineTokenType.DELIMITER:
                pieces.append(self._create_delimiter(token))

            elif token_type in (InlineTokenType.OPEN_BRACKET, InlineTokenType.IMAGE_OPEN):
                bracket = _Bracket(token.start, token.end, token_type == InlineTokenType.IMAGE_OPEN, len(pieces))
                pieces.append(bracket)
                brackets.append(bracket)

            elif token_type == InlineTokenType.CLOSE_BRACKET:
                link_end = self._close_bracket(token, pieces, brackets)
                if link_end >= 0:
                    position = link_end
                    index += 1
                    continue

                pieces.append(_Literal(token.start, token.end, token.value))

            position = token.end
            index += 1

        return pieces

    def _find_code_span_closer(self, tokens: List[InlineToken], index: int) -> int:
        """
        Find the backtick run that closes the code span opened at `index`.

        Args:
            tokens: The token list
            index: Index of the opening backtick run

        Returns:
            Index of the closing run, or -1 if there is none
        """
        runs = self._backtick_runs.get(len(tokens[index].value), [])
        i = bisect.bisect_right(runs, index)
        return runs[i] if i < len(runs) else -1

    def _normalize_code_span(self, content: str) -> str:
        """
        Normalize the content of a code span.

        Line endings become spaces, and a single space is stripped from each end
        if both ends have one and the content is not only spaces.

        Args:
            content: The raw text between the backtick runs

        Returns:
            The normalized content
        """
        content = content.replace('\n', ' ')
        if len(content) >= 2 and content[0] == ' ' and content[-1] == ' ' and content.strip(' '):
            return content[1:-1]

        return content

    def _is_punctuation(self, ch: str) -> bool:
        """
        Determine if a character counts as punctuation for flanking rules.

        Args:
            ch: The character to check

        Returns:
            True if the character is Unicode punctuation or a symbol
        """
        return unicodedata.category(ch)[0] in ('P', 'S')

    def _create_delimiter(self, token: InlineToken) -> _Delimiter:
        """
        Create a delimiter piece, working out whether it can open and/or close emphasis.

        Args:
            token: The delimiter run token

        Returns:
            The delimiter piece
        """
        before = self._text[token.start - 1] if token.start > 0 else '\n'
        after = self._text[token.end] if token.end < len(self._text) else '\n'

        before_space = before.isspace()
        after_space = after.isspace()
        before_punct = self._is_punctuation(before)
        after_punct = self._is_punctuation(after)

        left_flanking = not after_space and (not after_punct or before_space or before_punct)
        right_flanking = not before_space and (not before_punct or after_space or after_punct)

        char = token.value[0]
        if char == '*':
            can_open = left_flanking
            can_close = right_flanking

        else:
            # Underscores may not open or close emphasis inside a word
            can_open = left_flanking and (not right_flanking or before_punct)
            can_close = right_flanking and (not left_flanking or after_punct)

        return _Delimiter(char, token.start, token.end, can_open, can_close, len(token.value))

    def _close_bracket(self, token: InlineToken, pieces: List[_Piece], brackets: List[_Bracket]) -> int:
        """
        Try to close a link or image at a `]`.

        Args:
            token: The `]` token
            pieces: Pieces scanned so far; replaced in place if a link is formed
            brackets: Stack of open brackets

        Returns:
            The local position just past the link or image, or -1 if no link was formed
        """
        if not brackets:
            return -1

        opener = brackets.pop()
        opener_index = opener.index

        # Brackets that were open when a link formed may not start another link
        active = opener.image or len(brackets) >= self._inactive_below
        self._inactive_below = min(self._inactive_below, len(brackets))
        opener_literal = _Literal(opener.start, opener.end, self._text[opener.start:opener.end])

        tail = self._parse_link_tail(token.end) if active else None
        if tail is None:
            # A bracket pair with no link tail is just text
            pieces[opener_index] = opener_literal
            return -1

        target, title, link_end = tail
        label = pieces[opener_index + 1:]
        self._process_emphasis(label)

        if opener.image:
            alt = "".join(self._plain_text(piece) for piece in label)
            inline = _Inline(
                MarkdownASTImageNode, opener.start, link_end,
                content=alt, target=target, title=title, label_end=token.end
            )

        else:
            depth = 1 + max((self._depth(piece) for piece in label), default=0)
            if depth > MAX_INLINE_NESTING:
                self._add_anomaly(AnomalyKind.NESTING_LIMIT, opener.start, link_end, "Link nested too deeply")
                pieces[opener_index:] = [opener_literal] + label
                return -1

            inline = _Inline(
                MarkdownASTLinkNode, opener.start, link_end,
                children=label, target=target, title=title, label_end=token.end, depth=depth
            )

            # Links may not contain other links
            self._inactive_below = len(brackets)

        pieces[opener_index:] = [inline]
        return link_end

    def _parse_link_tail(self, pos: int) -> Tuple[str, str | None, int] | None:
        """
        Parse the `(target "title")` part that must follow a link label.

        Args:
            pos: Local position just after the `]`

        Returns:
            A tuple of (target, title, end position), or None if there is no valid tail
        """
        text = self._text
        length = len(text)
        if pos >= length or text[pos] != '(':
            return None

        pos = self._skip_whitespace(pos + 1)
        if pos >= length:
            return None

        # Destination, either in angle brackets or a run with balanced parentheses
        if text[pos] == '<':
            end = pos + 1
            while end < length and text[end] not in '<>\n':
                end += 2 if text[end] == '\\' and end + 1 < length else 1

            if end >= length or text[end] != '>':
                return None

            target = self._unescape(text[pos + 1:end])
            pos = end + 1

        else:
            end = pos
            depth = 0
            while end < length:
                ch = text[end]
                if ch == '\\' and end + 1 < length:
                    end += 2
                    continue

                if ch.isspace():
                    break

                if ch == '(':
                    depth += 1

                elif ch == ')':
                    if depth == 0:
                        break

                    depth -= 1

                end += 1

            if depth != 0:
                return None

            target = self._unescape(text[pos:end])
            pos = end

        title: str | None = None
        title_start = self._skip_whitespace(pos)
        if title_start < length and title_start > pos and text[title_start] in '"\'(':
            closing = ')' if text[title_start] == '(' else text[title_start]
            end = title_start + 1
            while end < length and text[end] != closing:
                end += 2 if text[end] == '\\' and end + 1 < length else 1

            if end >= length:
                return None

            title = self._unescape(text[title_start + 1:end])
            pos = end + 1

        pos = self._skip_whitespace(pos)
        if pos >= length or text[pos] != ')':
            return None

        return target, title, pos + 1

    def _skip_whitespace(self, pos: int) -> int:
        """
        Skip spaces, tabs and newlines.

        Args:
            pos: Starting local position

        Returns:
            The first position that is not whitespace
        """
        while pos < len(self._text) and self._text[pos] in ' \t\n':
            pos += 1

        return pos

    def _unescape(self, text: str) -> str:
        """
        Remove backslash escapes from punctuation.

        Args:
            text: The text to unescape

        Returns:
            The unescaped text
        """
        if '\\' not in text:
            return text

        result = []
        i = 0
        while i < len(text):
            if text[i] == '\\' and i + 1 < len(text) and text[i + 1] in ESCAPABLE_CHARS:
                result.append(text[i + 1])
                i += 2
                continue

            result.append(text[i])
            i += 1

        return "".join(result)

    def _depth(self, piece: _Piece) -> int:
        """
        Get the nesting depth contributed by a piece.

        Args:
            piece: The piece

        Returns:
            0 for raw pieces, otherwise the depth of the built construct
        """
        return piece.depth if isinstance(piece, _Inline) else 0

    def _plain_text(self, piece: _Piece) -> str:
        """
        Get the plain text a piece would display, used for image alt text.

        Args:
            piece: The piece

        Returns:
            The plain text
        """
        if isinstance(piece, _Literal):
            return piece.content

        if isinstance(piece, _Inline):
            if piece.node_type in (MarkdownASTInlineCodeNode, MarkdownASTImageNode):
                return piece.content

            if piece.node_type == MarkdownASTLineBreakNode:
                return "\n"

            return "".join(self._plain_text(child) for child in piece.children)

        return self._text[piece.start:piece.end]

    def _find_opener(self, pieces: List[_Piece], openers: List[int], bottom: int, closer: _Delimiter) -> int:
        """
        Find the nearest open delimiter that can be paired with a closer.

        Args:
            pieces: The pieces processed so far
            openers: Indices into `pieces` of delimiters that can still open, in order
            bottom: Lowest position in `openers` worth searching
            closer: The closing delimiter

        Returns:
            Position of the opener in `openers`, or -1 if there is none
        """
        for stack_index in range(len(openers) - 1, bottom - 1, -1):
            opener = pieces[openers[stack_index]]
            assert isinstance(opener, _Delimiter)
            if opener.char != closer.char:
                continue

            # The "rule of three" stops runs that could both open and close pairing oddly
            if opener.can_close or closer.can_open:
                total = opener.original_length + closer.original_length
                if total % 3 == 0 and not (opener.original_length % 3 == 0 and closer.original_length % 3 == 0):
                    continue

            return stack_index

        return -1

    def _process_emphasis(self, pieces: List[_Piece]) -> None:
        """
        Pair up emphasis delimiters, replacing them with emphasis and strong constructs.

        Closers are handled left to right so the innermost pairs resolve first.  When
        both runs have at least two characters left the pair binds as strong emphasis.
        Any delimiters left unpaired become literal text.

        A closer that finds no opener records how far down the opener stack it
        looked, keyed by everything that affects matching, so later closers of the
        same kind never search that part again.  This keeps the pass linear.

        Args:
            pieces: The pieces to process; modified in place
        """
        result: List[_Piece] = []
        openers: List[int] = []
        openers_bottom: Dict[Tuple[str, bool, int], int] = {}

        def truncate_openers(size: int) -> None:
            del openers[size:]
            for key, bottom in openers_bottom.items():
                if bottom > size:
                    openers_bottom[key] = size

        for piece in pieces:
            if not isinstance(piece, _Delimiter):
                result.append(piece)
                continue

            closer = piece
            while closer.can_close and closer.length > 0:
                key = (closer.char, closer.can_open, closer.original_length % 3)
                stack_index = self._find_opener(result, openers, openers_bottom.get(key, 0), closer)
                if stack_index < 0:
                    openers_bottom[key] = len(openers)
                    break

                opener_position = openers[stack_index]
                opener = result[opener_position]
                assert isinstance(opener, _Delimiter)

                inner = result[opener_position + 1:]
                self._finalize(inner)
                del result[opener_position + 1:]
                truncate_openers(stack_index + 1)

                depth = 1 + max((self._depth(p) for p in inner), default=0)
                if depth > MAX_INLINE_NESTING:
                    self._add_anomaly(AnomalyKind.NESTING_LIMIT, opener.start, closer.end, "Emphasis nested too deeply")
                    result.extend(inner)

                    # Any opener further down would nest at least as deeply
                    openers_bottom[key] = len(openers)
                    break

                use = 2 if opener.length >= 2 and closer.length >= 2 else 1
                node_type = MarkdownASTStrongNode if use == 2 else MarkdownASTEmphasisNode
                inline = _Inline(node_type, opener.end - use, closer.start + use, children=inner, depth=depth)

                opener.end -= use
                closer.start += use
                if opener.length == 0:
                    del result[opener_position]
                    truncate_openers(stack_index)

                result.append(inline)

            if closer.length > 0:
                result.append(closer)
                if closer.can_open:
                    openers.append(len(result) - 1)

        pieces[:] = result
        self._finalize(pieces)

    def _finalize(self, pieces: List[_Piece]) -> None:
        """
        Turn any unpaired delimiters and brackets into literal text.

        Args:
            pieces: The pieces to finalize; modified in place
        """
        for i, piece in enumerate(pieces):
            if isinstance(piece, _Delimiter):
                # Runs that could never pair, such as `snake_case` or `2 * 3`, are ordinary text
                if piece.can_open or piece.can_close:
                    self._add_anomaly(
                        AnomalyKind.UNMATCHED_DELIMITER, piece.start, piece.end, "Unmatched emphasis delimiter"
                    )

                pieces[i] = _Literal(piece.start, piece.end, self._text[piece.start:piece.end])

            elif isinstance(piece, _Bracket):
                self._add_anomaly(AnomalyKind.UNMATCHED_BRACKET, piece.start, piece.end, "Unmatched link bracket")
                pieces[i] = _Literal(piece.start, piece.end, self._text[piece.start:piece.end])

    def _add_anomaly(self, kind: AnomalyKind, start: int, end: int, message: str) -> None:
        """
        Record an anomaly, translating its span to document offsets.

        Args:
            kind: The kind of anomaly
            start: Local start position
            end: Local end position
            message: Description of the anomaly
        """
        doc_start, doc_end = self._map_span(start, end)
        self._anomalies.append(ParseAnomaly(kind, doc_start, doc_end, message))

    def _map_span(self, start: int, end: int) -> Tuple[int, int]:
        """
        Translate a non-empty local span into document offsets.

        Args:
            start: Local start position
            end: Local end position

        Returns:
            The (start, end) document offsets
        """
        return self._offsets[start], self._offsets[end - 1] + 1

    def _build_nodes(self, pieces: List[_Piece]) -> Tuple[MarkdownASTNode, ...]:
        """
        Build AST nodes from finished pieces, merging adjacent literal text.

        Args:
            pieces: Finished pieces, containing only literals and built constructs

        Returns:
            The AST nodes
        """
        nodes: List[MarkdownASTNode] = []
        text_start = -1
        text_end = -1
        text_parts: List[str] = []

        for piece in pieces:
            if isinstance(piece, _Literal):
                if text_start < 0:
                    text_start = piece.start

                text_end = piece.end
                text_parts.append(piece.content)
                continue

            if text_start >= 0:
                nodes.append(self._build_text(text_start, text_end, text_parts))
                text_start = -1
                text_parts = []

            assert isinstance(piece, _Inline), "Only literals and built constructs remain after finalizing"
            nodes.append(self._build_inline(piece))

        if text_start >= 0:
            nodes.append(self._build_text(text_start, text_end, text_parts))

        return tuple(nodes)

    def _build_text(self, start: int, end: int, parts: List[str]) -> MarkdownASTTextNode:
        """
        Build a text node from merged literal pieces.

        Args:
            start: Local start position
            end: Local end position
            parts: The literal contents to join

        Returns:
            The text node
        """
        doc_start, doc_end = self._map_span(start, end)
        return MarkdownASTTextNode(start=doc_start, end=doc_end, content="".join(parts))

    def _build_inline(self, inline: _Inline) -> MarkdownASTNode:
        """
        Build the AST node for a finished inline construct.

        Args:
            inline: The construct

        Returns:
            The AST node
        """
        start, end = self._map_span(inline.start, inline.end)
        node_type = inline.node_type

        if node_type == MarkdownASTInlineCodeNode:
            return MarkdownASTInlineCodeNode(start=start, end=end, content=inline.content)

        if node_type == MarkdownASTLineBreakNode:
            return MarkdownASTLineBreakNode(start=start, end=end)

        label_end = self._offsets[inline.label_end - 1] + 1 if inline.label_end else end
        if node_type == MarkdownASTImageNode:
            return MarkdownASTImageNode(
                start=start, end=end, target=inline.target, alt=inline.content,
                title=inline.title, label_end=label_end
            )

        children = self._build_nodes(inline.children)
        if node_type == MarkdownASTLinkNode:
            return MarkdownASTLinkNode(
                start=start, end=end, children=children, target=inline.target,
                title=inline.title, label_end=label_end
            )

        return node_type(start=start, end=end, children=children)
