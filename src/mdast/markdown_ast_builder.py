"""
Parser to construct an AST from Markdown.
"""

from dataclasses import dataclass
import logging
import re
from typing import List, Tuple

from mdast.markdown_ast_node import (
    MarkdownASTNode, MarkdownASTDocumentNode, MarkdownASTHeadingNode, MarkdownASTParagraphNode,
    MarkdownASTListNode, MarkdownASTListItemNode, MarkdownASTCodeBlockNode, MarkdownASTBlockquoteNode,
    MarkdownASTThematicBreakNode
)
from mdast.markdown_inline_parser import MarkdownInlineParser
from mdast.markdown_parse_result import AnomalyKind, MarkdownParseResult, ParseAnomaly


# Deepest nesting of block quotes and lists that will be recognised
MAX_BLOCK_NESTING = 32

# Columns to the next tab stop
TAB_WIDTH = 4


@dataclass(frozen=True)
class _Line:
    """
    A line of container content.

    Attributes:
        text: The line's content once container prefixes are removed, without its line ending
        offset: Document offset of the first character of `text`
    """
    text: str
    offset: int

    @property
    def end(self) -> int:
        """Document offset just past the end of the line's content."""
        return self.offset + len(self.text)


@dataclass(frozen=True)
class _ListMarker:
    """
    A list item marker found at the start of a line.

    Attributes:
        ordered: True for numbered markers
        char: The bullet character, or the delimiter (`.` or `)`) for ordered markers
        number: The item number for ordered markers
        start: Index of the marker in the line
        end: Index just past the marker
        content_start: Index where the item's content starts
        has_content: True if anything other than whitespace follows the marker
    """
    ordered: bool
    char: str
    number: int | None
    start: int
    end: int
    content_start: int
    has_content: bool


class MarkdownASTBuilder:
    """
    Builder class for constructing an AST from markdown text.

    Parsing runs in two phases.  The block phase walks the text line by line,
    recognising block constructs and recursing into block quotes and list items.
    The inline phase then parses the text of each heading and paragraph.
    """

    def __init__(self) -> None:
        """Initialize the AST builder with regex patterns for markdown elements."""
        self._line_ending_pattern = re.compile(r'\r\n|\r|\n')
        self._thematic_break_pattern = re.compile(r'^(?:(?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$')
        self._heading_pattern = re.compile(r'^(#{1,6})(?=[ \t]|$)')
        self._heading_closing_pattern = re.compile(r'(?:^|[ \t]+)#+[ \t]*$')
        self._fence_pattern = re.compile(r'^(`{3,}|~{3,})(.*)$')
        self._list_marker_pattern = re.compile(r'^([-+*]|(\d{1,9})([.)]))(?=[ \t]|$)')

        self._logger = logging.getLogger("MarkdownASTBuilder")
        self._inline_parser = MarkdownInlineParser()
        self._anomalies: List[ParseAnomaly] = []

    def build(self, text: str) -> MarkdownParseResult:
        """
        Build an AST from markdown text.

        Args:
            text: The markdown text to parse

        Returns:
            The parsed document and any anomalies that were recovered from
        """
        self._anomalies = []
        lines = self._split_lines(text)
        children = self._parse_blocks(lines, 0)
        document = MarkdownASTDocumentNode(start=0, end=len(text), children=tuple(children))

        result = MarkdownParseResult(document, tuple(self._anomalies))
        if result.recovered:
            self._logger.debug("parsed %d chars with %d recovered anomalies", len(text), len(result.anomalies))

        return result

    def _split_lines(self, text: str) -> List[_Line]:
        """
        Split text into lines, accepting any line ending convention.

        Args:
            text: The text to split

        Returns:
            The lines of the text
        """
        lines = []
        position = 0
        for match in self._line_ending_pattern.finditer(text):
            lines.append(_Line(text[position:match.start()], position))
            position = match.end()

        lines.append(_Line(text[position:], position))
        return lines

    def _is_blank(self, text: str) -> bool:
        """
        Check if a line contains only whitespace.

        Args:
            text: The line content

        Returns:
            True if the line is blank
        """
        return not text.strip(' \t')

    def _indent_columns(self, text: str) -> int:
        """
        Measure the leading indentation of a line in columns.

        Args:
            text: The line content

        Returns:
            The column of the first character that is not a space or tab
        """
        column = 0
        for ch in text:
            if ch == ' ':
                column += 1

            elif ch == '\t':
                column += TAB_WIDTH - (column % TAB_WIDTH)

            else:
                break

        return column

    def _strip_columns(self, line: _Line, columns: int) -> _Line:
        """
        Remove up to a number of columns of leading indentation from a line.

        A tab that straddles the limit is removed whole.

        Args:
            line: The line to strip
            columns: The number of columns to remove

        Returns:
            The stripped line
        """
        column = 0
        index = 0
        text = line.text
        while index < len(text) and column < columns:
            ch = text[index]
            if ch == ' ':
                column += 1

            elif ch == '\t':
                column += TAB_WIDTH - (column % TAB_WIDTH)

            else:
                break

            index += 1

        return _Line(text[index:], line.offset + index)

    def _leading_whitespace(self, text: str) -> int:
        """
        Count the leading space and tab characters of a line.

        Args:
            text: The line content

        Returns:
            The number of leading whitespace characters
        """
        return len(text) - len(text.lstrip(' \t'))

    def _is_thematic_break(self, text: str) -> bool:
        """
        Check if a line is a thematic break.

        Args:
            text: The line content

        Returns:
            True if the line is a thematic break
        """
        return self._indent_columns(text) < 4 and self._thematic_break_pattern.match(text.strip(' \t')) is not None

    def _match_fence(self, text: str) -> re.Match[str] | None:
        """
        Match an opening code fence.

        Args:
            text: The line content

        Returns:
            The match, or None if the line does not open a fence
        """
        if self._indent_columns(text) >= 4:
            return None

        match = self._fence_pattern.match(text.lstrip(' \t'))
        if match is None:
            return None

        # Backtick fences may not have backticks in their info string
        if match.group(1)[0] == '`' and '`' in match.group(2):
            return None

        return match

    def _match_list_marker(self, text: str) -> _ListMarker | None:
        """
        Match a list item marker at the start of a line.

        Args:
            text: The line content

        Returns:
            The marker, or None if the line does not start a list item
        """
        if self._indent_columns(text) >= 4:
            return None

        lead = self._leading_whitespace(text)
        match = self._list_marker_pattern.match(text[lead:])
        if match is None:
            return None

        marker_start = lead
        marker_end = lead + match.end()
        rest = text[marker_end:]
        has_content = not self._is_blank(rest)

        spaces = self._leading_whitespace(rest)
        if not has_content:
            content_start = marker_end + min(spaces, 1)

        elif spaces > 4:
            # The content is indented code, so only the first space belongs to the marker
            content_start = marker_end + 1

        else:
            content_start = marker_end + spaces

        if match.group(2) is not None:
            return _ListMarker(True, match.group(3), int(match.group(2)), marker_start, marker_end, content_start, has_content)

        return _ListMarker(False, match.group(1), None, marker_start, marker_end, content_start, has_content)

    def _interrupts_paragraph(self, text: str) -> bool:
        """
        Check if a line starts a block that can interrupt a paragraph.

        Args:
            text: The line content

        Returns:
            True if the line ends any paragraph before it
        """
        if self._indent_columns(text) >= 4:
            return False

        stripped = text.lstrip(' \t')
        if self._is_thematic_break(text) or self._heading_pattern.match(stripped) or self._match_fence(text):
            return True

        if stripped.startswith('>'):
            return True

        marker = self._match_list_marker(text)
        if marker is None or not marker.has_content:
            return False

        return not marker.ordered or marker.number == 1

    def _is_paragraph_line(self, text: str) -> bool:
        """
        Check if a line would continue a paragraph rather than start some other block.

        Args:
            text: The line content

        Returns:
            True if the line is paragraph text
        """
        return not self._is_blank(text) and not self._interrupts_paragraph(text)

    def _is_closing_fence(self, text: str, fence: str) -> bool:
        """
        Check if a line closes a fenced code block.

        Args:
            text: The line content
            fence: The opening fence's run of backticks or tildes

        Returns:
            True if the line is a run of at least as many of the same fence character
        """
        if self._indent_columns(text) >= 4:
            return False

        candidate = text.strip(' \t')
        return candidate.startswith(fence[0] * len(fence)) and not candidate.strip(fence[0])

    def _track_open_block(self, text: str, paragraph_open: bool, fence: str | None) -> Tuple[bool, str | None]:
        """
        Follow which block is left open by the lines of a container, one line at a time.

        Only an open paragraph accepts lazy continuation lines; a line inside an
        open code fence is code, however much it looks like paragraph text.

        Args:
            text: The next line of the container's content
            paragraph_open: Whether a paragraph was open before this line
            fence: The fence of the code block open before this line, or None

        Returns:
            A tuple of (whether a paragraph is open, fence of the open code block or None)
        """
        if fence is not None:
            return False, (None if self._is_closing_fence(text, fence) else fence)

        fence_match = self._match_fence(text)
        if fence_match is not None:
            return False, fence_match.group(1)

        if paragraph_open and not self._is_blank(text) and self._indent_columns(text) >= 4:
            return True, None

        return self._is_paragraph_line(text), None

    def _parse_blocks(self, lines: List[_Line], depth: int) -> List[MarkdownASTNode]:
        """
        Parse a sequence of lines into block nodes.

        Args:
            lines: The lines of a container
            depth: How many containers enclose these lines

        Returns:
            The block nodes, in document order
        """
        blocks: List[MarkdownASTNode] = []
        i = 0
        while i < len(lines):
            line = lines[i]
            text = line.text
            if self._is_blank(text):
                i += 1
                continue

            if self._indent_columns(text) >= 4:
                node, i = self._parse_indented_code(lines, i)
                blocks.append(node)
                continue

            lead = self._leading_whitespace(text)
            stripped = text[lead:]

            if self._is_thematic_break(text):
                blocks.append(MarkdownASTThematicBreakNode(
                    start=line.offset + lead,
                    end=line.offset + len(text.rstrip(' \t'))
                ))
                i += 1
                continue

            heading_match = self._heading_pattern.match(stripped)
            if heading_match:
                blocks.append(self._parse_heading(line, lead, len(heading_match.group(1))))
                i += 1
                continue

            fence_match = self._match_fence(text)
            if fence_match:
                node, i = self._parse_fenced_code(lines, i, fence_match)
                blocks.append(node)
                continue

            nested = stripped.startswith('>') or self._match_list_marker(text) is not None
            if nested and depth >= MAX_BLOCK_NESTING:
                self._anomalies.append(ParseAnomaly(
                    AnomalyKind.NESTING_LIMIT, line.offset, line.end, "Block containers nested too deeply"
                ))

            elif stripped.startswith('>'):
                node, i = self._parse_blockquote(lines, i, depth)
                blocks.append(node)
                continue

            elif self._match_list_marker(text) is not None:
                node, i = self._parse_list(lines, i, depth)
                blocks.append(node)
                continue

            node, i = self._parse_paragraph(lines, i)
            blocks.append(node)

        return blocks

    def _parse_heading(self, line: _Line, lead: int, level: int) -> MarkdownASTHeadingNode:
        """
        Parse an ATX heading line.

        Args:
            line: The heading line
            lead: Number of leading whitespace characters
            level: The heading level (1-6)

        Returns:
            The heading node
        """
        text = line.text
        content_start = lead + level
        content_start += self._leading_whitespace(text[content_start:])
        content = text[content_start:].rstrip(' \t')

        closing = self._heading_closing_pattern.search(content)
        if closing:
            content = content[:closing.start()]

        offsets = range(line.offset + content_start, line.offset + content_start + len(content))
        children = self._inline_parser.parse(content, offsets, self._anomalies)
        return MarkdownASTHeadingNode(
            start=line.offset + lead,
            end=line.offset + len(text.rstrip(' \t')),
            children=children,
            level=level
        )

    def _parse_fenced_code(self, lines: List[_Line], i: int, fence_match: re.Match[str]) -> Tuple[MarkdownASTNode, int]:
        """
        Parse a fenced code block.

        An unterminated fence runs to the end of its container.

        Args:
            lines: The lines of the container
            i: Index of the opening fence line
            fence_match: The match for the opening fence

        Returns:
            A tuple of (code block node, index of the next unparsed line)
        """
        opening = lines[i]
        fence = fence_match.group(1)
        fence_indent = self._indent_columns(opening.text)
        info = fence_match.group(2).strip()
        language = info.split()[0] if info else None
        start = opening.offset + self._leading_whitespace(opening.text)

        content_lines: List[str] = []
        j = i + 1
        while j < len(lines):
            text = lines[j].text
            if self._is_closing_fence(text, fence):
                end = lines[j].offset + len(text.rstrip(' \t'))
                return MarkdownASTCodeBlockNode(
                    start=start, end=end, content="\n".join(content_lines), language=language
                ), j + 1

            content_lines.append(self._strip_columns(lines[j], fence_indent).text)
            j += 1

        end = max(opening.end, lines[-1].end)
        self._anomalies.append(ParseAnomaly(AnomalyKind.UNTERMINATED_FENCE, start, end, "Code fence is never closed"))
        return MarkdownASTCodeBlockNode(
            start=start, end=end, content="\n".join(content_lines), language=language
        ), len(lines)

    def _parse_indented_code(self, lines: List[_Line], i: int) -> Tuple[MarkdownASTNode, int]:
        """
        Parse an indented code block.

        Args:
            lines: The lines of the container
            i: Index of the first code line

        Returns:
            A tuple of (code block node, index of the next unparsed line)
        """
        last = i
        j = i
        while j < len(lines):
            text = lines[j].text
            if self._is_blank(text):
                j += 1
                continue

            if self._indent_columns(text) < 4:
                break

            last = j
            j += 1

        content = "\n".join(self._strip_columns(line, 4).text for line in lines[i:last + 1])
        return MarkdownASTCodeBlockNode(
            start=lines[i].offset,
            end=lines[last].offset + len(lines[last].text.rstrip(' \t')),
            content=content,
            language=None,
            fenced=False
        ), last + 1

    def _parse_blockquote(self, lines: List[_Line], i: int, depth: int) -> Tuple[MarkdownASTNode, int]:
        """
        Parse a block quote, including lazy continuation lines.

        Args:
            lines: The lines of the container
            i: Index of the first quote line
            depth: How many containers enclose the quote

        Returns:
            A tuple of (block quote node, index of the next unparsed line)
        """
        start = lines[i].offset + self._leading_whitespace(lines[i].text)
        inner_lines: List[_Line] = []
        paragraph_open = False
        fence: str | None = None

        j = i
        while j < len(lines):
            line = lines[j]
            text = line.text
            lead = self._leading_whitespace(text)
            if self._indent_columns(text) < 4 and text[lead:].startswith('>'):
                content_start = lead + 1
                if content_start < len(text) and text[content_start] in ' \t':
                    content_start += 1

                inner_lines.append(_Line(text[content_start:], line.offset + content_start))
                paragraph_open, fence = self._track_open_block(inner_lines[-1].text, paragraph_open, fence)
                j += 1
                continue

            # Lazy continuation of a paragraph inside the quote
            if paragraph_open and self._is_paragraph_line(text):
                inner_lines.append(line)
                j += 1
                continue

            break

        children = self._parse_blocks(inner_lines, depth + 1)
        return MarkdownASTBlockquoteNode(start=start, end=lines[j - 1].end, children=tuple(children)), j

    def _parse_list(self, lines: List[_Line], i: int, depth: int) -> Tuple[MarkdownASTNode, int]:
        """
        Parse a list made of consecutive items with compatible markers.

        Args:
            lines: The lines of the container
            i: Index of the first item's marker line
            depth: How many containers enclose the list

        Returns:
            A tuple of (list node, index of the next unparsed line)
        """
        first_marker = self._match_list_marker(lines[i].text)
        assert first_marker is not None, "A list must start with a list marker"

        items: List[MarkdownASTListItemNode] = []
        tight = True

        while i < len(lines):
            line = lines[i]
            marker = self._match_list_marker(line.text)
            if (marker is None or self._is_thematic_break(line.text) or
                    marker.ordered != first_marker.ordered or marker.char != first_marker.char):
                break

            item, next_index, loose = self._parse_list_item(lines, i, marker, depth)
            items.append(item)
            if loose:
                tight = False

            # Blank lines between items make the list loose, but only if another item follows
            k = next_index
            while k < len(lines) and self._is_blank(lines[k].text):
                k += 1

            following = self._match_list_marker(lines[k].text) if k < len(lines) else None
            if (following is None or self._is_thematic_break(lines[k].text) or
                    following.ordered != first_marker.ordered or following.char != first_marker.char):
                i = next_index
                break

            if k > next_index:
                tight = False

            i = k

        return MarkdownASTListNode(
            start=items[0].start,
            end=items[-1].end,
            children=tuple(items),
            ordered=first_marker.ordered,
            start_number=first_marker.number,
            tight=tight
        ), i

    def _parse_list_item(
        self,
        lines: List[_Line],
        i: int,
        marker: _ListMarker,
        depth: int
    ) -> Tuple[MarkdownASTListItemNode, int, bool]:
        """
        Parse a single list item and its continuation lines.

        Args:
            lines: The lines of the container
            i: Index of the item's marker line
            marker: The item's marker
            depth: How many containers enclose the item's list

        Returns:
            A tuple of (list item node, index of the next unparsed line, whether the item contains blank lines)
        """
        line = lines[i]
        content_indent = marker.content_start if marker.has_content else marker.end + 1
        item_lines = [_Line(line.text[marker.content_start:], line.offset + marker.content_start)]
        paragraph_open, fence = self._track_open_block(item_lines[0].text, False, None)

        j = i + 1
        while j < len(lines):
            candidate = lines[j]
            text = candidate.text
            if self._is_blank(text):
                item_lines.append(_Line("", candidate.end))
                paragraph_open, fence = self._track_open_block("", paragraph_open, fence)
                j += 1
                continue

            if self._indent_columns(text) >= content_indent:
                item_lines.append(self._strip_columns(candidate, content_indent))
                paragraph_open, fence = self._track_open_block(item_lines[-1].text, paragraph_open, fence)
                j += 1
                continue

            if self._match_list_marker(text) is not None:
                break

            # Lazy continuation of a paragraph inside the item
            if paragraph_open and self._is_paragraph_line(text):
                item_lines.append(candidate)
                j += 1
                continue

            break

        # Trailing blank lines belong to whatever follows the item
        while len(item_lines) > 1 and not item_lines[-1].text:
            item_lines.pop()
            j -= 1

        loose = any(not item_line.text for item_line in item_lines[1:])
        children = self._parse_blocks(item_lines, depth + 1)

        end = line.offset + marker.end
        if children:
            end = max(end, children[-1].end)

        return MarkdownASTListItemNode(
            start=line.offset + marker.start,
            end=end,
            children=tuple(children),
            marker_start=line.offset + marker.start,
            marker_end=line.offset + marker.end
        ), j, loose

    def _parse_paragraph(self, lines: List[_Line], i: int) -> Tuple[MarkdownASTNode, int]:
        """
        Parse a paragraph and its inline content.

        Args:
            lines: The lines of the container
            i: Index of the first paragraph line

        Returns:
            A tuple of (paragraph node, index of the next unparsed line)
        """
        paragraph_lines = [lines[i]]
        j = i + 1
        while j < len(lines) and self._is_paragraph_line(lines[j].text):
            paragraph_lines.append(lines[j])
            j += 1

        # Join the lines, keeping the document offset of every character including the line breaks
        parts: List[str] = []
        offsets: List[int] = []
        for index, paragraph_line in enumerate(paragraph_lines):
            lead = self._leading_whitespace(paragraph_line.text)
            content = paragraph_line.text[lead:]
            is_last = index == len(paragraph_lines) - 1
            if is_last:
                content = content.rstrip(' \t')

            content_offset = paragraph_line.offset + lead
            parts.append(content)
            offsets.extend(range(content_offset, content_offset + len(content)))
            if not is_last:
                parts.append('\n')
                offsets.append(paragraph_line.end)

        text = "".join(parts)
        children = self._inline_parser.parse(text, offsets, self._anomalies)
        return MarkdownASTParagraphNode(
            start=offsets[0],
            end=offsets[-1] + 1,
            children=children
        ), j
