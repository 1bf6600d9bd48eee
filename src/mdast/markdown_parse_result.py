"""Result types returned by the Markdown parser."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Tuple

from mdast.markdown_ast_node import MarkdownASTDocumentNode


class AnomalyKind(Enum):
    """Kinds of malformed input the parser recovers from."""
    UNMATCHED_DELIMITER = auto()
    UNMATCHED_BACKTICKS = auto()
    UNMATCHED_BRACKET = auto()
    UNTERMINATED_FENCE = auto()
    NESTING_LIMIT = auto()


@dataclass(frozen=True)
class ParseAnomaly:
    """
    A construct that did not parse cleanly and was degraded to simpler structure.

    Attributes:
        kind: What went wrong
        start: Document offset where the construct starts
        end: Document offset where the construct ends
        message: Human readable description
    """
    kind: AnomalyKind
    start: int
    end: int
    message: str


@dataclass(frozen=True)
class MarkdownParseResult:
    """A parsed document together with any anomalies recovered along the way."""
    document: MarkdownASTDocumentNode
    anomalies: Tuple[ParseAnomaly, ...] = ()

    @property
    def recovered(self) -> bool:
        """True if the parser had to recover from malformed input."""
        return len(self.anomalies) > 0
