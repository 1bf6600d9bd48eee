"""The work done for one document snapshot, off the event loop."""

from dataclasses import dataclass
from typing import Tuple

from highlight import HighlightRange, highlight
from mdast import OutlineEntry, document_outline, parse_with_diagnostics


@dataclass(frozen=True)
class HighlightPassResult:
    """
    Everything a view needs from one parse of a document.

    Attributes:
        ranges: Highlight ranges in application order
        anomaly_count: Number of malformed constructs the parser recovered from
        outline: The document's headings
    """
    ranges: Tuple[HighlightRange, ...]
    anomaly_count: int = 0
    outline: Tuple[OutlineEntry, ...] = ()


def run_highlight_pass(text: str) -> HighlightPassResult:
    """
    Parse and highlight a document.

    Safe to call from any thread: it reads only its argument.

    Args:
        text: Document text

    Returns:
        The highlight ranges, anomaly count and outline for the text
    """
    result = parse_with_diagnostics(text)
    return HighlightPassResult(
        ranges=tuple(highlight(result.document)),
        anomaly_count=len(result.anomalies),
        outline=tuple(document_outline(result.document))
    )
