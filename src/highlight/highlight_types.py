"""
Value types shared by the highlighter, the reconciler and the views they drive.

All of these are immutable so they can be handed between the parse thread and
the event loop without copying.
"""

from dataclasses import dataclass
from typing import Tuple

from highlight.highlight_style import HighlightStyle


@dataclass(frozen=True)
class HighlightRange:
    """
    A styled range of document text.

    Attributes:
        start: Offset of the first character covered
        end: Offset one past the last character covered
        style: The style to apply
        depth: Tree depth of the node that produced the range
    """
    start: int
    end: int
    style: HighlightStyle
    depth: int = 0

    @property
    def length(self) -> int:
        """Number of characters covered."""
        return self.end - self.start


@dataclass(frozen=True)
class ClearOp:
    """Reset a range of the view to plain text."""
    start: int
    end: int


@dataclass(frozen=True)
class ApplyOp:
    """Apply a style to a range of the view."""
    start: int
    end: int
    style: HighlightStyle


ViewOp = ClearOp | ApplyOp


@dataclass(frozen=True)
class HighlightState:
    """The ranges currently shown by a view, and the document version they came from."""
    version: int = -1
    ranges: Tuple[HighlightRange, ...] = ()
