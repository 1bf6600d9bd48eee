"""
Turn successive sets of highlight ranges into view operations.
"""

import logging
from typing import List, Sequence

from highlight.highlight_types import ApplyOp, ClearOp, HighlightRange, HighlightState, ViewOp


def diff(previous: Sequence[HighlightRange], new: Sequence[HighlightRange]) -> List[ViewOp]:
    """
    Work out the view operations that replace one set of highlights with another.

    Identical inputs produce no operations.  Otherwise the whole extent of the
    previous highlights is cleared and every new range is applied in order.

    Args:
        previous: Ranges currently shown
        new: Ranges to show

    Returns:
        The operations to apply, in order
    """
    if tuple(previous) == tuple(new):
        return []

    ops: List[ViewOp] = []
    if previous:
        ops.append(ClearOp(min(r.start for r in previous), max(r.end for r in previous)))

    ops.extend(ApplyOp(r.start, r.end, r.style) for r in new)
    return ops


class HighlightReconciler:
    """Owns the highlight state of one view and rejects results older than it."""

    def __init__(self) -> None:
        """Initialize with an empty state."""
        self._state = HighlightState()
        self._logger = logging.getLogger("HighlightReconciler")

    @property
    def state(self) -> HighlightState:
        """The ranges most recently accepted, and their version."""
        return self._state

    def reconcile(self, version: int, ranges: Sequence[HighlightRange]) -> List[ViewOp] | None:
        """
        Accept the ranges for a document version.

        Args:
            version: Document version the ranges were computed for
            ranges: The new ranges

        Returns:
            The operations to apply to the view, or None if the version is not
            newer than the one already shown
        """
        if version <= self._state.version:
            self._logger.debug("rejecting stale highlights for version %d (have %d)", version, self._state.version)
            return None

        ops = diff(self._state.ranges, ranges)
        self._state = HighlightState(version, tuple(ranges))
        return ops

    def clear(self) -> List[ViewOp]:
        """
        Forget the ranges shown, e.g. when the view's document is replaced wholesale.

        The version is kept, so results older than the ones already accepted
        are still rejected.

        Returns:
            The operations that remove the current highlights from the view
        """
        ops = diff(self._state.ranges, ())
        self._state = HighlightState(self._state.version, ())
        return ops
