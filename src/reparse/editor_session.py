"""
Per-document glue between an editing widget and the highlighting pipeline.
"""

from concurrent.futures import Executor
import logging
from typing import Callable, List, Protocol

from highlight import HighlightReconciler, ViewOp

from reparse.reparse_exceptions import ReparseError
from reparse.reparse_pass import HighlightPassResult, run_highlight_pass
from reparse.reparse_scheduler import ReparseScheduler


class HighlightView(Protocol):
    """Anything that can show highlight operations."""

    def apply_highlights(self, ops: List[ViewOp]) -> None:
        """
        Apply view operations in order.

        Args:
            ops: Clear and apply operations
        """


class EditorSession:
    """
    Owns the scheduler and reconciler for one open document.

    The widget reports every edit; the session makes sure the view only ever
    moves forward to the highlights of a newer version.
    """

    def __init__(
        self,
        view: HighlightView,
        debounce_ms: int = 300,
        executor: Executor | None = None,
        pass_function: Callable[[str], HighlightPassResult] = run_highlight_pass
    ) -> None:
        """
        Initialize the session.

        Args:
            view: The view to drive
            debounce_ms: Quiet period after the last edit before reparsing
            executor: Executor for highlight passes, or None for the loop's default
            pass_function: The highlight pass to run
        """
        self._view = view
        self._reconciler = HighlightReconciler()
        self._scheduler = ReparseScheduler(
            self._deliver,
            debounce_ms=debounce_ms,
            pass_function=pass_function,
            executor=executor,
            on_error=self._handle_error
        )
        self._version = 0
        self.last_result: HighlightPassResult | None = None
        self.last_error: ReparseError | None = None
        self.on_updated: Callable[[int, HighlightPassResult], None] | None = None
        self.on_error: Callable[[ReparseError], None] | None = None
        self._logger = logging.getLogger("EditorSession")

    @property
    def scheduler(self) -> ReparseScheduler:
        """The session's scheduler."""
        return self._scheduler

    @property
    def version(self) -> int:
        """The most recent version number assigned or reported."""
        return self._version

    def on_text_changed(self, text: str, version: int | None = None) -> int:
        """
        Report an edit.

        Args:
            text: Full document text after the edit
            version: Version of the edit, or None to use the next version number

        Returns:
            The version recorded for the edit
        """
        if version is None:
            version = self._version + 1

        self._version = max(self._version, version)
        self._scheduler.on_text_changed(text, version)
        return version

    def reparse_now(self) -> None:
        """Highlight the latest text without waiting for typing to pause."""
        self._scheduler.reparse_now()

    def clear_view(self) -> None:
        """Remove the highlights shown, before the view's document is replaced wholesale."""
        ops = self._reconciler.clear()
        self.last_result = None
        if ops:
            self._view.apply_highlights(ops)

    async def wait_idle(self) -> None:
        """Wait until no highlight pass is due or running."""
        await self._scheduler.wait_idle()

    def close(self) -> None:
        """Stop highlighting this document."""
        self._scheduler.close()

    def _deliver(self, version: int, result: HighlightPassResult) -> None:
        ops = self._reconciler.reconcile(version, result.ranges)
        if ops is None:
            return

        self.last_result = result
        self.last_error = None
        if ops:
            self._view.apply_highlights(ops)

        if self.on_updated is not None:
            self.on_updated(version, result)

    def _handle_error(self, error: ReparseError) -> None:
        self._logger.warning("keeping previous highlights: %s", error)
        self.last_error = error
        if self.on_error is not None:
            self.on_error(error)
