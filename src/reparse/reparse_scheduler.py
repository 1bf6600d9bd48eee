"""
Debounced, single-flight scheduling of highlight passes.

Edits arrive on the event loop.  Each one replaces the pending snapshot and
restarts a quiet-period timer; when the timer expires the latest snapshot is
handed to an executor thread.  At most one pass runs at a time, and a result
is only delivered if no newer edit has arrived since its snapshot was taken.
"""

import asyncio
from concurrent.futures import Executor
from enum import Enum, auto
import logging
from typing import Any, Callable, List

from reparse.document_snapshot import DocumentSnapshot
from reparse.reparse_exceptions import ReparseError
from reparse.reparse_pass import run_highlight_pass


class SchedulerState(Enum):
    """What the scheduler is doing."""
    IDLE = auto()
    PENDING = auto()
    RUNNING = auto()


class ReparseScheduler:
    """
    Coalesces bursts of edits into one background highlight pass.

    All methods must be called from the thread running the event loop.
    """

    def __init__(
        self,
        deliver: Callable[[int, Any], None],
        debounce_ms: int = 300,
        pass_function: Callable[[str], Any] = run_highlight_pass,
        executor: Executor | None = None,
        on_error: Callable[[ReparseError], None] | None = None,
        loop: asyncio.AbstractEventLoop | None = None
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            deliver: Called with (version, result) for each pass that is still current when it completes
            debounce_ms: Quiet period after the last edit before a pass starts
            pass_function: The work to run for a document's text
            executor: Executor to run passes on, or None for the loop's default executor
            on_error: Called with a ReparseError when a pass raises
            loop: Event loop to schedule on, or None to use the current one

        Raises:
            ValueError: If debounce_ms is not positive
        """
        if debounce_ms <= 0:
            raise ValueError(f"debounce_ms must be positive, got {debounce_ms}")

        self._deliver = deliver
        self._debounce_s = debounce_ms / 1000.0
        self._pass_function = pass_function
        self._executor = executor
        self._on_error = on_error
        self._loop = loop

        self._latest: DocumentSnapshot | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._in_flight: asyncio.Task | None = None
        self._fire_deferred = False
        self._closed = False
        self._pass_count = 0
        self._idle_waiters: List[asyncio.Future] = []

        self._logger = logging.getLogger("ReparseScheduler")

    @property
    def state(self) -> SchedulerState:
        """RUNNING while a pass is in flight, else PENDING while a pass is due, else IDLE."""
        if self._in_flight is not None:
            return SchedulerState.RUNNING

        if self._timer is not None or self._fire_deferred:
            return SchedulerState.PENDING

        return SchedulerState.IDLE

    @property
    def pass_count(self) -> int:
        """Number of passes started."""
        return self._pass_count

    @property
    def latest_version(self) -> int | None:
        """Version of the most recent edit, or None before the first."""
        return self._latest.version if self._latest is not None else None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_event_loop()

        return self._loop

    def _is_idle(self) -> bool:
        return self._timer is None and self._in_flight is None and not self._fire_deferred

    def on_text_changed(self, text: str, version: int) -> None:
        """
        Record an edit and restart the quiet-period timer.

        Args:
            text: Full document text after the edit
            version: The edit's version, which must be greater than any seen before
        """
        if self._closed:
            return

        if self._latest is not None and version <= self._latest.version:
            self._logger.warning(
                "ignoring out of order edit: version %d is not newer than %d", version, self._latest.version
            )
            return

        self._latest = DocumentSnapshot(text, version)
        self._arm_timer()

    def reparse_now(self) -> None:
        """Start a pass for the latest edit without waiting for the quiet period."""
        if self._closed or self._latest is None:
            return

        self._cancel_timer()
        self._fire()

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = self._get_loop().call_later(self._debounce_s, self._on_timer)
        self._logger.debug("armed reparse timer for version %d", self._latest.version if self._latest else -1)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self._closed:
            return

        self._fire()

    def _fire(self) -> None:
        """Start a pass, or defer it if one is already running."""
        if self._in_flight is not None:
            self._logger.debug("pass in flight, deferring next pass")
            self._fire_deferred = True
            return

        snapshot = self._latest
        assert snapshot is not None
        self._pass_count += 1
        self._logger.debug("starting pass %d for version %d", self._pass_count, snapshot.version)
        self._in_flight = self._get_loop().create_task(self._run_pass(snapshot))

    async def _run_pass(self, snapshot: DocumentSnapshot) -> None:
        """
        Run one pass on the executor and deliver its result if it is still current.

        Args:
            snapshot: The snapshot to process
        """
        try:
            result = await self._get_loop().run_in_executor(self._executor, self._pass_function, snapshot.text)

        except Exception as e:  # pylint: disable=broad-exception-caught
            self._logger.exception("highlight pass failed for version %d", snapshot.version)
            if not self._closed and self._on_error is not None:
                self._on_error(ReparseError(
                    f"Highlight pass failed: {str(e)}",
                    {"version": snapshot.version, "error_type": type(e).__name__}
                ))

        else:
            self._complete(snapshot, result)

        finally:
            self._in_flight = None
            if self._fire_deferred and not self._closed:
                self._fire_deferred = False
                if self._latest is not None and self._latest.version != snapshot.version:
                    self._fire()

            self._notify_idle()

    def _complete(self, snapshot: DocumentSnapshot, result: Any) -> None:
        if self._closed:
            self._logger.debug("scheduler closed, dropping result for version %d", snapshot.version)
            return

        if self._latest is None or snapshot.version != self._latest.version:
            self._logger.debug(
                "discarding stale result for version %d (latest is %d)",
                snapshot.version,
                self._latest.version if self._latest else -1
            )
            return

        self._logger.debug("delivering result for version %d", snapshot.version)
        try:
            self._deliver(snapshot.version, result)

        except Exception:  # pylint: disable=broad-exception-caught
            self._logger.exception("failed to deliver result for version %d", snapshot.version)

    def _notify_idle(self) -> None:
        if not self._is_idle():
            return

        waiters = self._idle_waiters
        self._idle_waiters = []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    async def wait_idle(self) -> None:
        """Wait until no pass is due or running."""
        while not self._is_idle():
            waiter = self._get_loop().create_future()
            self._idle_waiters.append(waiter)
            await waiter

    def close(self) -> None:
        """
        Stop scheduling passes.

        A pass already running on the executor finishes, but its result is dropped.
        """
        self._closed = True
        self._fire_deferred = False
        self._cancel_timer()
        self._notify_idle()
