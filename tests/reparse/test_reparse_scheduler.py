"""Tests for the debounced reparse scheduler."""

import asyncio
import logging
import threading

import pytest

from reparse import ReparseError, ReparseScheduler, SchedulerState


class Recorder:
    """Collects deliveries and errors from a scheduler."""

    def __init__(self):
        self.deliveries = []
        self.errors = []

    def deliver(self, version, result):
        self.deliveries.append((version, result))

    def on_error(self, error):
        self.errors.append(error)


def echo_pass(text):
    """A pass that just hands back its input."""
    return text


def test_debounce_must_be_positive():
    """Test a zero quiet period is rejected."""
    with pytest.raises(ValueError):
        ReparseScheduler(lambda version, result: None, debounce_ms=0)


def test_burst_of_edits_gives_one_pass():
    """Test three edits inside the quiet period start one pass, for the last text, after the last edit."""
    async def scenario():
        loop = asyncio.get_running_loop()
        calls = []

        def timed_pass(text):
            calls.append((text, loop.time()))
            return text

        recorder = Recorder()
        scheduler = ReparseScheduler(recorder.deliver, debounce_ms=300, pass_function=timed_pass)

        scheduler.on_text_changed("a", 1)
        await asyncio.sleep(0.05)
        scheduler.on_text_changed("ab", 2)
        await asyncio.sleep(0.05)
        scheduler.on_text_changed("abc", 3)
        last_edit = loop.time()

        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return calls, recorder, scheduler, last_edit

    calls, recorder, scheduler, last_edit = asyncio.run(scenario())

    assert scheduler.pass_count == 1
    assert len(calls) == 1
    text, fired = calls[0]
    assert text == "abc"
    assert 0.29 <= fired - last_edit < 1.0
    assert recorder.deliveries == [(3, "abc")]


def test_separate_bursts_give_separate_passes():
    """Test edits separated by more than the quiet period each get a pass."""
    async def scenario():
        recorder = Recorder()
        scheduler = ReparseScheduler(recorder.deliver, debounce_ms=20, pass_function=echo_pass)

        scheduler.on_text_changed("one", 1)
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        scheduler.on_text_changed("two", 2)
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return recorder, scheduler

    recorder, scheduler = asyncio.run(scenario())

    assert scheduler.pass_count == 2
    assert recorder.deliveries == [(1, "one"), (2, "two")]


def test_stale_pass_is_discarded():
    """Test a pass overtaken by an edit while running is never delivered."""
    async def scenario():
        gate = threading.Event()
        started = []

        def blocking_pass(text):
            started.append(text)
            gate.wait(5)
            return text

        recorder = Recorder()
        scheduler = ReparseScheduler(recorder.deliver, debounce_ms=10, pass_function=blocking_pass)

        scheduler.on_text_changed("first", 1)
        scheduler.reparse_now()
        assert scheduler.state == SchedulerState.RUNNING

        # Let the quiet period for the second edit expire while the first pass is still blocked
        scheduler.on_text_changed("second", 2)
        await asyncio.sleep(0.1)
        assert scheduler.pass_count == 1
        assert scheduler.state == SchedulerState.RUNNING

        gate.set()
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return recorder, scheduler, started

    recorder, scheduler, started = asyncio.run(scenario())

    assert started == ["first", "second"]
    assert scheduler.pass_count == 2
    assert [version for version, _result in recorder.deliveries] == [2]
    assert recorder.deliveries[0][1] == "second"


def test_edit_while_running_is_not_lost():
    """Test an edit that arrives mid-pass gets its own pass once the timer expires."""
    async def scenario():
        gate = threading.Event()

        def blocking_pass(text):
            gate.wait(5)
            return text

        recorder = Recorder()
        scheduler = ReparseScheduler(recorder.deliver, debounce_ms=50, pass_function=blocking_pass)

        scheduler.on_text_changed("first", 1)
        scheduler.reparse_now()
        scheduler.on_text_changed("second", 2)

        # Finish the first pass before the second edit's timer has expired
        gate.set()
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return recorder, scheduler

    recorder, scheduler = asyncio.run(scenario())

    assert scheduler.pass_count == 2
    assert recorder.deliveries == [(2, "second")]


def test_state_transitions():
    """Test the scheduler moves from idle to pending to running and back."""
    async def scenario():
        gate = threading.Event()

        def blocking_pass(text):
            gate.wait(5)
            return text

        recorder = Recorder()
        scheduler = ReparseScheduler(recorder.deliver, debounce_ms=1000, pass_function=blocking_pass)
        states = [scheduler.state]

        scheduler.on_text_changed("x", 1)
        states.append(scheduler.state)

        scheduler.reparse_now()
        states.append(scheduler.state)

        gate.set()
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        states.append(scheduler.state)
        return states

    assert asyncio.run(scenario()) == [
        SchedulerState.IDLE, SchedulerState.PENDING, SchedulerState.RUNNING, SchedulerState.IDLE
    ]


def test_reparse_now_without_edits_does_nothing():
    """Test there is nothing to parse before the first edit."""
    async def scenario():
        recorder = Recorder()
        scheduler = ReparseScheduler(recorder.deliver, pass_function=echo_pass)
        scheduler.reparse_now()
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return recorder, scheduler

    recorder, scheduler = asyncio.run(scenario())

    assert scheduler.pass_count == 0
    assert recorder.deliveries == []


def test_pass_failure_is_reported():
    """Test an exception in a pass goes to the error callback, not the caller."""
    def failing_pass(text):
        raise RuntimeError("boom")

    async def scenario():
        recorder = Recorder()
        scheduler = ReparseScheduler(
            recorder.deliver, debounce_ms=10, pass_function=failing_pass, on_error=recorder.on_error
        )
        scheduler.on_text_changed("text", 7)
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return recorder

    recorder = asyncio.run(scenario())

    assert recorder.deliveries == []
    assert len(recorder.errors) == 1
    error = recorder.errors[0]
    assert isinstance(error, ReparseError)
    assert "boom" in str(error)
    assert error.error_details == {"version": 7, "error_type": "RuntimeError"}


def test_scheduler_recovers_after_failure():
    """Test a failed pass does not stop later passes."""
    def flaky_pass(text):
        if text == "bad":
            raise ValueError("bad input")

        return text

    async def scenario():
        recorder = Recorder()
        scheduler = ReparseScheduler(
            recorder.deliver, debounce_ms=10, pass_function=flaky_pass, on_error=recorder.on_error
        )
        scheduler.on_text_changed("bad", 1)
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        scheduler.on_text_changed("good", 2)
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return recorder

    recorder = asyncio.run(scenario())

    assert len(recorder.errors) == 1
    assert recorder.deliveries == [(2, "good")]


def test_delivery_failure_is_logged(caplog):
    """Test an exception from the deliver callback is logged and contained."""
    def bad_deliver(version, result):
        raise KeyError("view gone")

    async def scenario():
        scheduler = ReparseScheduler(bad_deliver, debounce_ms=10, pass_function=echo_pass)
        scheduler.on_text_changed("a", 1)
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return scheduler

    with caplog.at_level(logging.ERROR, logger="ReparseScheduler"):
        scheduler = asyncio.run(scenario())

    assert scheduler.state == SchedulerState.IDLE
    assert "failed to deliver result for version 1" in caplog.text


def test_out_of_order_edit_is_ignored(caplog):
    """Test an edit whose version is not newer than the latest is dropped with a warning."""
    async def scenario():
        recorder = Recorder()
        scheduler = ReparseScheduler(recorder.deliver, debounce_ms=10, pass_function=echo_pass)
        scheduler.on_text_changed("new", 2)
        scheduler.on_text_changed("old", 1)
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return recorder, scheduler

    with caplog.at_level(logging.WARNING, logger="ReparseScheduler"):
        recorder, scheduler = asyncio.run(scenario())

    assert scheduler.latest_version == 2
    assert recorder.deliveries == [(2, "new")]
    assert "ignoring out of order edit" in caplog.text


def test_close_cancels_pending_pass():
    """Test closing before the quiet period ends means no pass runs."""
    async def scenario():
        recorder = Recorder()
        scheduler = ReparseScheduler(recorder.deliver, debounce_ms=20, pass_function=echo_pass)
        scheduler.on_text_changed("a", 1)
        scheduler.close()
        await asyncio.sleep(0.1)
        scheduler.on_text_changed("b", 2)
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return recorder, scheduler

    recorder, scheduler = asyncio.run(scenario())

    assert scheduler.pass_count == 0
    assert scheduler.state == SchedulerState.IDLE
    assert scheduler.latest_version == 1
    assert recorder.deliveries == []


def test_close_drops_running_result():
    """Test a pass that finishes after close is not delivered."""
    async def scenario():
        gate = threading.Event()

        def blocking_pass(text):
            gate.wait(5)
            return text

        recorder = Recorder()
        scheduler = ReparseScheduler(recorder.deliver, pass_function=blocking_pass)
        scheduler.on_text_changed("a", 1)
        scheduler.reparse_now()
        scheduler.close()
        gate.set()
        await asyncio.wait_for(scheduler.wait_idle(), timeout=5)
        return recorder, scheduler

    recorder, scheduler = asyncio.run(scenario())

    assert scheduler.pass_count == 1
    assert recorder.deliveries == []
