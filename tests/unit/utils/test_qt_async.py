# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for AsyncRunner.
"""

import asyncio
import threading

import pytest
from PySide6.QtCore import QEventLoop, QTimer

from utils.qt_async import AsyncRunner

pytestmark = pytest.mark.ui


def _wait_for(condition, timeout_ms=2000):
    loop = QEventLoop()
    poll = QTimer()
    poll.timeout.connect(lambda: condition() and loop.quit())
    poll.start(10)
    QTimer.singleShot(timeout_ms, loop.quit)
    loop.exec()
    poll.stop()


@pytest.fixture
def runner(qapp):
    runner = AsyncRunner()
    yield runner
    runner.cleanup()


def test_result_delivered_on_qt_thread(runner):
    results = []

    async def work():
        await asyncio.sleep(0.01)
        return "done"

    runner.run_async(work(), on_success=lambda value: results.append(
        (value, threading.current_thread() is threading.main_thread())
    ))
    _wait_for(lambda: results)

    assert results == [("done", True)]


def test_error_delivered(runner):
    errors = []

    async def fail():
        raise RuntimeError("boom")

    future = runner.run_async(fail(), on_error=errors.append)
    _wait_for(lambda: errors)

    assert isinstance(errors[0], RuntimeError)
    with pytest.raises(RuntimeError):
        future.result(timeout=1)


def test_coroutines_share_one_loop(runner):
    loops = []

    async def current_loop():
        return asyncio.get_running_loop()

    runner.run_async(current_loop(), on_success=loops.append)
    runner.run_async(current_loop(), on_success=loops.append)
    _wait_for(lambda: len(loops) == 2)

    assert loops[0] is loops[1] is runner.loop


def test_cleanup_stops_loop(qapp):
    runner = AsyncRunner()

    runner.cleanup()

    assert runner.loop.is_closed()
    runner.cleanup()
