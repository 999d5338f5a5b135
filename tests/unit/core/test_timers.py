# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for the asyncio timer source, including a full scheduler run on
a real event loop.
"""

import asyncio

import pytest

from core.playback.media_clock import BaseMediaClock, MediaClockEvent
from core.playback.scheduler import PlaybackScheduler, SchedulerState
from core.playback.timers import AsyncioTimerSource
from core.subtitles.models import PlaybackWindow, Segment


class LoopClock(BaseMediaClock):
    """Media clock that plays in event-loop time."""

    def __init__(self, loop):
        super().__init__()
        self.loop = loop
        self.position = 0.0
        self.anchor = loop.time()
        self.playing = False
        self.commands = []

    def _sync(self):
        now = self.loop.time()
        if self.playing:
            self.position += now - self.anchor
        self.anchor = now

    def seek(self, seconds):
        self.commands.append("seek")
        self._sync()
        self.position = seconds
        self.loop.call_soon(self._emit, MediaClockEvent.SEEK_COMPLETED, seconds)

    def play(self):
        self.commands.append("play")
        self._sync()
        self.playing = True

    def pause(self):
        self.commands.append("pause")
        self._sync()
        self.playing = False

    def current_time(self):
        self._sync()
        return self.position

    def is_playing(self):
        return self.playing

    def content_identity(self):
        return "main"


class TestAsyncioTimerSource:
    """Test suite for AsyncioTimerSource."""

    @pytest.mark.asyncio
    async def test_call_later(self):
        source = AsyncioTimerSource()
        fired = asyncio.Event()

        source.call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_cancel(self):
        source = AsyncioTimerSource()
        fired = []

        handle = source.call_later(0.01, fired.append, 1)
        handle.cancel()
        await asyncio.sleep(0.05)

        assert fired == []

    @pytest.mark.asyncio
    async def test_negative_delay_runs_soon(self):
        source = AsyncioTimerSource()
        fired = []

        source.call_later(-1.0, fired.append, 1)
        await asyncio.sleep(0.01)

        assert fired == [1]

    def test_explicit_loop(self):
        loop = asyncio.new_event_loop()
        try:
            source = AsyncioTimerSource(loop)
            fired = []
            source.call_later(0.01, fired.append, "x")
            source.call_later(0.02, loop.stop)
            loop.run_forever()

            assert fired == ["x"]
            assert source.time() == pytest.approx(loop.time(), abs=0.5)
        finally:
            loop.close()


@pytest.mark.asyncio
async def test_scheduler_on_asyncio_loop():
    loop = asyncio.get_running_loop()
    clock = LoopClock(loop)
    scheduler = PlaybackScheduler(clock, AsyncioTimerSource(), poll_interval=0.02)
    settled = loop.create_future()
    scheduler.on_settled = settled.set_result

    window = PlaybackWindow(0, 1, (Segment(start=1.0, end=1.2, text="short"),))
    scheduler.activate(window)

    assert await asyncio.wait_for(settled, timeout=2.0) is window
    assert clock.commands == ["seek", "play", "pause"]
    assert clock.position >= 1.2 - scheduler.end_tolerance
    assert scheduler.state is SchedulerState.SETTLED
