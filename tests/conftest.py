# SPDX-License-Identifier: Apache-2.0
"""
Pytest configuration for ShadowReel tests.

Provides the Qt application fixture and deterministic playback fakes: a
timer source whose clock only moves when a test calls ``advance()`` and a
media clock that runs on that timer source.
"""

import itertools
import os
import sys
from typing import Any, Callable, List, Optional, Set, Tuple

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from core.playback.media_clock import BaseMediaClock, MediaClockEvent  # noqa: E402
from core.playback.timers import TimerHandle, TimerSource  # noqa: E402
from core.subtitles.models import PlaybackWindow, Segment  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    """Create QApplication instance for PySide6 testing."""
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app


class ManualTimerHandle(TimerHandle):
    def __init__(self, when: float, order: int, callback: Callable[..., Any], args: Tuple):
        self.when = when
        self.order = order
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimerSource(TimerSource):
    """Timer source driven by ``advance()``; callbacks run in due order."""

    def __init__(self):
        self.now = 0.0
        self._handles: List[ManualTimerHandle] = []
        self._order = itertools.count()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        handle = ManualTimerHandle(self.now + max(delay, 0.0), next(self._order), callback, args)
        self._handles.append(handle)
        return handle

    def time(self) -> float:
        return self.now

    def pending(self) -> List[ManualTimerHandle]:
        return [h for h in self._handles if not (h.cancelled or h.fired)]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self.pending() if h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.order))
            handle.fired = True
            self.now = max(self.now, handle.when)
            handle.callback(*handle.args)
        self.now = target


class FakeMediaClock(BaseMediaClock):
    """
    Media clock that plays in manual time.

    Records every command in ``calls`` and the position of every pause the
    clock was asked for in ``pause_positions``.
    """

    MAIN_CONTENT = "video:main"

    def __init__(self, timers: ManualTimerSource, seek_latency: float = 0.05):
        super().__init__()
        self.timers = timers
        self.seek_latency = seek_latency
        self.respond_to_seek = True
        self.rate = 1.0
        self.fail_on: Set[str] = set()
        self.calls: List[Tuple[str, Any]] = []
        self.pause_positions: List[float] = []
        # Position reported while an ad plays; None keeps the main position
        self.ad_position: Optional[float] = None

        self._position = 0.0
        self._anchor = timers.time()
        self._playing = False
        self._ad: Optional[str] = None

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def _sync(self) -> None:
        now = self.timers.time()
        if self._playing and self._ad is None:
            self._position += (now - self._anchor) * self.rate
        self._anchor = now

    # ---- MediaClock ----

    def seek(self, seconds: float) -> None:
        self.calls.append(("seek", seconds))
        if "seek" in self.fail_on:
            raise RuntimeError("seek rejected")
        if self.respond_to_seek:
            self.timers.call_later(self.seek_latency, self._complete_seek, seconds)

    def _complete_seek(self, seconds: float) -> None:
        self._sync()
        self._position = seconds
        if self.emits_seek_events:
            self._emit(MediaClockEvent.SEEK_COMPLETED, seconds)

    def play(self) -> None:
        self.calls.append(("play", None))
        if "play" in self.fail_on:
            raise RuntimeError("play rejected")
        self._set_playing(True)

    def pause(self) -> None:
        self.calls.append(("pause", None))
        if "pause" in self.fail_on:
            raise RuntimeError("pause rejected")
        self.pause_positions.append(self.current_time())
        self._set_playing(False)

    def current_time(self) -> float:
        self._sync()
        if self._ad is not None and self.ad_position is not None:
            return self.ad_position
        return self._position

    def is_playing(self) -> bool:
        return self._playing

    def content_identity(self) -> Optional[str]:
        return self._ad or self.MAIN_CONTENT

    # ---- scripted interruptions ----

    def _set_playing(self, playing: bool) -> None:
        self._sync()
        if playing != self._playing:
            self._playing = playing
            self._emit(MediaClockEvent.STATE_CHANGED, playing)

    def start_ad(self, identity: str = "ad:preroll") -> None:
        self._sync()
        self._ad = identity
        self._emit(MediaClockEvent.CONTENT_CHANGED, identity)

    def end_ad(self) -> None:
        self._sync()
        self._ad = None
        self._emit(MediaClockEvent.CONTENT_CHANGED, self.MAIN_CONTENT)

    def user_pause(self) -> None:
        self._set_playing(False)

    def user_resume(self) -> None:
        self._set_playing(True)

    def fail(self, message: str = "decoder error") -> None:
        self._emit(MediaClockEvent.ERROR, message)


@pytest.fixture
def timers():
    return ManualTimerSource()


@pytest.fixture
def clock(timers):
    return FakeMediaClock(timers)


def make_window(start: float, end: float, index: int = 0, text: str = "line") -> PlaybackWindow:
    return PlaybackWindow(
        start_index=index,
        end_index=index + 1,
        segments=(Segment(start=start, end=end, text=text),),
    )


@pytest.fixture
def window_factory():
    return make_window
