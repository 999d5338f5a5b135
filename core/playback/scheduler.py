# SPDX-License-Identifier: Apache-2.0
#
# Copyright (c) 2024-2025 ShadowReel Contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Playback scheduler.

Drives a media clock through one playback window at a time: seek to the
window start, play, and pause at the window end exactly once per
activation.

Every activation gets a new generation id. Timers and event subscriptions
are bound to the generation they were created under and are torn down
before the next activation begins, so a late callback from an earlier
window can never pause a later one.
"""

import functools
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from config.constants import (
    DEFAULT_END_TOLERANCE,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SEEK_MATCH_TOLERANCE,
    DEFAULT_SEEK_SETTLE_DELAY,
    DEFAULT_STOP_SAFETY_MARGIN,
    DEFAULT_WATCHDOG_TIMEOUT,
)
from core.playback.media_clock import MediaClock, MediaClockEvent
from core.playback.timers import TimerHandle, TimerSource
from core.subtitles.models import PlaybackWindow
from utils.error_handler import MediaFault, SchedulerTimeout

logger = logging.getLogger("shadowreel.playback.scheduler")


class SchedulerState(Enum):
    """Scheduler states."""

    IDLE = "idle"
    SEEKING = "seeking"
    PLAYING = "playing"
    INTERRUPTED = "interrupted"
    SETTLED = "settled"


class PlaybackScheduler:
    """
    Plays one window of a media clock and stops at its end.

    The stop-commitment is a timer armed for the remaining distance to the
    window end as reported by the clock when playback actually starts. A
    periodic poll of the clock position backs the timer up. Neither pauses
    the clock before ``window.end - end_tolerance``.

    Callbacks:
        on_settled(window): the window played to its end and the clock is paused
        on_error(error): a MediaFault or SchedulerTimeout ended the activation
        on_state_changed(state): every state transition
    """

    def __init__(
        self,
        clock: MediaClock,
        timers: TimerSource,
        *,
        seek_settle_delay: float = DEFAULT_SEEK_SETTLE_DELAY,
        stop_safety_margin: float = DEFAULT_STOP_SAFETY_MARGIN,
        end_tolerance: float = DEFAULT_END_TOLERANCE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        watchdog_timeout: float = DEFAULT_WATCHDOG_TIMEOUT,
        seek_tolerance: float = DEFAULT_SEEK_MATCH_TOLERANCE,
    ):
        """
        Args:
            clock: Media clock to drive
            timers: Timer source of the clock's event loop
            seek_settle_delay: Wait before playing when the clock has no
                seek-completed event
            stop_safety_margin: Added to the stop timer so the clock is
                past the end when the timer fires
            end_tolerance: How far before the window end the clock may be
                paused
            poll_interval: Period of the position poll
            watchdog_timeout: Maximum wait for seek completion
            seek_tolerance: How close a seek completion must land to the
                window start to count as this activation's seek
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if watchdog_timeout <= 0:
            raise ValueError("watchdog_timeout must be positive")

        self.clock = clock
        self.timers = timers
        self.seek_settle_delay = seek_settle_delay
        self.stop_safety_margin = stop_safety_margin
        self.end_tolerance = end_tolerance
        self.poll_interval = poll_interval
        self.watchdog_timeout = watchdog_timeout
        self.seek_tolerance = seek_tolerance

        self.on_settled: Optional[Callable[[PlaybackWindow], None]] = None
        self.on_error: Optional[Callable[[MediaFault], None]] = None
        self.on_state_changed: Optional[Callable[[SchedulerState], None]] = None

        self._state = SchedulerState.IDLE
        self._generation = 0
        self._window: Optional[PlaybackWindow] = None
        self._expected_content: Optional[str] = None
        self._play_issued = False
        self._timers: Dict[str, TimerHandle] = {}
        self._unsubscribers: List[Callable[[], None]] = []
        self.last_error: Optional[MediaFault] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def window(self) -> Optional[PlaybackWindow]:
        return self._window

    # ---- public commands ----

    def activate(self, window: PlaybackWindow) -> int:
        """
        Start playing ``window``, abandoning whatever was in progress.

        Returns:
            The generation id of this activation

        Raises:
            MediaFault: If the clock rejects the seek; the scheduler is left
                idle
        """
        self._teardown()
        self._generation += 1
        generation = self._generation

        self._window = window
        self._play_issued = False
        self.last_error = None
        self._expected_content = self.clock.content_identity()
        self._subscribe(generation)

        logger.debug(
            f"Activation {generation}: window [{window.start_index}, {window.end_index}) "
            f"{window.start:.3f}s-{window.end:.3f}s"
        )
        fault = self._begin_seek()
        if fault is not None:
            self._fail(fault, notify=False)
            raise fault
        return generation

    def cancel(self) -> None:
        """Abort the current activation without touching the clock."""
        if self._state is SchedulerState.IDLE and self._window is None:
            return

        self._teardown()
        self._generation += 1
        self._window = None
        self._set_state(SchedulerState.IDLE)
        logger.debug("Activation cancelled")

    # ---- transitions ----

    def _begin_seek(self) -> Optional[MediaFault]:
        window = self._window
        self._set_state(SchedulerState.SEEKING)

        # Armed before the seek: a clock may report completion synchronously
        self._schedule("watchdog", self.watchdog_timeout, self._on_watchdog)
        if not self.clock.emits_seek_events:
            self._schedule("settle", self.seek_settle_delay, self._on_seek_settled)

        try:
            self.clock.seek(window.start)
        except Exception as e:
            fault = MediaFault(f"Seek to {window.start:.3f}s failed: {e}", operation="seek")
            fault.__cause__ = e
            return fault
        return None

    def _start_playing(self) -> None:
        generation = self._generation
        self._play_issued = True

        try:
            self.clock.play()
        except Exception as e:
            fault = MediaFault(f"Play failed: {e}", operation="play")
            fault.__cause__ = e
            self._fail(fault)
            return

        if generation != self._generation:
            return

        if self._is_foreign_content():
            self._interrupt("foreign content at playback start")
            return

        self._set_state(SchedulerState.PLAYING)
        self._arm_stop_commitment()

    def _arm_stop_commitment(self) -> None:
        remaining = self._window.end - self._position()

        if remaining <= self.end_tolerance:
            self._settle()
            return

        self._schedule("stop", remaining + self.stop_safety_margin, self._on_stop_timer)
        self._schedule("poll", self.poll_interval, self._on_poll)
        logger.debug(f"Stop-commitment armed: {remaining:.3f}s remaining")

    def _settle(self, issue_pause: bool = True) -> None:
        window = self._window
        self._teardown()

        if issue_pause:
            try:
                self.clock.pause()
            except Exception as e:
                fault = MediaFault(f"Pause failed: {e}", operation="pause")
                fault.__cause__ = e
                self._fail(fault)
                return

        self._set_state(SchedulerState.SETTLED)
        logger.info(
            f"Window [{window.start_index}, {window.end_index}) "
            f"settled at {self._safe_position():.3f}s"
        )
        if self.on_settled is not None:
            self.on_settled(window)

    def _interrupt(self, reason: str) -> None:
        for name in list(self._timers):
            self._cancel_timer(name)
        self._set_state(SchedulerState.INTERRUPTED)
        logger.info(f"Playback interrupted: {reason}")

    def _try_resume(self) -> None:
        if self._is_foreign_content():
            return

        if not self._play_issued:
            # The interruption hit before playback started; the seek may be lost
            logger.info("Original content is back; seeking again")
            fault = self._begin_seek()
            if fault is not None:
                self._fail(fault)
            return

        if not self.clock.is_playing():
            return

        logger.info("Playback resumed")
        self._set_state(SchedulerState.PLAYING)
        self._arm_stop_commitment()

    def _fail(self, error: MediaFault, notify: bool = True) -> None:
        self._teardown()
        self.last_error = error
        self._set_state(SchedulerState.IDLE)
        logger.error(f"Playback failed: {error}")
        if notify and self.on_error is not None:
            self.on_error(error)

    # ---- clock events ----

    def _on_seek_completed(self, position: Any) -> None:
        if self._state is SchedulerState.SEEKING:
            if position is not None and not self._is_own_seek(position):
                logger.debug(f"Ignoring completion of an earlier seek at {position}")
                return
            self._cancel_timer("watchdog")
            self._cancel_timer("settle")
            logger.debug(f"Seek completed at {self._safe_position():.3f}s")
            self._start_playing()
        elif self._state is SchedulerState.PLAYING:
            # A seek made by the user: the end is now a different distance away
            logger.debug("Seek while playing; re-arming stop-commitment")
            self._arm_stop_commitment()

    def _on_state_changed(self, playing: Any) -> None:
        if self._state is SchedulerState.PLAYING and not playing:
            if self._reached_end():
                # Paused by the user at the end; the clock is already stopped
                self._settle(issue_pause=False)
            else:
                self._interrupt("playback paused externally")
        elif self._state is SchedulerState.INTERRUPTED and playing:
            self._try_resume()

    def _on_content_changed(self, identity: Any) -> None:
        if self._state in (SchedulerState.SEEKING, SchedulerState.PLAYING):
            if identity != self._expected_content:
                self._interrupt(f"content changed to {identity!r}")
        elif self._state is SchedulerState.INTERRUPTED and identity == self._expected_content:
            self._try_resume()

    def _on_clock_error(self, message: Any) -> None:
        if self._state in (
            SchedulerState.SEEKING,
            SchedulerState.PLAYING,
            SchedulerState.INTERRUPTED,
        ):
            self._fail(MediaFault(f"Media error: {message}"))

    # ---- timers ----

    def _on_seek_settled(self) -> None:
        self._on_seek_completed(None)

    def _on_watchdog(self) -> None:
        if self._state is SchedulerState.SEEKING:
            self._fail(SchedulerTimeout(self.watchdog_timeout, operation="seek"))

    def _on_stop_timer(self) -> None:
        if self._state is not SchedulerState.PLAYING:
            return
        if self._reached_end():
            self._settle()
        else:
            logger.debug(f"Stop timer fired early at {self._position():.3f}s; re-arming")
            self._arm_stop_commitment()

    def _on_poll(self) -> None:
        if self._state is not SchedulerState.PLAYING:
            return
        if self._reached_end():
            self._settle()
        else:
            self._schedule("poll", self.poll_interval, self._on_poll)

    # ---- helpers ----

    def _position(self) -> float:
        try:
            return float(self.clock.current_time())
        except Exception as e:
            raise MediaFault(f"Could not read playback position: {e}", operation="position") from e

    def _safe_position(self) -> float:
        try:
            return float(self.clock.current_time())
        except Exception:
            return float("nan")

    def _reached_end(self) -> bool:
        return self._position() >= self._window.end - self.end_tolerance

    def _is_own_seek(self, position: Any) -> bool:
        return abs(float(position) - self._window.start) <= self.seek_tolerance

    def _is_foreign_content(self) -> bool:
        return self.clock.content_identity() != self._expected_content

    def _set_state(self, state: SchedulerState) -> None:
        if state is self._state:
            return
        logger.debug(f"Scheduler {self._state.value} -> {state.value}")
        self._state = state
        if self.on_state_changed is not None:
            self.on_state_changed(state)

    def _subscribe(self, generation: int) -> None:
        handlers = {
            MediaClockEvent.SEEK_COMPLETED: self._on_seek_completed,
            MediaClockEvent.STATE_CHANGED: self._on_state_changed,
            MediaClockEvent.CONTENT_CHANGED: self._on_content_changed,
            MediaClockEvent.ERROR: self._on_clock_error,
        }
        for event, handler in handlers.items():
            self._unsubscribers.append(
                self.clock.subscribe(event, functools.partial(self._dispatch, generation, handler))
            )

    def _dispatch(self, generation: int, handler: Callable[[Any], None], payload: Any) -> None:
        if generation != self._generation:
            logger.debug(f"Ignoring event for stale activation {generation}")
            return
        try:
            handler(payload)
        except MediaFault as e:
            self._fail(e)

    def _schedule(self, name: str, delay: float, callback: Callable[[], None]) -> None:
        self._cancel_timer(name)
        self._timers[name] = self.timers.call_later(
            delay, self._fire, self._generation, name, callback
        )

    def _fire(self, generation: int, name: str, callback: Callable[[], None]) -> None:
        if generation != self._generation:
            return
        self._timers.pop(name, None)
        try:
            callback()
        except MediaFault as e:
            self._fail(e)

    def _cancel_timer(self, name: str) -> None:
        handle = self._timers.pop(name, None)
        if handle is not None:
            handle.cancel()

    def _teardown(self) -> None:
        for name in list(self._timers):
            self._cancel_timer(name)
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()
