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
Shadowing session.

Ties a timeline, a navigator and a playback scheduler to one media clock.
Every navigation command moves the cursor and plays the resulting window;
the scheduler pauses the clock when the window ends so the learner can
repeat it aloud.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from config.app_config import get_app_dir
from config.constants import (
    DEFAULT_END_TOLERANCE,
    DEFAULT_GROUP_SIZE,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SEEK_SETTLE_DELAY,
    DEFAULT_STATS_FILE_NAME,
    DEFAULT_STOP_SAFETY_MARGIN,
    DEFAULT_WATCHDOG_TIMEOUT,
    TRANSLATION_UNAVAILABLE,
)
from core.playback.media_clock import MediaClock
from core.playback.navigator import SegmentNavigator
from core.playback.scheduler import PlaybackScheduler
from core.playback.timers import TimerSource
from core.stats.counter import StatsCounter
from core.subtitles.models import PlaybackWindow, Timeline
from core.subtitles.parser import SubtitleParser
from engines.translation.service import TranslationService
from utils.error_handler import EmptyTimeline, MediaFault

logger = logging.getLogger("shadowreel.playback.session")


class ShadowingSession:
    """
    One learner's practice session over one media clock.

    Callbacks:
        on_window_started(window): a window was activated
        on_window_completed(window): a window played to its end
        on_error(error): the scheduler reported a MediaFault
    """

    def __init__(
        self,
        clock: MediaClock,
        timers: TimerSource,
        *,
        parser: Optional[SubtitleParser] = None,
        group_size: int = DEFAULT_GROUP_SIZE,
        stats: Optional[StatsCounter] = None,
        translator: Optional[TranslationService] = None,
        seek_settle_delay: float = DEFAULT_SEEK_SETTLE_DELAY,
        stop_safety_margin: float = DEFAULT_STOP_SAFETY_MARGIN,
        end_tolerance: float = DEFAULT_END_TOLERANCE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        watchdog_timeout: float = DEFAULT_WATCHDOG_TIMEOUT,
    ):
        self.clock = clock
        self.parser = parser or SubtitleParser()
        self.stats = stats
        self.translator = translator
        self.navigator = SegmentNavigator(group_size=group_size)
        self.scheduler = PlaybackScheduler(
            clock,
            timers,
            seek_settle_delay=seek_settle_delay,
            stop_safety_margin=stop_safety_margin,
            end_tolerance=end_tolerance,
            poll_interval=poll_interval,
            watchdog_timeout=watchdog_timeout,
        )
        self.scheduler.on_settled = self._on_window_settled
        self.scheduler.on_error = self._on_scheduler_error

        self.on_window_started: Optional[Callable[[PlaybackWindow], None]] = None
        self.on_window_completed: Optional[Callable[[PlaybackWindow], None]] = None
        self.on_error: Optional[Callable[[MediaFault], None]] = None

    @classmethod
    def from_config(
        cls,
        config,
        clock: MediaClock,
        timers: TimerSource,
        stats: Optional[StatsCounter] = None,
        translator: Optional[TranslationService] = None,
    ) -> "ShadowingSession":
        """
        Build a session from a ``ConfigManager``.

        When ``stats`` is not given and ``stats.enabled`` is set, a counter
        in the app dir is used; when ``translator`` is not given one is
        built from the ``translation`` section.
        """
        if stats is None and config.get("stats.enabled", True):
            file_name = config.get("stats.file_name", DEFAULT_STATS_FILE_NAME)
            stats = StatsCounter(get_app_dir() / file_name)
        if translator is None:
            translator = TranslationService.from_config(config.get("translation", {}) or {})

        return cls(
            clock,
            timers,
            parser=SubtitleParser(
                strip_annotations=config.get("subtitles.strip_annotations", True),
                encoding=config.get("subtitles.encoding", "utf-8"),
            ),
            group_size=config.get("playback.group_size", DEFAULT_GROUP_SIZE),
            stats=stats,
            translator=translator,
            seek_settle_delay=config.get("playback.seek_settle_delay", DEFAULT_SEEK_SETTLE_DELAY),
            stop_safety_margin=config.get(
                "playback.stop_safety_margin", DEFAULT_STOP_SAFETY_MARGIN
            ),
            end_tolerance=config.get("playback.end_tolerance", DEFAULT_END_TOLERANCE),
            poll_interval=config.get("playback.poll_interval", DEFAULT_POLL_INTERVAL),
            watchdog_timeout=config.get("playback.watchdog_timeout", DEFAULT_WATCHDOG_TIMEOUT),
        )

    @property
    def timeline(self) -> Timeline:
        return self.navigator.segments

    @property
    def current_window(self) -> Optional[PlaybackWindow]:
        return self.navigator.current_window()

    # ---- loading ----

    def load_timeline(self, document: str) -> int:
        """
        Parse ``document`` and make it the session's timeline.

        Returns:
            Number of segments loaded

        Raises:
            EmptyTimeline: If the document has no usable subtitles; the
                previous timeline stays loaded
        """
        return self._load(self.parser.parse_document(document))

    def load_file(self, path: Union[str, Path]) -> int:
        """Load a subtitle file; see ``load_timeline``."""
        return self._load(self.parser.load_file(path))

    def _load(self, timeline: Timeline) -> int:
        if not timeline:
            raise EmptyTimeline()

        self.scheduler.cancel()
        self.navigator.load(timeline)
        self._record("timeline_loaded")
        logger.info(f"Timeline loaded: {len(timeline)} segments")
        return len(timeline)

    # ---- navigator controls ----

    def start(self) -> PlaybackWindow:
        """Play the window at the cursor."""
        return self._play(self._require_window())

    def next(self) -> PlaybackWindow:
        """Advance by one window and play it."""
        self._require_window()
        self.navigator.advance(self.navigator.group_size)
        self._record("next")
        return self._play(self.navigator.current_window())

    def previous(self) -> PlaybackWindow:
        """Go back by one window and play it."""
        self._require_window()
        self.navigator.advance(-self.navigator.group_size)
        self._record("previous")
        return self._play(self.navigator.current_window())

    def repeat(self) -> PlaybackWindow:
        """Play the current window again from its start."""
        window = self._require_window()
        self._record("repeat")
        return self._play(window)

    def set_group_size(self, group_size: int) -> None:
        """
        Change the window size; takes effect at the next activation.

        Raises:
            ValueError: If ``group_size`` is not an integer >= 1
        """
        self.navigator.set_group_size(group_size)
        logger.debug(f"Group size set to {group_size}")

    def is_at_end(self) -> bool:
        return self.navigator.is_at_end()

    def toggle_playback(self) -> bool:
        """
        Pause or resume the clock as the learner would.

        The scheduler treats a pause issued here as an external interruption
        and re-arms when playback resumes.

        Returns:
            True when playback was resumed

        Raises:
            MediaFault: If the clock rejects the command
        """
        playing = self.clock.is_playing()
        try:
            if playing:
                self.clock.pause()
            else:
                self.clock.play()
        except Exception as e:
            operation = "pause" if playing else "play"
            raise MediaFault(f"Could not {operation}: {e}", operation=operation) from e
        return not playing

    def stop(self) -> None:
        """Abandon the current window and pause the clock."""
        self.scheduler.cancel()
        try:
            if self.clock.is_playing():
                self.clock.pause()
        except Exception as e:
            raise MediaFault(f"Could not pause: {e}", operation="pause") from e
        logger.info("Session stopped")

    async def translate_current(self, target_lang: Optional[str] = None) -> str:
        """
        Translate the current window's text.

        Returns:
            The translation, or the unavailable placeholder
        """
        window = self._require_window()
        if self.translator is None:
            return TRANSLATION_UNAVAILABLE
        return await self.translator.translate(window.text, target_lang)

    # ---- internals ----

    def _require_window(self) -> PlaybackWindow:
        window = self.navigator.current_window()
        if window is None:
            raise EmptyTimeline("No subtitles loaded")
        return window

    def _play(self, window: PlaybackWindow) -> PlaybackWindow:
        self.scheduler.activate(window)
        if self.on_window_started is not None:
            self.on_window_started(window)
        return window

    def _record(self, event_type: str) -> None:
        if self.stats is None:
            return
        try:
            self.stats.increment(event_type)
        except OSError as e:
            logger.warning(f"Could not record {event_type}: {e}")

    def _on_window_settled(self, window: PlaybackWindow) -> None:
        self._record("window_completed")
        if self.on_window_completed is not None:
            self.on_window_completed(window)

    def _on_scheduler_error(self, error: MediaFault) -> None:
        if self.on_error is not None:
            self.on_error(error)
