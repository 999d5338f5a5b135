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
Qt Multimedia media clock.

Adapts a ``QMediaPlayer`` to the media clock capability and ``QTimer`` to
the timer source, so the playback scheduler runs on the Qt event loop.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Tuple, Union

from PySide6.QtCore import QElapsedTimer, QObject, Qt, QTimer, QUrl
from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer

from config.constants import (
    AD_IDENTITY_PREFIX,
    DEFAULT_AD_DURATION_THRESHOLD,
    MILLISECONDS_PER_SECOND,
    QT_SEEK_TOLERANCE_MS,
)
from core.playback.media_clock import BaseMediaClock, MediaClockEvent
from core.playback.timers import TimerHandle, TimerSource

logger = logging.getLogger("shadowreel.media.qt_player")


class QtTimerHandle(TimerHandle):
    """A single-shot ``QTimer`` that runs its callback at most once."""

    def __init__(self, timer: QTimer, callback: Callable[..., Any], args: Tuple[Any, ...]):
        self._timer = timer
        self._callback = callback
        self._args = args
        self._active = True
        timer.timeout.connect(self._fire)

    @property
    def active(self) -> bool:
        return self._active

    def _fire(self) -> None:
        if not self._active:
            return
        self._release()
        self._callback(*self._args)

    def cancel(self) -> None:
        if self._active:
            self._timer.stop()
            self._release()

    def _release(self) -> None:
        self._active = False
        self._timer.deleteLater()


class QtTimerSource(TimerSource):
    """Timer source backed by the Qt event loop."""

    def __init__(self, parent: Optional[QObject] = None):
        self._parent = parent
        self._clock = QElapsedTimer()
        self._clock.start()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setTimerType(Qt.TimerType.PreciseTimer)
        handle = QtTimerHandle(timer, callback, args)
        timer.start(max(0, int(round(delay * MILLISECONDS_PER_SECOND))))
        return handle

    def time(self) -> float:
        return self._clock.elapsed() / MILLISECONDS_PER_SECOND


def to_media_url(source: Union[str, Path, QUrl]) -> QUrl:
    """Return ``source`` as a URL; plain paths become local file URLs."""
    if isinstance(source, QUrl):
        return source
    text = str(source)
    if "://" in text:
        return QUrl(text)
    return QUrl.fromLocalFile(str(Path(text).expanduser().resolve()))


class QtMediaClock(BaseMediaClock):
    """
    Media clock over ``QMediaPlayer``.

    Seek completion is the first ``positionChanged`` within
    ``seek_tolerance_ms`` of the requested position. Content identity is the
    source URL; with a positive ``ad_duration_threshold``, media shorter than
    the threshold is reported as an advertisement (``"ad:"`` prefix).
    """

    def __init__(
        self,
        player: Optional[QMediaPlayer] = None,
        ad_duration_threshold: float = DEFAULT_AD_DURATION_THRESHOLD,
        seek_tolerance_ms: int = QT_SEEK_TOLERANCE_MS,
        parent: Optional[QObject] = None,
    ):
        """
        Args:
            player: Player to adapt; a new one with an audio output is
                created when omitted
            ad_duration_threshold: Seconds; 0 disables ad detection
            seek_tolerance_ms: Distance from the target at which a seek
                counts as completed
            parent: Parent QObject for a created player
        """
        super().__init__()
        if ad_duration_threshold < 0:
            raise ValueError("ad_duration_threshold must be >= 0")

        self.audio_output: Optional[QAudioOutput] = None
        if player is None:
            player = QMediaPlayer(parent)
            self.audio_output = QAudioOutput(parent)
            player.setAudioOutput(self.audio_output)

        self.player = player
        self.ad_duration_threshold = ad_duration_threshold
        self.seek_tolerance_ms = seek_tolerance_ms
        self._seek_target_ms: Optional[int] = None
        self._identity = self._compute_identity()

        self.player.positionChanged.connect(self._on_position_changed)
        self.player.playbackStateChanged.connect(self._on_playback_state_changed)
        self.player.errorOccurred.connect(self._on_error)
        self.player.sourceChanged.connect(self._on_content_signal)
        self.player.durationChanged.connect(self._on_content_signal)

    def load(self, source: Union[str, Path, QUrl]) -> None:
        """Set the player's media source."""
        url = to_media_url(source)
        self._seek_target_ms = None
        self.player.setSource(url)
        logger.info(f"Media source set: {url.toString()}")

    # ---- MediaClock ----

    def seek(self, seconds: float) -> None:
        target = max(0, int(round(seconds * MILLISECONDS_PER_SECOND)))
        self._seek_target_ms = target
        self.player.setPosition(target)

        # No positionChanged follows when the player is already there
        if self._seek_target_ms is not None and self._near_target(self.player.position()):
            self._complete_seek(self.player.position())

    def play(self) -> None:
        self.player.play()

    def pause(self) -> None:
        self.player.pause()

    def current_time(self) -> float:
        return self.player.position() / MILLISECONDS_PER_SECOND

    def is_playing(self) -> bool:
        return self.player.playbackState() == QMediaPlayer.PlaybackState.PlayingState

    def content_identity(self) -> Optional[str]:
        return self._identity

    # ---- player signals ----

    def _near_target(self, position_ms: int) -> bool:
        return abs(position_ms - self._seek_target_ms) <= self.seek_tolerance_ms

    def _complete_seek(self, position_ms: int) -> None:
        self._seek_target_ms = None
        self._emit(MediaClockEvent.SEEK_COMPLETED, position_ms / MILLISECONDS_PER_SECOND)

    def _on_position_changed(self, position_ms: int) -> None:
        if self._seek_target_ms is not None and self._near_target(position_ms):
            self._complete_seek(position_ms)

    def _on_playback_state_changed(self, state: QMediaPlayer.PlaybackState) -> None:
        self._emit(
            MediaClockEvent.STATE_CHANGED,
            state == QMediaPlayer.PlaybackState.PlayingState,
        )

    def _on_error(self, error: QMediaPlayer.Error, error_string: str = "") -> None:
        if error == QMediaPlayer.Error.NoError:
            return
        logger.error(f"Media player error {error}: {error_string}")
        self._emit(MediaClockEvent.ERROR, error_string or str(error))

    def _on_content_signal(self, *args: Any) -> None:
        identity = self._compute_identity()
        if identity != self._identity:
            logger.info(f"Content changed: {self._identity!r} -> {identity!r}")
            self._identity = identity
            self._emit(MediaClockEvent.CONTENT_CHANGED, identity)

    def _compute_identity(self) -> Optional[str]:
        source = self.player.source()
        if source is None or source.isEmpty():
            return None

        identity = source.toString()
        duration = self.player.duration() / MILLISECONDS_PER_SECOND
        if 0 < duration < self.ad_duration_threshold:
            return AD_IDENTITY_PREFIX + identity
        return identity
