# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for the Qt Multimedia media clock and timer source.

The media clock is tested against a mocked QMediaPlayer whose signal
connections are captured and invoked directly.
"""

from unittest.mock import MagicMock

import pytest
from PySide6.QtCore import QEventLoop, QTimer, QUrl
from PySide6.QtMultimedia import QMediaPlayer

from core.playback.media_clock import MediaClockEvent
from core.playback.scheduler import PlaybackScheduler, SchedulerState
from engines.media.qt_player import QtMediaClock, QtTimerSource, to_media_url

pytestmark = pytest.mark.ui

SOURCE = QUrl("file:///media/lesson.mp4")


@pytest.fixture
def player():
    player = MagicMock()
    player.source.return_value = SOURCE
    player.duration.return_value = 120_000
    player.position.return_value = 0
    player.playbackState.return_value = QMediaPlayer.PlaybackState.PausedState
    return player


def slot(signal):
    """Return the callable connected to a mocked signal."""
    return signal.connect.call_args[0][0]


def record(clock, event):
    events = []
    clock.subscribe(event, events.append)
    return events


class TestQtMediaClock:
    """Test suite for QtMediaClock."""

    def test_seek_sets_position_in_milliseconds(self, player):
        clock = QtMediaClock(player)

        clock.seek(2.5)

        player.setPosition.assert_called_once_with(2500)

    def test_seek_completes_on_position_near_target(self, player):
        clock = QtMediaClock(player)
        completed = record(clock, MediaClockEvent.SEEK_COMPLETED)

        clock.seek(2.0)
        slot(player.positionChanged)(500)
        assert completed == []

        slot(player.positionChanged)(2040)
        slot(player.positionChanged)(2100)

        assert completed == [pytest.approx(2.04)]

    def test_seek_to_current_position_completes_immediately(self, player):
        player.position.return_value = 3000
        clock = QtMediaClock(player)
        completed = record(clock, MediaClockEvent.SEEK_COMPLETED)

        clock.seek(3.0)

        assert completed == [pytest.approx(3.0)]

    def test_position_changes_without_seek_ignored(self, player):
        clock = QtMediaClock(player)
        completed = record(clock, MediaClockEvent.SEEK_COMPLETED)

        slot(player.positionChanged)(1000)

        assert completed == []

    def test_playback_state_mapped(self, player):
        clock = QtMediaClock(player)
        states = record(clock, MediaClockEvent.STATE_CHANGED)

        slot(player.playbackStateChanged)(QMediaPlayer.PlaybackState.PlayingState)
        slot(player.playbackStateChanged)(QMediaPlayer.PlaybackState.PausedState)

        assert states == [True, False]

    def test_error_mapped(self, player):
        clock = QtMediaClock(player)
        errors = record(clock, MediaClockEvent.ERROR)

        slot(player.errorOccurred)(QMediaPlayer.Error.NoError, "")
        slot(player.errorOccurred)(QMediaPlayer.Error.NetworkError, "connection reset")

        assert errors == ["connection reset"]

    def test_commands_forwarded(self, player):
        clock = QtMediaClock(player)
        player.position.return_value = 1500
        player.playbackState.return_value = QMediaPlayer.PlaybackState.PlayingState

        clock.play()
        clock.pause()

        player.play.assert_called_once_with()
        player.pause.assert_called_once_with()
        assert clock.current_time() == pytest.approx(1.5)
        assert clock.is_playing()

    def test_identity_is_source_url(self, player):
        clock = QtMediaClock(player)

        assert clock.content_identity() == SOURCE.toString()

    def test_no_source_has_no_identity(self, player):
        player.source.return_value = QUrl()

        assert QtMediaClock(player).content_identity() is None

    def test_short_media_is_ad_when_threshold_set(self, player):
        player.duration.return_value = 15_000
        clock = QtMediaClock(player, ad_duration_threshold=30.0)

        assert clock.content_identity() == "ad:" + SOURCE.toString()

    def test_short_media_not_ad_by_default(self, player):
        player.duration.return_value = 15_000

        assert QtMediaClock(player).content_identity() == SOURCE.toString()

    def test_unknown_duration_is_not_ad(self, player):
        player.duration.return_value = 0

        clock = QtMediaClock(player, ad_duration_threshold=30.0)

        assert clock.content_identity() == SOURCE.toString()

    def test_content_change_emitted_when_ad_ends(self, player):
        player.duration.return_value = 15_000
        clock = QtMediaClock(player, ad_duration_threshold=30.0)
        changes = record(clock, MediaClockEvent.CONTENT_CHANGED)

        player.duration.return_value = 120_000
        slot(player.durationChanged)(120_000)
        slot(player.durationChanged)(120_000)

        assert changes == [SOURCE.toString()]

    def test_load_local_path(self, player, tmp_path):
        clock = QtMediaClock(player)
        media = tmp_path / "clip.mp4"

        clock.load(media)

        url = player.setSource.call_args[0][0]
        assert url.isLocalFile()
        assert url.toLocalFile() == str(media.resolve())

    def test_to_media_url_keeps_remote_urls(self):
        assert to_media_url("https://example.com/a.mp4").toString() == "https://example.com/a.mp4"

    def test_negative_ad_threshold_rejected(self, player):
        with pytest.raises(ValueError):
            QtMediaClock(player, ad_duration_threshold=-1)

    def test_drives_scheduler(self, player, timers, window_factory):
        clock = QtMediaClock(player)
        scheduler = PlaybackScheduler(clock, timers)

        scheduler.activate(window_factory(2.0, 5.0))
        player.setPosition.assert_called_once_with(2000)

        player.position.return_value = 2000
        slot(player.positionChanged)(2000)
        player.play.assert_called_once_with()
        assert scheduler.state is SchedulerState.PLAYING

        player.position.return_value = 5000
        timers.advance(0.1)

        player.pause.assert_called_once_with()
        assert scheduler.state is SchedulerState.SETTLED


def _spin(milliseconds):
    loop = QEventLoop()
    QTimer.singleShot(milliseconds, loop.quit)
    loop.exec()


class TestQtTimerSource:
    """Test suite for QtTimerSource."""

    def test_call_later_fires_once(self, qapp):
        source = QtTimerSource()
        fired = []

        source.call_later(0.01, fired.append, "tick")
        _spin(100)

        assert fired == ["tick"]

    def test_cancel_prevents_callback(self, qapp):
        source = QtTimerSource()
        fired = []

        handle = source.call_later(0.02, fired.append, "tick")
        handle.cancel()
        handle.cancel()
        _spin(100)

        assert fired == []

    def test_time_is_monotonic(self, qapp):
        source = QtTimerSource()

        first = source.time()
        _spin(20)

        assert source.time() >= first + 0.01
