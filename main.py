#!/usr/bin/env python3
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
ShadowReel - subtitle-driven shadowing practice

Main entry point for the command-line application.
"""

import argparse
import logging
import os
import sys
import traceback
from typing import List, Optional

from config.__version__ import get_display_version
from config.app_config import ConfigManager
from config.constants import APP_ENV_VARIABLE, APP_NAME, LOG_SEPARATOR_LENGTH
from core.playback.navigator import SegmentNavigator
from core.subtitles.models import PlaybackWindow
from core.subtitles.parser import SubtitleParser
from core.subtitles.timestamp import format_timestamp
from utils.error_handler import EmptyTimeline, ErrorHandler, MediaFault, ShadowReelError
from utils.logger import setup_logging

# Global logger for exception hook
_logger: Optional[logging.Logger] = None


def exception_hook(exctype, value, tb):
    """
    Global exception handler for uncaught exceptions.

    Logs the error and prints a user-facing summary.
    """
    error_msg = "".join(traceback.format_exception(exctype, value, tb))

    if _logger:
        _logger.critical(
            f"Uncaught exception: {exctype.__name__}: {value}",
            exc_info=(exctype, value, tb),
        )
    else:
        print(f"CRITICAL ERROR: {error_msg}", file=sys.stderr)

    if isinstance(value, Exception):
        error_info = ErrorHandler.handle_error(value)
        print(ErrorHandler.format_user_message(error_info), file=sys.stderr)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shadowreel",
        description="Practice listening and speaking one subtitle segment at a time.",
    )
    parser.add_argument(
        "--version", action="version", version=f"{APP_NAME} {get_display_version()}"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser("inspect", help="Print the playback windows of a file")
    inspect_parser.add_argument("subtitles", help="Subtitle file (SRT or WebVTT)")
    inspect_parser.add_argument("--group-size", type=int, help="Segments per window")

    play_parser = subparsers.add_parser("play", help="Play media window by window")
    play_parser.add_argument("media", help="Media file path or URL")
    play_parser.add_argument("subtitles", help="Subtitle file (SRT or WebVTT)")
    play_parser.add_argument("--group-size", type=int, help="Segments per window")
    play_parser.add_argument(
        "--gap", type=float, help="Seconds to wait before playing the next window"
    )
    play_parser.add_argument("--start", type=int, default=0, help="Index of the first segment")
    play_parser.add_argument(
        "--translate", metavar="LANG", help="Print a translation of each window"
    )

    return parser


def format_window(window: PlaybackWindow) -> str:
    """Format a window as ``[first-last] start --> end  text``."""
    last_index = window.end_index - 1
    if last_index == window.start_index:
        span = f"[{window.start_index}]"
    else:
        span = f"[{window.start_index}-{last_index}]"
    return (
        f"{span} {format_timestamp(window.start)} --> {format_timestamp(window.end)}  {window.text}"
    )


def _make_parser(config: ConfigManager) -> SubtitleParser:
    return SubtitleParser(
        strip_annotations=config.get("subtitles.strip_annotations", True),
        encoding=config.get("subtitles.encoding", "utf-8"),
    )


def run_inspect(args: argparse.Namespace, config: ConfigManager) -> int:
    """Print every window of a subtitle file."""
    timeline = _make_parser(config).load_file(args.subtitles)
    if not timeline:
        raise EmptyTimeline()

    group_size = args.group_size
    if group_size is None:
        group_size = config.get("playback.group_size")
    navigator = SegmentNavigator(timeline, group_size=group_size)

    while True:
        print(format_window(navigator.current_window()))
        if navigator.is_at_end():
            break
        navigator.advance(navigator.group_size)

    return 0


def run_play(args: argparse.Namespace, config: ConfigManager) -> int:
    """Play media window by window in a Qt video window."""
    from PySide6.QtCore import QTimer
    from PySide6.QtGui import QKeySequence, QShortcut
    from PySide6.QtMultimedia import QMediaPlayer
    from PySide6.QtMultimediaWidgets import QVideoWidget
    from PySide6.QtWidgets import QApplication

    from core.playback.session import ShadowingSession
    from engines.media.qt_player import QtMediaClock, QtTimerSource
    from utils.qt_async import AsyncRunner

    logger = logging.getLogger("shadowreel.main")

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName(APP_NAME)

    video = QVideoWidget()
    video.setWindowTitle(f"{APP_NAME} - {os.path.basename(args.media)}")
    video.resize(960, 540)

    clock = QtMediaClock(ad_duration_threshold=config.get("media.ad_duration_threshold", 0.0))
    clock.player.setVideoOutput(video)
    session = ShadowingSession.from_config(config, clock, QtTimerSource())

    if args.group_size is not None:
        session.set_group_size(args.group_size)
    session.load_file(args.subtitles)
    session.navigator.advance(args.start)

    gap = args.gap if args.gap is not None else config.get("playback.auto_advance_gap", 0.0)
    if gap < 0:
        raise ValueError("--gap must be >= 0")

    runner = AsyncRunner() if args.translate else None
    exit_code = 0

    advance_timer = QTimer()
    advance_timer.setSingleShot(True)

    def report(error: Exception) -> None:
        error_info = ErrorHandler.handle_error(error, {"command": "play"})
        print(ErrorHandler.format_user_message(error_info), file=sys.stderr)

    def navigate(command) -> None:
        try:
            command()
        except MediaFault as e:
            report(e)

    def on_window_started(window: PlaybackWindow) -> None:
        advance_timer.stop()
        print(format_window(window))
        if runner is not None:
            runner.run_async(
                session.translate_current(args.translate),
                on_success=lambda text: print(f"    {text}"),
                on_error=report,
            )

    def on_window_completed(window: PlaybackWindow) -> None:
        if session.is_at_end():
            logger.info("Last window completed")
            QTimer.singleShot(0, app.quit)
            return
        advance_timer.start(int(gap * 1000))

    def on_error(error: MediaFault) -> None:
        nonlocal exit_code
        report(error)
        exit_code = 1
        app.quit()

    session.on_window_started = on_window_started
    session.on_window_completed = on_window_completed
    session.on_error = on_error
    advance_timer.timeout.connect(lambda: navigate(session.next))

    started = False

    def on_media_status_changed(status) -> None:
        nonlocal started
        if started or status != QMediaPlayer.MediaStatus.LoadedMedia:
            return
        started = True
        navigate(session.start)

    clock.player.mediaStatusChanged.connect(on_media_status_changed)

    shortcuts = []
    for key, command in (
        ("Space", session.toggle_playback),
        ("N", session.next),
        ("P", session.previous),
        ("R", session.repeat),
    ):
        shortcut = QShortcut(QKeySequence(key), video)
        shortcut.activated.connect(lambda command=command: navigate(command))
        shortcuts.append(shortcut)

    clock.load(args.media)
    video.show()

    logger.info("Entering Qt event loop")
    app_exit = app.exec()

    session.scheduler.cancel()
    if runner is not None:
        if session.translator is not None:
            runner.run_async(session.translator.aclose()).result(timeout=2.0)
        runner.cleanup()

    return exit_code or app_exit


def _resolve_log_level(args: argparse.Namespace, config: ConfigManager) -> Optional[str]:
    if args.log_level:
        return args.log_level
    if os.environ.get(APP_ENV_VARIABLE):
        # setup_logging derives the level from the environment
        return None
    return config.get("logging.level", "INFO")


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point."""
    global _logger

    args = build_arg_parser().parse_args(argv)

    try:
        config = ConfigManager()
    except (ValueError, TypeError, OSError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    logger = setup_logging(
        level=_resolve_log_level(args, config),
        console_output=config.get("logging.console_output", True),
    )
    _logger = logger

    logger.info("=" * LOG_SEPARATOR_LENGTH)
    logger.info(f"{APP_NAME} {get_display_version()} starting: {args.command}")
    logger.info("=" * LOG_SEPARATOR_LENGTH)

    sys.excepthook = exception_hook

    commands = {"inspect": run_inspect, "play": run_play}
    try:
        return commands[args.command](args, config)
    except (ShadowReelError, OSError, ValueError) as e:
        error_info = ErrorHandler.handle_error(e, {"command": args.command})
        print(ErrorHandler.format_user_message(error_info), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
