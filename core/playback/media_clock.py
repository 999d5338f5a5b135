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
Media clock capability.

A media clock is any seekable, playable media backend the scheduler can
drive: a local player, an embedded platform player, or a test double.
Commands are fire-and-forget; their outcome arrives later as events on the
backend's event loop.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("shadowreel.playback.media_clock")

Listener = Callable[[Any], None]


class MediaClockEvent(Enum):
    """Events a media clock reports, with the payload each one carries."""

    SEEK_COMPLETED = "seek_completed"  # position in seconds
    STATE_CHANGED = "state_changed"  # True when playing
    CONTENT_CHANGED = "content_changed"  # new content identity
    ERROR = "error"  # error message


class MediaClock(ABC):
    """Abstract media clock."""

    # Backends that cannot report seek completion set this to False and the
    # scheduler falls back to a settling delay.
    emits_seek_events: bool = True

    @abstractmethod
    def seek(self, seconds: float) -> None:
        """Request a seek; completion is reported by SEEK_COMPLETED."""
        pass

    @abstractmethod
    def play(self) -> None:
        pass

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def current_time(self) -> float:
        """Return the playback position in seconds."""
        pass

    @abstractmethod
    def is_playing(self) -> bool:
        pass

    @abstractmethod
    def content_identity(self) -> Optional[str]:
        """
        Identify the content currently playing.

        The value changes when unrelated content (an advertisement, another
        stream) takes over the player.
        """
        pass

    @abstractmethod
    def subscribe(self, event: MediaClockEvent, callback: Listener) -> Callable[[], None]:
        """
        Register ``callback`` for ``event``.

        Returns:
            A callable that removes the subscription
        """
        pass


class BaseMediaClock(MediaClock):
    """Media clock with a listener registry; backends call ``_emit``."""

    def __init__(self):
        self._listeners: Dict[MediaClockEvent, List[Listener]] = {
            event: [] for event in MediaClockEvent
        }

    def subscribe(self, event: MediaClockEvent, callback: Listener) -> Callable[[], None]:
        self._listeners[event].append(callback)

        def unsubscribe() -> None:
            try:
                self._listeners[event].remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def listener_count(self, event: Optional[MediaClockEvent] = None) -> int:
        """Return the number of subscriptions, for one event or in total."""
        if event is not None:
            return len(self._listeners[event])
        return sum(len(listeners) for listeners in self._listeners.values())

    def _emit(self, event: MediaClockEvent, payload: Any = None) -> None:
        # Copy: listeners may unsubscribe while being notified
        for callback in list(self._listeners[event]):
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"Listener for {event.value} failed: {e}", exc_info=True)
