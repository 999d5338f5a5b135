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
Playback module

Navigates a timeline window by window and drives a media clock through
each window.
"""

from core.playback.media_clock import BaseMediaClock, MediaClock, MediaClockEvent
from core.playback.navigator import SegmentNavigator
from core.playback.scheduler import PlaybackScheduler, SchedulerState
from core.playback.session import ShadowingSession
from core.playback.timers import AsyncioTimerSource, TimerHandle, TimerSource

__all__ = [
    "AsyncioTimerSource",
    "BaseMediaClock",
    "MediaClock",
    "MediaClockEvent",
    "PlaybackScheduler",
    "SchedulerState",
    "SegmentNavigator",
    "ShadowingSession",
    "TimerHandle",
    "TimerSource",
]
