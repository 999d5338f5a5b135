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
"""Segment navigator: cursor and group size over a timeline."""

import logging
from typing import Iterable, List, Optional

from config.constants import DEFAULT_GROUP_SIZE
from core.subtitles.models import PlaybackWindow, Segment

logger = logging.getLogger("shadowreel.playback.navigator")


class SegmentNavigator:
    """
    Holds the timeline, the current cursor and the group size.

    Out-of-range cursors saturate to the nearest valid index instead of
    failing: moving past the last segment re-shows the last window, moving
    before the first re-shows the first.
    """

    def __init__(self, segments: Iterable[Segment] = (), group_size: int = DEFAULT_GROUP_SIZE):
        self._segments: List[Segment] = list(segments)
        self._current_index = 0
        self._group_size = DEFAULT_GROUP_SIZE
        self.set_group_size(group_size)

    @property
    def segments(self) -> List[Segment]:
        return list(self._segments)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def group_size(self) -> int:
        return self._group_size

    def __len__(self) -> int:
        return len(self._segments)

    def load(self, segments: Iterable[Segment]) -> None:
        """Replace the timeline and rewind the cursor."""
        self._segments = list(segments)
        self._current_index = 0
        logger.debug(f"Navigator loaded {len(self._segments)} segments")

    def _clamp(self, index: int) -> int:
        if not self._segments:
            return 0
        return max(0, min(index, len(self._segments) - 1))

    def current_window(self) -> Optional[PlaybackWindow]:
        """
        Return the window at the cursor.

        Returns:
            The window ``[index, index + group_size)`` cut at the end of the
            timeline, or None when the timeline is empty
        """
        if not self._segments:
            return None

        self._current_index = self._clamp(self._current_index)
        start = self._current_index
        end = min(start + self._group_size, len(self._segments))
        return PlaybackWindow(
            start_index=start,
            end_index=end,
            segments=tuple(self._segments[start:end]),
        )

    def advance(self, delta: int) -> None:
        """Move the cursor by ``delta`` segments, saturating at both ends."""
        target = self._current_index + delta
        self._current_index = self._clamp(target)
        if target != self._current_index:
            logger.debug(f"Cursor {target} clamped to {self._current_index}")

    def set_group_size(self, group_size: int) -> None:
        """
        Change how many consecutive segments form one window.

        Raises:
            ValueError: If ``group_size`` is not an integer >= 1
        """
        if isinstance(group_size, bool) or not isinstance(group_size, int) or group_size < 1:
            raise ValueError(f"group_size must be an integer >= 1, got {group_size!r}")
        self._group_size = group_size

    def is_at_end(self) -> bool:
        """Return True when the current window reaches the last segment."""
        if not self._segments:
            return True
        return self._clamp(self._current_index) + self._group_size >= len(self._segments)
