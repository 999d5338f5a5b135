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
Subtitle data model.

Segments are produced once by the parser and never mutated; playback
windows are derived views over a contiguous run of segments.
"""

from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class Segment:
    """One timed subtitle entry, in seconds."""

    start: float
    end: float
    text: str

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Segment start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"Segment end {self.end} precedes start {self.start}")
        if not self.text or not self.text.strip():
            raise ValueError("Segment text must not be empty")

    @property
    def duration(self) -> float:
        return self.end - self.start


# Ordered as the cues appeared in the source document
Timeline = List[Segment]


@dataclass(frozen=True)
class PlaybackWindow:
    """
    A contiguous run of segments played as one unit.

    ``end_index`` is exclusive, so the window covers
    ``segments[start_index:end_index]`` of its timeline.
    """

    start_index: int
    end_index: int
    segments: Tuple[Segment, ...]

    def __post_init__(self):
        if not self.segments:
            raise ValueError("PlaybackWindow needs at least one segment")
        if self.end_index - self.start_index != len(self.segments):
            raise ValueError("PlaybackWindow index range does not match its segments")

    @property
    def start(self) -> float:
        return self.segments[0].start

    @property
    def end(self) -> float:
        # Unsorted documents can put the last cue before the first one
        return max(self.segments[-1].end, self.start)

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def text(self) -> str:
        return " ".join(segment.text for segment in self.segments)

    def __len__(self) -> int:
        return len(self.segments)
