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
Subtitle parsing module

Turns subtitle documents into ordered timelines of segments.
"""

from core.subtitles.models import PlaybackWindow, Segment, Timeline
from core.subtitles.parser import SubtitleParser, parse_document
from core.subtitles.timed_text import MalformedTimedText, timed_text_to_document
from core.subtitles.timestamp import format_timestamp, parse_timestamp

__all__ = [
    "MalformedTimedText",
    "PlaybackWindow",
    "Segment",
    "SubtitleParser",
    "Timeline",
    "format_timestamp",
    "parse_document",
    "parse_timestamp",
    "timed_text_to_document",
]
