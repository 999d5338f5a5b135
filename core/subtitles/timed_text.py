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
Timed-text caption track conversion.

Video platforms serve captions as XML timed text rather than SRT. The
converter turns such a track into a block document so that it goes through
the same block parser as subtitle files.

Two layouts are understood::

    <transcript><text start="1.2" dur="2.3">Hello</text></transcript>

    <timedtext format="3"><body><p t="1200" d="2300">Hello</p></body></timedtext>

The first uses seconds, the second milliseconds.
"""

import html
import logging
import re
import xml.etree.ElementTree as ET
from typing import Iterator, Tuple

from config.constants import MILLISECONDS_PER_SECOND
from core.subtitles.timestamp import format_timestamp

logger = logging.getLogger("shadowreel.subtitles.timed_text")

_WHITESPACE = re.compile(r"\s+")


class MalformedTimedText(ValueError):
    """The timed-text payload is not well-formed XML."""


def _iter_cues(root: ET.Element) -> Iterator[Tuple[float, float, str]]:
    for element in root.iter():
        attrs = element.attrib
        try:
            if element.tag == "text" and "start" in attrs:
                start = float(attrs["start"])
                duration = float(attrs.get("dur", 0.0))
            elif element.tag == "p" and "t" in attrs:
                start = float(attrs["t"]) / MILLISECONDS_PER_SECOND
                duration = float(attrs.get("d", 0.0)) / MILLISECONDS_PER_SECOND
            else:
                continue
        except ValueError:
            logger.debug(f"Skipping cue with non-numeric timing: {attrs}")
            continue

        if start < 0:
            continue

        # Providers escape twice, so entities survive XML decoding once
        text = html.unescape("".join(element.itertext()))
        yield start, start + max(duration, 0.0), _WHITESPACE.sub(" ", text).strip()


def timed_text_to_document(xml: str) -> str:
    """
    Convert an XML timed-text track into an SRT block document.

    Args:
        xml: Timed-text payload

    Returns:
        SRT document text; cues without text are dropped

    Raises:
        MalformedTimedText: If the payload is not parseable XML
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        raise MalformedTimedText(f"Invalid timed-text XML: {e}") from e

    blocks = []
    dropped = 0
    for start, end, text in _iter_cues(root):
        if not text:
            dropped += 1
            continue
        blocks.append(
            f"{len(blocks) + 1}\n{format_timestamp(start)} --> {format_timestamp(end)}\n{text}\n"
        )

    logger.debug(f"Converted timed text: {len(blocks)} cues, {dropped} empty cues dropped")
    return "\n".join(blocks)
