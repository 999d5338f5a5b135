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
Subtitle block parser.

Splits a raw subtitle document (SRT, WebVTT and close relatives) into an
ordered timeline of segments. Parsing is best-effort: blocks that cannot be
used are skipped and the caller decides what an empty result means.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

from config.constants import SUBTITLE_FALLBACK_ENCODINGS, TIMING_ARROWS
from core.subtitles.models import Segment, Timeline
from core.subtitles.timed_text import timed_text_to_document
from core.subtitles.timestamp import parse_timestamp
from utils.error_handler import MalformedTimestamp

logger = logging.getLogger("shadowreel.subtitles.parser")

_ARROW_PATTERN = "|".join(
    re.escape(arrow) for arrow in sorted(TIMING_ARROWS, key=len, reverse=True)
)

# Two timestamps joined by an arrow; anything after the end stamp is cue settings
TIMING_LINE = re.compile(
    rf"^\s*(?P<start>[0-9:.,]+)\s*(?:{_ARROW_PATTERN})\s*(?P<end>[0-9:.,]+)(?:\s+.*)?$"
)

BLOCK_SEPARATOR = re.compile(r"\n[ \t]*\n+")

ANNOTATION_PATTERNS = (
    re.compile(r"<[^>]*>"),  # <i>, <font color=...>, <c.yellow>
    re.compile(r"\{[^}]*\}"),  # {\an8} style overrides
    re.compile(r"\[[^\]]*\]"),  # [Music]
    re.compile(r"\([^)]*\)"),  # (laughs)
)

WHITESPACE = re.compile(r"\s+")


def normalize_line_endings(raw: str) -> str:
    """Convert CRLF/CR line endings to LF and drop a leading BOM."""
    return raw.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")


def strip_annotations(text: str) -> str:
    """Remove markup tags and bracketed annotations, collapsing whitespace."""
    for pattern in ANNOTATION_PATTERNS:
        text = pattern.sub(" ", text)
    return WHITESPACE.sub(" ", text).strip()


class SubtitleParser:
    """
    Parses subtitle documents into timelines.

    Usage:
        parser = SubtitleParser()
        timeline = parser.parse_document(raw_text)
    """

    def __init__(self, strip_annotations: bool = True, encoding: str = "utf-8"):
        """
        Args:
            strip_annotations: Remove tags and bracketed annotations from text
            encoding: Preferred encoding for ``load_file``
        """
        self.strip_annotations = strip_annotations
        self.encoding = encoding

    def parse_document(self, raw: str) -> Timeline:
        """
        Parse a subtitle document.

        Args:
            raw: Full document text

        Returns:
            Segments in the order their blocks appear in the document. Empty
            when nothing usable was found.
        """
        if not raw or not raw.strip():
            logger.debug("Empty subtitle document")
            return []

        blocks = BLOCK_SEPARATOR.split(normalize_line_endings(raw).strip())

        segments: Timeline = []
        skipped = 0
        for block_number, block in enumerate(blocks, 1):
            try:
                segment = self._parse_block(block)
            except MalformedTimestamp as e:
                logger.debug(f"Skipping block {block_number}: {e}")
                skipped += 1
                continue

            if segment is None:
                skipped += 1
                continue

            segments.append(segment)

        logger.info(f"Parsed {len(segments)} segments ({skipped} blocks skipped)")
        return segments

    def parse_timed_text(self, xml: str) -> Timeline:
        """Parse a provider timed-text caption track."""
        return self.parse_document(timed_text_to_document(xml))

    def load_file(self, path: Union[str, Path]) -> Timeline:
        """
        Read and parse a subtitle file.

        The configured encoding is tried first, then the fallback encodings.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(path)
        data = path.read_bytes()

        for encoding in self._candidate_encodings():
            try:
                text = data.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                logger.debug(f"Could not decode {path.name} as {encoding}")
                continue

            logger.info(f"Loaded subtitles from {path} ({encoding})")
            return self.parse_document(text)

        # latin-1 accepts any byte sequence, so this only happens with a custom list
        raise ValueError(f"Could not decode subtitle file: {path}")

    def _candidate_encodings(self) -> Iterable[str]:
        seen = set()
        for encoding in (self.encoding, *SUBTITLE_FALLBACK_ENCODINGS):
            if encoding and encoding.lower() not in seen:
                seen.add(encoding.lower())
                yield encoding

    def _parse_block(self, block: str) -> Optional[Segment]:
        """
        Parse one block.

        Returns:
            The segment, or None when the block has no timing line or no text

        Raises:
            MalformedTimestamp: If the timing line cannot be used
        """
        lines = block.split("\n")

        timing_index = None
        match = None
        for index, line in enumerate(lines):
            match = TIMING_LINE.match(line)
            if match:
                timing_index = index
                break

        if timing_index is None:
            return None

        start = parse_timestamp(match.group("start"))
        end = parse_timestamp(match.group("end"))
        if end < start:
            raise MalformedTimestamp(
                f"{match.group('start')} -> {match.group('end')}", "end precedes start"
            )

        text = " ".join(line.strip() for line in lines[timing_index + 1 :] if line.strip())
        if self.strip_annotations:
            text = strip_annotations(text)
        else:
            text = WHITESPACE.sub(" ", text).strip()

        if not text:
            return None

        return Segment(start=start, end=end, text=text)


def parse_document(raw: str) -> List[Segment]:
    """Parse a subtitle document with the default parser settings."""
    return SubtitleParser().parse_document(raw)
