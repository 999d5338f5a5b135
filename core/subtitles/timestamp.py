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
"""Subtitle timestamp parsing and formatting."""

import math
import re

from config.constants import (
    MILLISECONDS_PER_SECOND,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
    SRT_TIMESTAMP_FORMAT,
)
from utils.error_handler import MalformedTimestamp

_WHOLE_FIELD = re.compile(r"^\d+$")
_SECONDS_FIELD = re.compile(r"^\d+(?:[.,]\d+)?$")


def parse_timestamp(token: str) -> float:
    """
    Convert a subtitle timestamp into seconds.

    Accepts ``HH:MM:SS,mmm`` and ``MM:SS.mmm``; the decimal separator may be
    ``.`` or ``,`` and the fractional part is optional.

    Args:
        token: Timestamp text

    Returns:
        float: ``H*3600 + M*60 + S + ms/1000``

    Raises:
        MalformedTimestamp: If the token does not split into 2 or 3 numeric
            fields.
    """
    if not isinstance(token, str):
        raise MalformedTimestamp(repr(token), "not a string")

    fields = token.strip().split(":")
    if len(fields) not in (2, 3):
        raise MalformedTimestamp(token, f"expected 2 or 3 fields, got {len(fields)}")

    *whole_fields, seconds_field = fields
    if not all(_WHOLE_FIELD.match(field) for field in whole_fields):
        raise MalformedTimestamp(token, "hours and minutes must be whole numbers")
    if not _SECONDS_FIELD.match(seconds_field):
        raise MalformedTimestamp(token, "seconds field is not numeric")

    hours = int(whole_fields[0]) if len(whole_fields) == 2 else 0
    minutes = int(whole_fields[-1])
    seconds = float(seconds_field.replace(",", "."))

    return hours * SECONDS_PER_HOUR + minutes * SECONDS_PER_MINUTE + seconds


def format_timestamp(seconds: float, separator: str = ",") -> str:
    """
    Format seconds as ``HH:MM:SS,mmm``.

    Args:
        seconds: Time in seconds (negative values clamp to zero)
        separator: Decimal separator, ``","`` for SRT and ``"."`` for WebVTT

    Returns:
        Formatted timestamp string
    """
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0

    total_ms = int(round(seconds * MILLISECONDS_PER_SECOND))
    total_seconds, milliseconds = divmod(total_ms, MILLISECONDS_PER_SECOND)
    hours, remainder = divmod(total_seconds, SECONDS_PER_HOUR)
    minutes, secs = divmod(remainder, SECONDS_PER_MINUTE)

    return SRT_TIMESTAMP_FORMAT.format(hours, minutes, secs, separator, milliseconds)
