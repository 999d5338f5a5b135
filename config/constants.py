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
Application-wide constants for ShadowReel.

This module contains constants used across multiple modules to avoid
hardcoded values throughout the codebase.
"""

# ============================================================================
# Application Constants
# ============================================================================

APP_NAME = "ShadowReel"
APP_LOGGER_NAME = "shadowreel"
APP_ENV_VARIABLE = "SHADOWREEL_ENV"

# ============================================================================
# Subtitle Parsing Constants
# ============================================================================

# Arrow-like separators accepted between the two timestamps of a cue
TIMING_ARROWS = ("-->", "->", "→", "—>", "–>")

# Encodings tried in order when a subtitle file fails to decode
SUBTITLE_FALLBACK_ENCODINGS = ("utf-8-sig", "latin-1")

# ============================================================================
# Playback Scheduler Defaults (seconds)
# ============================================================================

DEFAULT_GROUP_SIZE = 1
DEFAULT_SEEK_SETTLE_DELAY = 0.25  # used when the clock has no seek event
DEFAULT_STOP_SAFETY_MARGIN = 0.05
DEFAULT_END_TOLERANCE = 0.05
DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_WATCHDOG_TIMEOUT = 10.0
# A seek completion farther than this from the requested start belongs to an
# earlier seek
DEFAULT_SEEK_MATCH_TOLERANCE = 0.5
DEFAULT_AUTO_ADVANCE_GAP = 0.0

# ============================================================================
# Media Backend Constants
# ============================================================================

# Seek is acknowledged once the reported position lands this close to the target
QT_SEEK_TOLERANCE_MS = 250
# Loaded media shorter than this is treated as an injected ad (0 disables)
DEFAULT_AD_DURATION_THRESHOLD = 0.0
AD_IDENTITY_PREFIX = "ad:"

# ============================================================================
# Translation and Stats Constants
# ============================================================================

TRANSLATION_UNAVAILABLE = "Translation unavailable"
DEFAULT_TRANSLATION_TIMEOUT_SECONDS = 10.0
DEFAULT_STATS_FILE_NAME = "stats.json"

# ============================================================================
# Time Calculations
# ============================================================================

SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60
MILLISECONDS_PER_SECOND = 1000

SRT_TIMESTAMP_FORMAT = "{:02d}:{:02d}:{:02d}{}{:03d}"

# ============================================================================
# Files and Logging
# ============================================================================

FILE_PERMISSION_OWNER_RW = 0o600  # Owner read/write only

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB log file size
LOG_FILE_BACKUP_COUNT = 5  # Number of backup log files
LOG_SEPARATOR_LENGTH = 60  # characters for "=" * 60
