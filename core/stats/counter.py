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
Practice statistics.

A persistent counter per event type (segments advanced, repeated, windows
completed). Counts only ever grow and survive across sessions.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from config.app_config import get_app_dir
from config.constants import DEFAULT_STATS_FILE_NAME

logger = logging.getLogger("shadowreel.stats.counter")


class StatsCounter:
    """
    Event counter persisted as a JSON object of ``{event_type: count}``.

    Usage:
        stats = StatsCounter()
        stats.increment("repeat")
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Args:
            path: Counter file; defaults to ``stats.json`` in the app dir
        """
        self.path = Path(path) if path is not None else get_app_dir() / DEFAULT_STATS_FILE_NAME
        self._counts: Dict[str, int] = self._load()

    def _load(self) -> Dict[str, int]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read stats file {self.path}, starting from zero: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring stats file {self.path}: expected an object")
            return {}

        counts = {}
        for event_type, count in data.items():
            if isinstance(count, int) and not isinstance(count, bool) and count >= 0:
                counts[str(event_type)] = count
        return counts

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._counts, f, indent=2, sort_keys=True)

    def increment(self, event_type: str) -> int:
        """
        Add one to ``event_type`` and persist.

        Returns:
            The new count

        Raises:
            ValueError: If ``event_type`` is empty
            OSError: If the counter file cannot be written
        """
        if not event_type:
            raise ValueError("event_type must not be empty")

        self._counts[event_type] = self._counts.get(event_type, 0) + 1
        self._save()
        logger.debug(f"Stats {event_type} = {self._counts[event_type]}")
        return self._counts[event_type]

    def get(self, event_type: str) -> int:
        return self._counts.get(event_type, 0)

    def snapshot(self) -> Dict[str, int]:
        """Return a copy of all counts."""
        return dict(self._counts)
