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
"""Translation engine interface.

Engines translate a segment's text on demand. They raise
``TranslationUnavailable`` when no translation can be produced; callers that
must never fail go through ``TranslationService``.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

LANGUAGE_CODES: Tuple[str, ...] = (
    "en",
    "zh",
    "fr",
    "de",
    "es",
    "it",
    "ja",
    "ko",
    "pt",
    "ru",
    "ar",
    "hi",
    "nl",
    "pl",
    "tr",
    "vi",
    "id",
    "th",
    "uk",
    "sv",
    "da",
    "no",
    "fi",
    "cs",
    "ro",
    "el",
    "he",
)

CHINESE_LANGUAGE_VARIANTS: Tuple[str, ...] = (
    "zh-CN",
    "zh-TW",
)


def combine_languages(*groups: Iterable[str]) -> List[str]:
    """Combine language codes in order while removing duplicates."""
    seen = set()
    combined: List[str] = []
    for group in groups:
        for code in group:
            if code not in seen:
                combined.append(code)
                seen.add(code)
    return combined


class TranslationEngine(ABC):
    """Abstract base class for translation engines."""

    @abstractmethod
    def get_name(self) -> str:
        """Return the engine identifier (e.g., ``"google-translate"``)."""
        pass

    @abstractmethod
    def get_supported_languages(self) -> List[str]:
        pass

    @abstractmethod
    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text from ``source_lang`` into ``target_lang``.

        Args:
            text: Segment text to translate.
            source_lang: Source language code (``"auto"`` triggers detection).
            target_lang: Target language code.

        Returns:
            str: Translated text.

        Raises:
            TranslationUnavailable: When the engine cannot translate.
            ValueError: When a language code is not supported.
        """
        pass

    def validate_language(self, lang_code: str) -> bool:
        """Return ``True`` when the language code is supported."""
        if lang_code == "auto":
            return True
        return lang_code in self.get_supported_languages()

    def close(self) -> Optional[object]:
        """Release engine resources; may return an awaitable."""
        return None

    async def aclose(self) -> None:
        """Release engine resources, awaiting :meth:`close` when needed."""
        result = self.close()
        if inspect.isawaitable(result):
            await result
