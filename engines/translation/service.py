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
Translation service.

Wraps a translation engine so that a failed translation degrades to a fixed
placeholder instead of an error; translating a segment is never worth
interrupting practice for.
"""

import logging
from typing import Any, Dict, Optional

from config.constants import DEFAULT_TRANSLATION_TIMEOUT_SECONDS, TRANSLATION_UNAVAILABLE
from engines.translation.base import TranslationEngine
from engines.translation.google_translate import GoogleTranslateEngine

logger = logging.getLogger("shadowreel.translation.service")


class TranslationService:
    """
    Translates segment text, returning ``TRANSLATION_UNAVAILABLE`` on failure.

    Usage:
        service = TranslationService(GoogleTranslateEngine(api_key))
        text = await service.translate("Bonjour", "en")
    """

    def __init__(
        self,
        engine: Optional[TranslationEngine] = None,
        default_target_language: str = "en",
        source_language: str = "auto",
    ):
        self.engine = engine
        self.default_target_language = default_target_language
        self.source_language = source_language

    @classmethod
    def from_config(cls, translation_config: Dict[str, Any]) -> "TranslationService":
        """
        Build the service from the ``translation`` config section.

        Without an API key the service has no engine and always returns the
        placeholder.
        """
        engine_name = translation_config.get("engine", "google-translate")
        api_key = translation_config.get("api_key") or ""
        target = translation_config.get("target_language", "en")

        engine: Optional[TranslationEngine] = None
        if engine_name == "google-translate" and api_key:
            engine = GoogleTranslateEngine(
                api_key,
                timeout=translation_config.get("timeout", DEFAULT_TRANSLATION_TIMEOUT_SECONDS),
            )
        elif engine_name != "google-translate":
            logger.warning(f"Unknown translation engine: {engine_name}")
        else:
            logger.info("No translation API key configured; translations disabled")

        return cls(engine, default_target_language=target)

    @property
    def available(self) -> bool:
        return self.engine is not None

    async def translate(self, text: str, target_lang: Optional[str] = None) -> str:
        """
        Translate ``text`` into ``target_lang``.

        Returns:
            The translation, or ``TRANSLATION_UNAVAILABLE`` when no engine is
            configured or the engine fails for any reason
        """
        target = target_lang or self.default_target_language

        if self.engine is None:
            return TRANSLATION_UNAVAILABLE

        try:
            translated = await self.engine.translate(text, self.source_language, target)
        except Exception as e:
            logger.warning(
                f"Translation via {self.engine.get_name()} failed: {type(e).__name__}: {e}"
            )
            return TRANSLATION_UNAVAILABLE

        return translated

    async def aclose(self) -> None:
        if self.engine is not None:
            await self.engine.aclose()
