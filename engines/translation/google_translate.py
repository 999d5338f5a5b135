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
"""Google Translate engine over the Google Cloud Translation v2 REST API."""

import asyncio
import logging
from typing import List, Optional

import httpx

from config.constants import DEFAULT_TRANSLATION_TIMEOUT_SECONDS
from engines.translation.base import (
    CHINESE_LANGUAGE_VARIANTS,
    LANGUAGE_CODES,
    TranslationEngine,
    combine_languages,
)
from utils.error_handler import TranslationUnavailable

logger = logging.getLogger("shadowreel.translation.google")


class GoogleTranslateEngine(TranslationEngine):
    """Google Translate engine implementation."""

    SUPPORTED_LANGUAGES = combine_languages(LANGUAGE_CODES, CHINESE_LANGUAGE_VARIANTS)

    BASE_URL = "https://translation.googleapis.com/language/translate/v2"

    def __init__(
        self,
        api_key: str,
        max_retries: int = 2,
        timeout: float = DEFAULT_TRANSLATION_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the engine.

        Args:
            api_key: Google Cloud API key.
            max_retries: Attempts for rate-limited or failed requests.
            timeout: Request timeout in seconds.
            client: HTTP client to use instead of a private one.
        """
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")

        self.api_key = api_key
        self.max_retries = max_retries
        self.client: Optional[httpx.AsyncClient] = client or httpx.AsyncClient(
            timeout=timeout, headers={"Content-Type": "application/json"}
        )

        logger.info("Google Translate engine initialized")

    def get_name(self) -> str:
        return "google-translate"

    def get_supported_languages(self) -> List[str]:
        return self.SUPPORTED_LANGUAGES.copy()

    async def translate(self, text: str, source_lang: str = "auto", target_lang: str = "en") -> str:
        """Translate text with the Cloud Translation API.

        Args:
            text: Segment text.
            source_lang: Source language code. ``"auto"`` enables detection.
            target_lang: Target language code.

        Returns:
            str: Translated text; empty input gives an empty string.

        Raises:
            TranslationUnavailable: When the API cannot be reached or rejects
                the request.
            ValueError: When a language code is not supported.
        """
        if not text or not text.strip():
            return ""

        if not self.api_key:
            raise TranslationUnavailable("No Google Translate API key configured")
        if self.client is None:
            raise TranslationUnavailable("Google Translate engine is closed")

        if not self.validate_language(target_lang):
            raise ValueError(f"Unsupported target language: {target_lang}")

        params = {"key": self.api_key, "q": text, "target": target_lang, "format": "text"}
        if source_lang != "auto":
            if not self.validate_language(source_lang):
                raise ValueError(f"Unsupported source language: {source_lang}")
            params["source"] = source_lang

        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            logger.debug(f"Translation attempt {attempt + 1}/{self.max_retries}")

            try:
                response = await self.client.post(self.BASE_URL, params=params)
            except httpx.RequestError as e:
                logger.warning(f"Network error during translation: {e}")
                if last_attempt:
                    raise TranslationUnavailable(f"Network error: {e}") from e
                await asyncio.sleep(1)
                continue

            if response.status_code == 200:
                return self._extract_translation(response)

            if response.status_code in (400, 401, 403):
                # Client and authentication errors are not retried
                message = self._error_message(response)
                logger.error(f"Google Translate API error ({response.status_code}): {message}")
                raise TranslationUnavailable(f"Translation rejected: {message}")

            logger.warning(f"Google Translate API error ({response.status_code})")
            if last_attempt:
                raise TranslationUnavailable(
                    f"Translation failed with status code: {response.status_code}"
                )
            if response.status_code == 429:
                await asyncio.sleep(2**attempt)
            else:
                await asyncio.sleep(1)

        # Unreachable: the last attempt always returns or raises
        raise TranslationUnavailable(f"Translation failed after {self.max_retries} attempts")

    @staticmethod
    def _extract_translation(response: httpx.Response) -> str:
        try:
            translations = response.json()["data"]["translations"]
            translated = translations[0]["translatedText"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected response format: {response.text[:200]}")
            raise TranslationUnavailable("Unexpected response format from API") from e

        logger.debug(f"Translation successful: {translated[:50]}")
        return translated

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json().get("error", {}).get("message", "Unknown error")
        except (ValueError, AttributeError):
            return "Unknown error"

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self.client is None:
            return

        client = self.client
        self.client = None

        try:
            await client.aclose()
        except Exception:
            # Restore the client so callers can retry closing
            self.client = client
            raise
        else:
            logger.debug("Google Translate AsyncClient closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
