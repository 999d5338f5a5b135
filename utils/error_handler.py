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
Unified error handling.

Defines the ShadowReel exception taxonomy and converts exceptions into
user-facing messages and suggestions.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger("shadowreel.utils.error_handler")


class ErrorCategory(Enum):
    """Error categories."""

    SUBTITLE = "subtitle"
    MEDIA = "media"
    TIMEOUT = "timeout"
    NETWORK = "network"
    VALIDATION = "validation"
    UNKNOWN = "unknown"

    def get_display_name(self) -> str:
        display_names = {
            ErrorCategory.SUBTITLE: "Subtitles",
            ErrorCategory.MEDIA: "Media",
            ErrorCategory.TIMEOUT: "Timeout",
            ErrorCategory.NETWORK: "Network",
            ErrorCategory.VALIDATION: "Validation",
            ErrorCategory.UNKNOWN: "Unknown",
        }
        return display_names.get(self, "Unknown")


class ShadowReelError(Exception):
    """Base class for ShadowReel errors."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN):
        super().__init__(message)
        self.category = category


class MalformedTimestamp(ShadowReelError, ValueError):
    """A timestamp token or a cue's timing range could not be used."""

    def __init__(self, token: str, reason: Optional[str] = None):
        self.token = token
        message = f"Malformed timestamp: {token!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, ErrorCategory.SUBTITLE)


class EmptyTimeline(ShadowReelError):
    """No usable subtitles were found, or none are loaded."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No usable subtitles", ErrorCategory.SUBTITLE)


class MediaFault(ShadowReelError):
    """The media clock rejected a seek, play or pause command."""

    def __init__(
        self,
        message: Optional[str] = None,
        operation: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.MEDIA,
    ):
        self.operation = operation
        if message is None:
            message = f"Media {operation} failed" if operation else "Media command failed"
        super().__init__(message, category)


class SchedulerTimeout(MediaFault):
    """The media clock never acknowledged a command within the watchdog interval."""

    def __init__(self, timeout: float, operation: str = "seek"):
        self.timeout = timeout
        super().__init__(
            f"Media {operation} not acknowledged within {timeout:.1f}s",
            operation=operation,
            category=ErrorCategory.TIMEOUT,
        )


class TranslationUnavailable(ShadowReelError):
    """A translation engine could not produce a translation."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Translation service unavailable", ErrorCategory.NETWORK)


class ErrorHandler:
    """Unified error handler."""

    @staticmethod
    def handle_error(error: Exception, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Convert an exception into user-facing error information.

        Args:
            error: Exception instance
            context: Optional context for the log record

        Returns:
            Dict with the keys:
            {
                "user_message": str,
                "technical_details": str,
                "suggested_action": str,
                "retry_possible": bool,
                "category": str
            }
        """
        context = context or {}

        logger.error(
            f"Error occurred: {type(error).__name__}: {str(error)}",
            exc_info=(type(error), error, error.__traceback__),
            extra={"context": context},
        )

        if isinstance(error, ShadowReelError):
            return {
                "user_message": str(error),
                "technical_details": f"{type(error).__name__}: {error}",
                "suggested_action": ErrorHandler._get_suggested_action(error),
                "retry_possible": ErrorHandler._is_retryable_error(error),
                "category": error.category.value,
            }

        elif isinstance(error, FileNotFoundError):
            return {
                "user_message": "File not found",
                "technical_details": str(error),
                "suggested_action": "Check that the file path is correct",
                "retry_possible": False,
                "category": ErrorCategory.VALIDATION.value,
            }

        elif isinstance(error, ValueError):
            return {
                "user_message": "Invalid input value",
                "technical_details": str(error),
                "suggested_action": "Check the input against the expected format",
                "retry_possible": False,
                "category": ErrorCategory.VALIDATION.value,
            }

        elif isinstance(error, TimeoutError):
            return {
                "user_message": "Operation timed out",
                "technical_details": str(error),
                "suggested_action": "Try again",
                "retry_possible": True,
                "category": ErrorCategory.TIMEOUT.value,
            }

        return {
            "user_message": "An unexpected error occurred",
            "technical_details": f"{type(error).__name__}: {str(error)}",
            "suggested_action": "See the log file for details",
            "retry_possible": False,
            "category": ErrorCategory.UNKNOWN.value,
        }

    @staticmethod
    def format_user_message(error_info: Dict[str, Any], include_action: bool = True) -> str:
        """Format a handle_error() result as a single message."""
        message = error_info["user_message"]

        if include_action and error_info.get("suggested_action"):
            message += f"\n\n{error_info['suggested_action']}"

        return message

    @staticmethod
    def _get_suggested_action(error: ShadowReelError) -> str:
        if isinstance(error, EmptyTimeline):
            return "Load a subtitle file with timed cues (SRT or WebVTT)"
        elif isinstance(error, MalformedTimestamp):
            return "Use HH:MM:SS,mmm or MM:SS.mmm timestamps"
        elif isinstance(error, SchedulerTimeout):
            return "The player did not respond; replay the segment"
        elif isinstance(error, MediaFault):
            return "Check that the media is loaded, then replay the segment"
        elif isinstance(error, TranslationUnavailable):
            return "Check the network connection and translation API key"
        return "See the log file for details"

    @staticmethod
    def _is_retryable_error(error: ShadowReelError) -> bool:
        # Retrying is always a caller decision; this only advises the caller
        return isinstance(error, (MediaFault, TranslationUnavailable))

    @staticmethod
    def is_retryable(error_info: Dict[str, Any]) -> bool:
        """Return whether a handle_error() result may be retried."""
        return error_info.get("retry_possible", False)
