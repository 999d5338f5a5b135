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
Qt async helper utilities.

Runs coroutines from Qt code on one background asyncio loop and delivers
their results back on the Qt thread.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Optional

from PySide6.QtCore import QObject, Signal, Slot

logger = logging.getLogger("shadowreel.utils.qt_async")


class AsyncRunner(QObject):
    """
    Runs async coroutines for a Qt application.

    All coroutines share one event loop on a daemon thread, so async clients
    created by one call (an ``httpx.AsyncClient``) stay usable by the next.
    """

    # Emitted from the loop thread; delivered to the runner's thread
    completed = Signal(object, object)  # callback, value

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="shadowreel-async", daemon=True
        )
        self._thread.start()
        self.completed.connect(self._deliver)

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def run_async(
        self,
        coro: Coroutine,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Future:
        """
        Schedule ``coro`` on the background loop.

        Args:
            coro: Coroutine to run
            on_success: Called with the result on the Qt thread
            on_error: Called with the exception on the Qt thread

        Returns:
            The concurrent future of the coroutine
        """
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        future.add_done_callback(lambda done: self._on_done(done, on_success, on_error))
        return future

    def _on_done(
        self,
        future: Future,
        on_success: Optional[Callable[[Any], None]],
        on_error: Optional[Callable[[Exception], None]],
    ) -> None:
        if future.cancelled():
            return

        error = future.exception()
        if error is not None:
            logger.error(f"Error running async task: {error}")
            if on_error is not None:
                self.completed.emit(on_error, error)
        elif on_success is not None:
            self.completed.emit(on_success, future.result())

    @Slot(object, object)
    def _deliver(self, callback: Callable[[Any], None], value: Any) -> None:
        callback(value)

    def cleanup(self, timeout: float = 2.0) -> None:
        """Stop the background loop."""
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout)
        if not self._thread.is_alive():
            self.loop.close()
