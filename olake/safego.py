"""Running functions in background threads with failure recovery and restart."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_RESTART_TIMEOUT = 2.0

RecoverHandler = Callable[[BaseException], None]


def _default_recover_handler(error: BaseException) -> None:
    logger.error("recovered from failure: %s", error)


class Execution:
    """A function run in a daemon thread.

    A failure is passed to the recover handler; when restart_timeout (seconds)
    is positive, the function is run again after that delay.
    """

    def __init__(
        self,
        function: Callable[[], Any],
        recover_handler: RecoverHandler | None = None,
        restart_timeout: float = 0.0,
    ) -> None:
        self.function = function
        self.recover_handler = recover_handler or _default_recover_handler
        self.restart_timeout = restart_timeout
        self._thread: threading.Thread | None = None

    def start(self) -> Execution:
        """Start running the function in the background."""
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()
        return self

    def _loop(self) -> None:
        while True:
            try:
                self.function()
                return
            except Exception as err:  # noqa: BLE001 - handed to the recover handler
                self.recover_handler(err)
                if self.restart_timeout <= 0:
                    return
                time.sleep(self.restart_timeout)

    def with_restart_timeout(self, timeout: float) -> Execution:
        """Set the delay before a restart; zero disables restarts."""
        self.restart_timeout = timeout
        return self

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the background thread; return True if it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()


def run(function: Callable[[], Any]) -> Execution:
    """Run function in the background without restarting it on failure."""
    return Execution(function).start()


def run_with_restart(function: Callable[[], Any]) -> Execution:
    """Run function in the background, restarting it after each failure."""
    return Execution(function, restart_timeout=DEFAULT_RESTART_TIMEOUT).start()


def safe_insert(queue: Any, value: Any) -> bool:
    """Put value on queue; return False instead of raising if that fails."""
    try:
        queue.put(value)
    except Exception as err:  # noqa: BLE001 - reported through the return value
        logger.error("failed to insert into queue: %s", err)
        return False
    return True