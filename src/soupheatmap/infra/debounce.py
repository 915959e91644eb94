"""
Debounced callbacks.

Coalesces bursts of calls (e.g. a color picker being dragged) into a single
invocation carrying the last submitted value, fired once the delay has
elapsed without a newer submission.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

from soupheatmap.core.constants import RECOLOR_DEBOUNCE_SECONDS

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Trailing-edge debouncer backed by threading.Timer.

    Each submit() restarts the delay. When it expires the callback runs on the
    timer thread with the most recent value; earlier values are dropped.
    """

    def __init__(
        self,
        callback: Callable[[Any], None],
        delay: float = RECOLOR_DEBOUNCE_SECONDS,
    ):
        """
        Args:
            callback: Called with the last submitted value
            delay: Quiet period in seconds before the callback fires
        """
        if delay < 0:
            raise ValueError(f"Debounce delay must be non-negative, got {delay}")

        self.callback = callback
        self.delay = delay
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._pending: Any = None
        self._has_pending = False
        self._coalesced = 0

    @property
    def pending(self) -> bool:
        return self._has_pending

    def submit(self, value: Any) -> None:
        """Schedule the callback with value, replacing any pending value."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._coalesced += 1
            self._pending = value
            self._has_pending = True
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _take(self) -> tuple[bool, Any]:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            has_pending, value = self._has_pending, self._pending
            self._pending = None
            self._has_pending = False
            coalesced, self._coalesced = self._coalesced, 0
        if has_pending and coalesced:
            logger.debug(f"Coalesced {coalesced} superseded updates")
        return has_pending, value

    def _fire(self) -> None:
        has_pending, value = self._take()
        if has_pending:
            self.callback(value)

    def flush(self) -> bool:
        """
        Run the pending callback now on the calling thread.

        Returns:
            True if a pending value was delivered
        """
        has_pending, value = self._take()
        if has_pending:
            self.callback(value)
        return has_pending

    def cancel(self) -> None:
        """Drop the pending value without calling back."""
        has_pending, _ = self._take()
        if has_pending:
            logger.debug("Pending debounced update cancelled")
