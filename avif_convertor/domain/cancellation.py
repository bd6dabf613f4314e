"""
The shared cancellation signal of a run.

A run has exactly one `CancellationToken`. Workers poll it before claiming new
work, and every running conversion registers a callback on it that terminates
its encoder process. Cancellation is cooperative: nothing is interrupted except
through these two paths.
"""
import itertools
import threading
from typing import Callable, Dict, Optional

from loguru import logger


class CancellationToken:
    """
    A set-once cancellation flag with callback registration.

    `cancel()` may be called any number of times from any thread; only the
    first call fires the registered callbacks. A callback registered after the
    token fired is invoked immediately, so a job that starts its encoder just as
    the user cancels still gets its process terminated.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._ids = itertools.count(1)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Blocks until the token fires or `timeout` elapses. Returns the flag."""
        return self._event.wait(timeout)

    def cancel(self):
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
        logger.debug(f"Cancellation requested; notifying {len(callbacks)} observer(s).")
        for callback in callbacks:
            self._invoke(callback)

    def register(self, callback: Callable[[], None]) -> int:
        """
        Registers a callback to run when the token fires.

        Returns:
            A handle for `unregister`. When the token has already fired the
            callback runs synchronously and the returned handle is inert.
        """
        with self._lock:
            handle = next(self._ids)
            if not self._event.is_set():
                self._callbacks[handle] = callback
                return handle
        self._invoke(callback)
        return handle

    def unregister(self, handle: int):
        """Removes a callback. Unknown or already-fired handles are ignored."""
        with self._lock:
            self._callbacks.pop(handle, None)

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._callbacks)

    @staticmethod
    def _invoke(callback: Callable[[], None]):
        try:
            callback()
        except Exception as e:
            logger.error(f"Cancellation observer raised {type(e).__name__}: {e}")
