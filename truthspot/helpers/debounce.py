"""
Trailing-edge debouncer.

Every call replaces the pending one and restarts the quiescence window; only
the last call's arguments run once the window elapses. There is no
leading-edge call.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class Debouncer:
    def __init__(self, delay, func):
        self.delay = delay
        self.func = func
        self._lock = threading.Lock()
        self._timer = None
        self._pending = None
        self._generation = 0

    def __call__(self, *args, **kwargs):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._pending = (args, kwargs)
            self._timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self):
        return self._pending is not None

    def _take_pending(self, generation=None):
        with self._lock:
            if generation is not None and generation != self._generation:
                # superseded by a later call whose own window is still open
                return None
            pending = self._pending
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            return pending

    def _fire(self, generation):
        pending = self._take_pending(generation)
        if pending is None:
            return
        args, kwargs = pending
        try:
            self.func(*args, **kwargs)
        except Exception:
            logger.exception("Debounced call to %s failed", getattr(self.func, "__name__", self.func))

    def flush(self):
        """Run the pending call now, on the caller's thread. Returns its result."""
        pending = self._take_pending()
        if pending is None:
            return None
        args, kwargs = pending
        return self.func(*args, **kwargs)

    def cancel(self):
        """Drop the pending call without running it."""
        return self._take_pending() is not None
