import threading
from typing import Any, Callable, Optional


class Debouncer:
    """Delay calls to ``callback`` until ``wait`` seconds pass without a new call."""

    def __init__(self, callback: Callable[..., Any], wait: float = 0.3):
        self.callback = callback
        self.wait = wait
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple[tuple[Any, ...], dict[str, Any]]] = None
        self._lock = threading.Lock()

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (args, kwargs)
            self._timer = threading.Timer(self.wait, self._fire)
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def flush(self) -> None:
        """Run the pending call now instead of waiting for the timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._fire()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    def _fire(self) -> None:
        with self._lock:
            pending, self._pending = self._pending, None
            self._timer = None
        if pending is not None:
            args, kwargs = pending
            self.callback(*args, **kwargs)
