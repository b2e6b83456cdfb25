import logging
import threading
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Optional

from app.core.config import get_client_settings

logger = logging.getLogger(__name__)

PRODUCTS_QUERY = "products"
PRODUCT_QUERY = "product"


@dataclass
class _Entry:
    value: Any
    expires_at: float


class QueryCache:
    """
    Client-side cache of API reads, keyed by namespace and query key.

    Invalidating a namespace drops its entries and notifies subscribers so
    that live views refetch.
    """

    def __init__(self, stale_seconds: Optional[int] = None):
        self.stale_seconds = stale_seconds or get_client_settings().QUERY_STALE_SECONDS
        self._entries: dict[str, _Entry] = {}
        self._listeners: dict[str, list[Callable[[], None]]] = defaultdict(list)
        self._lock = threading.Lock()

    def fetch(self, namespace: str, key: str, loader: Callable[[], Any]) -> Any:
        cache_key = f"{namespace}:{key}"
        with self._lock:
            entry = self._entries.get(cache_key)
        if entry and entry.expires_at > time.monotonic():
            return entry.value
        value = loader()
        with self._lock:
            self._entries[cache_key] = _Entry(value, time.monotonic() + self.stale_seconds)
        return value

    def subscribe(self, namespace: str, listener: Callable[[], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners[namespace].append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners[namespace]:
                    self._listeners[namespace].remove(listener)

        return unsubscribe

    def invalidate(self, namespace: str, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                prefix = f"{namespace}:"
                for cache_key in [k for k in self._entries if k.startswith(prefix)]:
                    del self._entries[cache_key]
            else:
                self._entries.pop(f"{namespace}:{key}", None)
            listeners = list(self._listeners[namespace])
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("Refetch after invalidating %s failed", namespace)
