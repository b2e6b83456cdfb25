import logging
import threading
from typing import Any, Optional

from app.core.config import get_client_settings

from .api import ProductsApi
from .debounce import Debouncer
from .query_cache import PRODUCTS_QUERY, QueryCache

logger = logging.getLogger(__name__)


class ProductFeed:
    """
    Infinite-scroll view over ``GET /products``.

    Pages are loaded one at a time and cached under ``products:<search>:<page>``;
    invalidating the ``products`` namespace reloads every page already shown.
    """

    def __init__(
        self,
        api: ProductsApi,
        cache: QueryCache,
        *,
        page_size: Optional[int] = None,
        search: str = "",
        debounce_seconds: Optional[float] = None,
    ):
        settings = get_client_settings()
        self.api = api
        self.cache = cache
        self.page_size = page_size or settings.FEED_PAGE_SIZE
        self.search = search
        self.pages: list[dict[str, Any]] = []
        self.is_fetching = False
        self._lock = threading.RLock()
        self._unsubscribe = cache.subscribe(PRODUCTS_QUERY, self.refetch)
        wait = settings.SEARCH_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        self.handle_search = Debouncer(self.set_search, wait=wait)

    @property
    def products(self) -> list[dict[str, Any]]:
        return [product for page in self.pages for product in page["data"]]

    @property
    def has_next_page(self) -> bool:
        if not self.pages:
            return True
        last = self.pages[-1]
        return last["page"] < last["totalPages"]

    def fetch_next_page(self) -> Optional[dict[str, Any]]:
        with self._lock:
            if not self.has_next_page:
                return None
            next_page = self.pages[-1]["page"] + 1 if self.pages else 1
            self.is_fetching = True
            try:
                page = self._load_page(next_page)
            finally:
                self.is_fetching = False
            self.pages.append(page)
            return page

    def on_sentinel_visible(self) -> None:
        """Called when the element at the bottom of the grid scrolls into view."""
        if self.has_next_page and not self.is_fetching:
            self.fetch_next_page()

    def set_search(self, term: str) -> None:
        with self._lock:
            term = term or ""
            if term == self.search and self.pages:
                return
            self.search = term
            self.pages = []
        self.fetch_next_page()

    def refetch(self) -> None:
        with self._lock:
            loaded = len(self.pages)
            if not loaded:
                return
            self.pages = []
            for _ in range(loaded):
                if not self.has_next_page:
                    break
                self.fetch_next_page()

    def close(self) -> None:
        self.handle_search.cancel()
        self._unsubscribe()

    def _load_page(self, page: int) -> dict[str, Any]:
        key = f"{self.search}:{page}:{self.page_size}"
        logger.debug("Loading products page %s search=%r", page, self.search)
        return self.cache.fetch(
            PRODUCTS_QUERY,
            key,
            lambda: self.api.get_products(page=page, limit=self.page_size, search=self.search),
        )
