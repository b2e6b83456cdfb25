import logging
from typing import Any, Optional

import httpx

from app.core.config import get_client_settings

from .forms import ProductFormValues

logger = logging.getLogger(__name__)


class ProductsApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProductsApi:
    """Thin HTTP client for the /products endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        settings = get_client_settings()
        self._client = httpx.Client(
            base_url=base_url or settings.PRODUCTS_API_URL,
            timeout=timeout or settings.PRODUCTS_API_TIMEOUT,
            transport=transport,
            headers=headers,
        )

    def set_locale(self, locale: str) -> None:
        self._client.headers["Accept-Language"] = locale

    def get_products(self, page: int = 1, limit: int = 10, search: str = "") -> dict[str, Any]:
        return self._request("GET", "/products", params={"page": page, "limit": limit, "search": search})

    def get_product(self, product_id: str) -> dict[str, Any]:
        return self._request("GET", f"/products/{product_id}")

    def create_product(self, form: ProductFormValues) -> dict[str, Any]:
        data, files = form.to_multipart()
        return self._request("POST", "/products", data=data, files=files or None)

    def update_product(self, product_id: str, form: ProductFormValues) -> dict[str, Any]:
        data, files = form.to_multipart()
        return self._request("PUT", f"/products/{product_id}", data=data, files=files or None)

    def delete_product(self, product_id: str) -> None:
        self._request("DELETE", f"/products/{product_id}")

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ProductsApi":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ProductsApiError(str(exc)) from exc

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = (body.get("error") if isinstance(body, dict) else None) or response.reason_phrase
            raise ProductsApiError(message, status_code=response.status_code)
        return response.json()
