import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from app.core.config import get_client_settings
from app.core.localization import localize_message, toggle_locale

from .api import ProductsApi, ProductsApiError
from .forms import FormValidationError, ProductFormValues, validate_product_form
from .query_cache import PRODUCT_QUERY, PRODUCTS_QUERY, QueryCache

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    success: bool
    message: str
    product: Optional[dict[str, Any]] = None


class ProductActions:
    """Form submissions and deletes, with cache invalidation on success."""

    def __init__(self, api: ProductsApi, cache: QueryCache, locale: Optional[str] = None):
        self.api = api
        self.cache = cache
        self.locale = locale or get_client_settings().DEFAULT_LOCALE
        self.api.set_locale(self.locale)

    def toggle_language(self) -> str:
        self.locale = toggle_locale(self.locale)
        self.api.set_locale(self.locale)
        return self.locale

    def load_product(self, product_id: str) -> dict[str, Any]:
        return self.cache.fetch(PRODUCT_QUERY, product_id, lambda: self.api.get_product(product_id))

    def edit_form_defaults(self, product_id: str) -> dict[str, Any]:
        return ProductFormValues.initial_values(self.load_product(product_id))

    def create_product_action(self, values: Mapping[str, Any]) -> ActionResult:
        try:
            form = validate_product_form(values)
            product = self.api.create_product(form)
        except FormValidationError as exc:
            return self._failure(exc.issues[0])
        except ProductsApiError as exc:
            logger.warning("Create product failed: %s", exc.message)
            return self._failure("Failed to create product")

        self.cache.invalidate(PRODUCTS_QUERY)
        return ActionResult(True, self._t("Product created successfully"), product)

    def update_product_action(self, product_id: str, values: Mapping[str, Any]) -> ActionResult:
        try:
            form = validate_product_form(values, editing=True)
            product = self.api.update_product(product_id, form)
        except FormValidationError as exc:
            return self._failure(exc.issues[0])
        except ProductsApiError as exc:
            logger.warning("Update product %s failed: %s", product_id, exc.message)
            return self._failure("Failed to update product")

        self.cache.invalidate(PRODUCTS_QUERY)
        self.cache.invalidate(PRODUCT_QUERY, product_id)
        return ActionResult(True, self._t("Product updated successfully"), product)

    def delete_product_action(self, product_id: str) -> ActionResult:
        try:
            self.api.delete_product(product_id)
        except ProductsApiError as exc:
            logger.warning("Delete product %s failed: %s", product_id, exc.message)
            return self._failure("Failed to delete product")

        self.cache.invalidate(PRODUCTS_QUERY)
        self.cache.invalidate(PRODUCT_QUERY, product_id)
        return ActionResult(True, self._t("Product deleted successfully"))

    def _failure(self, message: str) -> ActionResult:
        return ActionResult(False, self._t(message))

    def _t(self, message: str) -> str:
        return localize_message(message, self.locale)
