"""Python client for the product catalog API.

Mirrors the web front end: an infinite-scroll feed with debounced search,
the shared create/edit form rules, and mutations that invalidate cached reads.
"""

from .actions import ActionResult, ProductActions
from .api import ProductsApi, ProductsApiError
from .debounce import Debouncer
from .feed import ProductFeed
from .forms import FormValidationError, ProductFormValues, validate_product_form
from .query_cache import QueryCache

__all__ = [
    "ActionResult",
    "Debouncer",
    "FormValidationError",
    "ProductActions",
    "ProductFeed",
    "ProductFormValues",
    "ProductsApi",
    "ProductsApiError",
    "QueryCache",
    "validate_product_form",
]
