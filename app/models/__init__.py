from .base import Base, TimestampMixin, utcnow
from .product import Product, new_product_id

__all__ = [
    "Base",
    "Product",
    "TimestampMixin",
    "new_product_id",
    "utcnow",
]
