from .common import ErrorResponse, MessageResponse, SystemHealth
from .product import ProductListResponse, ProductRead

__all__ = [
    "ErrorResponse",
    "MessageResponse",
    "ProductListResponse",
    "ProductRead",
    "SystemHealth",
]
