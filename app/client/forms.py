import math
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from app.core.storage import StoredFile

ALLOWED_IMAGE_TYPES = frozenset(
    {
        "image/jpg",
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/avif",
    }
)
MAX_IMAGE_BYTES = 1024 * 1024

_REQUIRED_MESSAGES = {
    "name": "Name is required",
    "description": "Description is required",
    "category": "Category is required",
}


class FormValidationError(Exception):
    """Carries every failed rule, in field order."""

    def __init__(self, issues: list[str]):
        super().__init__(issues[0] if issues else "Invalid form")
        self.issues = issues


class ProductFormValues(BaseModel):
    """
    Values of the shared create/edit product form.

    Validate with ``validate_product_form`` so the image rules know whether
    the form is creating (image mandatory) or editing (image optional).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(default="", validate_default=True)
    description: str = Field(default="", validate_default=True)
    price: float = Field(default=0, validate_default=True)
    category: str = Field(default="", validate_default=True)
    image: Optional[Union[StoredFile, str]] = Field(default=None, validate_default=True)

    @field_validator("name", "description", "category", mode="before")
    @classmethod
    def _required_text(cls, v: Any, info: ValidationInfo) -> str:
        if not isinstance(v, str) or not v:
            raise PydanticCustomError("required", _REQUIRED_MESSAGES[info.field_name])
        return v

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, v: Any) -> float:
        # Blank input coerces to 0, like a number input left empty.
        if v is None or (isinstance(v, str) and not v.strip()):
            return 0.0
        try:
            price = float(v)
        except (TypeError, ValueError):
            raise PydanticCustomError("price_number", "Price must be a number")
        if math.isnan(price) or math.isinf(price):
            raise PydanticCustomError("price_number", "Price must be a number")
        if price < 0:
            raise PydanticCustomError("price_positive", "Price must be positive")
        return price

    @field_validator("image", mode="before")
    @classmethod
    def _check_image(cls, v: Any, info: ValidationInfo) -> Any:
        editing = bool((info.context or {}).get("editing"))
        if not v:
            if editing:
                return None
            raise PydanticCustomError("image_required", "Image is required")
        if isinstance(v, StoredFile):
            if v.content_type not in ALLOWED_IMAGE_TYPES or v.size > MAX_IMAGE_BYTES:
                raise PydanticCustomError("image_format", "Unsupported image format or size exceeded")
            return v
        if isinstance(v, str):
            return v
        raise PydanticCustomError(
            "image_type",
            "Image must be a file or an existing URL" if editing else "Image is required",
        )

    @staticmethod
    def initial_values(product: Mapping[str, Any]) -> dict[str, Any]:
        """Form defaults for editing an existing product; the image input starts empty."""

        return {
            "name": product.get("name", ""),
            "description": product.get("description", ""),
            "price": product.get("price", 0),
            "category": product.get("category", ""),
        }

    def to_multipart(self) -> tuple[dict[str, str], dict[str, tuple[str, bytes, Optional[str]]]]:
        data = {
            "name": self.name,
            "description": self.description,
            "price": _format_price(self.price),
            "category": self.category,
        }
        files: dict[str, tuple[str, bytes, Optional[str]]] = {}
        if isinstance(self.image, StoredFile):
            files["image"] = (self.image.filename, self.image.content, self.image.content_type)
        elif self.image:
            data["image"] = self.image
        return data, files


def _format_price(price: float) -> str:
    if price.is_integer():
        return str(int(price))
    return repr(price)


def validate_product_form(data: Mapping[str, Any], *, editing: bool = False) -> ProductFormValues:
    try:
        return ProductFormValues.model_validate(dict(data), context={"editing": editing})
    except ValidationError as exc:
        raise FormValidationError([error["msg"] for error in exc.errors()]) from exc
