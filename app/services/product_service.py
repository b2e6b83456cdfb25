import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.compensation import Compensation
from app.core.storage import StorageError, StorageService, StoredFile
from app.models import Product, new_product_id, utcnow
from app.schemas import ProductRead

from . import exceptions

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
REQUIRED_FIELDS_MESSAGE = "Required fields: name, price, description, category, image"


def resolve_offset(limit: int, offset: Optional[int] = None, page: Optional[int] = None) -> int:
    """An explicit offset wins over page; page is 1-based."""

    if offset is not None:
        return offset
    if page is not None:
        return (page - 1) * limit
    return 0


def _parse_price(value: Any) -> Optional[Decimal]:
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite():
        return None
    return price


class ProductService:
    def __init__(self, db: Session, storage: StorageService, folder: str = "products"):
        self.db = db
        self.storage = storage
        self.folder = folder

    def list_products(self, *, search: Optional[str] = None, limit: int = DEFAULT_LIMIT, offset: int = 0) -> dict:
        try:
            query = self.db.query(Product)
            if search:
                pattern = f"%{search.lower()}%"
                query = query.filter(
                    or_(
                        Product.name.ilike(pattern),
                        Product.description.ilike(pattern),
                        Product.category.ilike(pattern),
                    )
                )
            total = query.count()
            products = query.order_by(Product.created_at.desc()).limit(limit).offset(offset).all()
        except SQLAlchemyError as exc:
            logger.exception("Error fetching products")
            raise exceptions.UpstreamError("Error fetching products") from exc

        return {
            "data": [self._serialize(product) for product in products],
            "total": total,
            "page": offset // limit + 1,
            "limit": limit,
            "totalPages": math.ceil(total / limit),
        }

    def get_product(self, product_id: str) -> dict:
        product = self._get_product(product_id, error_message="Error fetching product")
        return self._serialize(product)

    def create_product(self, form: Mapping[str, Any]) -> dict:
        name = form.get("name")
        description = form.get("description")
        raw_price = form.get("price")
        category = form.get("category")
        image = form.get("image")

        if not all((name, description, raw_price, category, image)):
            raise exceptions.ValidationError(REQUIRED_FIELDS_MESSAGE)
        if not isinstance(image, StoredFile):
            logger.error("Rejected product create: image is not a file")
            raise exceptions.ValidationError("Image must be a file")
        price = _parse_price(raw_price)
        if price is None:
            raise exceptions.ValidationError("Price must be a number")
        if price < 0:
            raise exceptions.ValidationError("Price must be positive")

        with Compensation("create product") as compensation:
            image_url = self._upload(image)
            compensation.register(self.storage.delete, image_url)

            product = Product(
                id=new_product_id(),
                name=name,
                description=description,
                price=price,
                category=category,
                image=image_url,
            )
            self._commit(product, error_message="Error creating product")

        logger.info("Created product %s", product.id)
        return self._serialize(product)

    def update_product(self, product_id: str, form: Mapping[str, Any]) -> dict:
        product = self._get_product(product_id, error_message="Error updating product")
        previous_image = product.image
        image = form.get("image")

        updates: dict[str, Any] = {"updated_at": utcnow()}
        for field in ("name", "description", "category"):
            if form.get(field):
                updates[field] = form[field]
        # Falsy semantics: an unparseable price or a price of 0 leaves the stored price alone.
        price = _parse_price(form["price"]) if form.get("price") else None
        if price:
            updates["price"] = price

        new_image_url: Optional[str] = None
        with Compensation(f"update product {product_id}") as compensation:
            if isinstance(image, StoredFile):
                new_image_url = self._upload(image)
                compensation.register(self.storage.delete, new_image_url)
                updates["image"] = new_image_url
            elif isinstance(image, str) and image and image != previous_image:
                updates["image"] = image

            for key, value in updates.items():
                setattr(product, key, value)
            self._commit(product, error_message="Error updating product")

        if new_image_url and previous_image:
            self._discard_image(previous_image)

        logger.info("Updated product %s fields=%s", product_id, sorted(updates))
        return self._serialize(product)

    def delete_product(self, product_id: str) -> None:
        product = self._get_product(product_id, error_message="Failed to delete product")
        image = product.image
        try:
            self.db.delete(product)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Delete product error for %s", product_id)
            raise exceptions.UpstreamError("Failed to delete product") from exc

        if image:
            self._discard_image(image)
        logger.info("Deleted product %s", product_id)

    def _upload(self, file: StoredFile) -> str:
        try:
            return self.storage.upload(file, self.folder)
        except StorageError as exc:
            logger.error("Error uploading image %s: %s", file.filename, exc)
            raise exceptions.UpstreamError("Error uploading image") from exc

    def _commit(self, product: Product, *, error_message: str) -> None:
        try:
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(error_message)
            raise exceptions.UpstreamError(error_message) from exc

    def _discard_image(self, url: str) -> None:
        try:
            self.storage.delete(url)
        except Exception:
            logger.exception("Failed to delete stored image %s", url)

    def _get_product(self, product_id: str, *, error_message: str) -> Product:
        try:
            product = self.db.query(Product).filter(Product.id == product_id).first()
        except SQLAlchemyError as exc:
            logger.exception(error_message)
            raise exceptions.UpstreamError(error_message) from exc
        if not product:
            raise exceptions.NotFoundError("Product not found")
        return product

    @staticmethod
    def _serialize(product: Product) -> dict:
        return ProductRead.model_validate(product).model_dump(mode="json", by_alias=True)
