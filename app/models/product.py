from decimal import Decimal
from uuid import uuid4

from sqlalchemy import CheckConstraint, DECIMAL, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


def new_product_id() -> str:
    return str(uuid4())


class Product(TimestampMixin, Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("length(name) > 0", name="ck_products_name_not_empty"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_product_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
