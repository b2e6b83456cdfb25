from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    name: str
    description: str
    price: float
    category: str
    image: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_validator("price", mode="before")
    @classmethod
    def decimal_to_float(cls, v):
        if isinstance(v, Decimal):
            return float(v)
        return v


class ProductListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: list[ProductRead]
    total: int
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")
