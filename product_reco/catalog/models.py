from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    category: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    price: Decimal = Decimal("0")
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    stock: int = 0
    attributes: dict[str, Any] | None = None

    @field_serializer("price")
    def _price_as_number(self, price: Decimal) -> float:
        return float(price)
