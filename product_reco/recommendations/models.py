from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer, field_validator

from ..catalog.models import Product


class RecommendRequest(BaseModel):
    # Optional so a missing query reaches the engine's validation (400, not 422)
    query: str | None = Field(default=None, description="Free-text description of what the user wants")
    count: int = Field(default=5, ge=1, le=50)


class RecommendedProduct(BaseModel):
    id: str
    name: str
    category: str
    price: Decimal
    rating: float
    explanation: str
    relevance: float = Field(..., ge=0.0, le=1.0)

    @field_validator("relevance", mode="before")
    @classmethod
    def _clamp_relevance(cls, value: float) -> float:
        return clamp_relevance(value)

    @field_serializer("price")
    def _price_as_number(self, price: Decimal) -> float:
        return float(price)

    @classmethod
    def from_product(cls, product: Product, explanation: str, relevance: float) -> RecommendedProduct:
        return cls(
            id=product.id,
            name=product.name,
            category=product.category,
            price=product.price,
            rating=product.rating,
            explanation=explanation,
            relevance=relevance,
        )


@dataclass(frozen=True)
class Candidate:
    """A retrieved product and its similarity to the query, for one request."""

    product: Product
    similarity: float


def clamp_relevance(value: float) -> float:
    return max(0.0, min(1.0, float(value)))
