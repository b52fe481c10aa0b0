from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator

from pydantic import TypeAdapter

from ..core.config import DEFAULT_APP_CONFIG
from .models import Product

logger = logging.getLogger(__name__)

_PRODUCT_LIST = TypeAdapter(list[Product])

_catalog: ProductCatalog | None = None


class ProductCatalog:
    """Immutable, in-memory list of products in file order."""

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: tuple[Product, ...] = tuple(products)
        self._by_id: dict[str, Product] = {p.id: p for p in self._products}

    @property
    def all(self) -> tuple[Product, ...]:
        return self._products

    def get(self, product_id: str) -> Product | None:
        return self._by_id.get(product_id)

    def filter_by_category(self, category: str) -> list[Product]:
        wanted = category.strip().lower()
        return [p for p in self._products if p.category.lower() == wanted]

    def categories(self) -> list[str]:
        return sorted({p.category for p in self._products if p.category})

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products)


def load_catalog(path: Path) -> ProductCatalog:
    """Read a JSON array of products. A missing file yields an empty catalog."""
    if not path.is_file():
        logger.warning("Products file not found at %s", path)
        return ProductCatalog()

    products = _PRODUCT_LIST.validate_json(path.read_bytes())

    # Keep the first occurrence of a duplicated id
    seen: set[str] = set()
    unique: list[Product] = []
    for product in products:
        if product.id in seen:
            logger.warning("Duplicate product id %s in %s, skipping", product.id, path)
            continue
        seen.add(product.id)
        unique.append(product)

    logger.info("Loaded %d products", len(unique))
    return ProductCatalog(unique)


def get_catalog() -> ProductCatalog:
    """Return the process-wide catalog, loading it on first call."""
    global _catalog
    if _catalog is None:
        _catalog = load_catalog(DEFAULT_APP_CONFIG.catalog_path)
    return _catalog
