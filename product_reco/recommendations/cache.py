from __future__ import annotations

import logging
import threading
from typing import Iterable

import numpy as np

from ..catalog.models import Product
from ..embeddings.encoder import TextEmbedder
from .errors import RequestCancelled

logger = logging.getLogger(__name__)


class EmbeddingCache:
    """
    One embedding per product id, populated once per process.

    ``ensure_all`` is a no-op once the cache holds anything, so products added
    to the catalog after warm-up are never embedded. Warm-up builds a private
    dict and publishes it in a single assignment: readers see either the empty
    cache or the complete one, and a cancelled warm-up leaves nothing behind.
    """

    def __init__(self) -> None:
        self._vectors: dict[str, np.ndarray] = {}
        self._lock = threading.Lock()
        self._strategy: str | None = None
        self._warmups = 0

    def ensure_all(
        self,
        products: Iterable[Product],
        embedder: TextEmbedder,
        cancel: threading.Event | None = None,
    ) -> None:
        if self._vectors:
            return

        with self._lock:
            # Another request may have finished warm-up while we waited
            if self._vectors:
                return

            products = list(products)
            logger.info("Generating embeddings for %d products ...", len(products))

            vectors: dict[str, np.ndarray] = {}
            for product in products:
                if cancel is not None and cancel.is_set():
                    logger.info("Embedding warm-up cancelled after %d products", len(vectors))
                    raise RequestCancelled("cancelled during embedding warm-up")
                try:
                    vectors[product.id] = embedder.embed_product(product)
                except Exception:
                    logger.warning("Failed to generate embedding for product %s", product.id, exc_info=True)

            self._vectors = vectors
            self._strategy = embedder.strategy
            self._warmups += 1
            if vectors:
                logger.info("Generated embeddings for %d products", len(vectors))
            else:
                logger.warning("No product embeddings generated, warm-up will be retried")

    def get(self, product_id: str) -> np.ndarray | None:
        return self._vectors.get(product_id)

    def items(self) -> list[tuple[str, np.ndarray]]:
        return list(self._vectors.items())

    @property
    def size(self) -> int:
        return len(self._vectors)

    @property
    def is_warm(self) -> bool:
        return bool(self._vectors)

    @property
    def warmups(self) -> int:
        """How many times a warm-up pass actually ran."""
        return self._warmups

    def stats(self) -> dict:
        dimension = None
        if self._vectors:
            dimension = int(next(iter(self._vectors.values())).shape[0])
        return {
            "size": self.size,
            "warm": self.is_warm,
            "strategy": self._strategy,
            "dimension": dimension,
        }

    def clear(self) -> None:
        with self._lock:
            self._vectors = {}
            self._strategy = None
