from __future__ import annotations

from typing import Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as _pairwise_cosine

from ..catalog.models import Product
from .cache import EmbeddingCache
from .models import Candidate


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine of the angle between two 1-D vectors.

    Returns 0.0 (never NaN) for zero-magnitude or differently sized inputs.
    """
    a = np.asarray(a, dtype=np.float64).ravel()
    b = np.asarray(b, dtype=np.float64).ravel()
    if a.shape != b.shape:
        return 0.0

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    sim = float(np.dot(a, b) / (norm_a * norm_b))
    return max(-1.0, min(1.0, sim))


def _score_all(query_vector: np.ndarray, vectors: list[np.ndarray]) -> np.ndarray:
    """Similarity of the query against each vector, 0.0 where sizes differ."""
    query = np.asarray(query_vector, dtype=np.float64).ravel()
    scores = np.zeros(len(vectors), dtype=np.float64)
    same_size = [i for i, v in enumerate(vectors) if v.shape == query.shape]
    if not same_size or not np.any(query):
        return scores

    matrix = np.vstack([vectors[i] for i in same_size])
    # sklearn normalises rows and leaves all-zero rows at 0
    sims = _pairwise_cosine(query.reshape(1, -1), matrix).ravel()
    scores[same_size] = np.clip(sims, -1.0, 1.0)
    return scores


def top_k(
    query_vector: np.ndarray,
    cache: EmbeddingCache,
    products: Sequence[Product],
    k: int,
    min_similarity: float | None = None,
) -> list[Candidate]:
    """
    Rank cached products by similarity to ``query_vector``.

    Products are visited in catalog order; those without a cached vector are
    skipped. Ties are broken by higher rating, then catalog order.
    """
    if k <= 0 or not cache.is_warm:
        return []

    cached: list[Product] = []
    vectors: list[np.ndarray] = []
    for product in products:
        vec = cache.get(product.id)
        if vec is not None:
            cached.append(product)
            vectors.append(np.asarray(vec, dtype=np.float64).ravel())

    if not cached:
        return []

    scores = _score_all(query_vector, vectors)
    candidates = [
        Candidate(product=product, similarity=float(score))
        for product, score in zip(cached, scores)
    ]
    if min_similarity is not None:
        candidates = [c for c in candidates if c.similarity > min_similarity]

    # sorted() is stable, so equal keys keep catalog order
    candidates = sorted(candidates, key=lambda c: (-c.similarity, -c.product.rating))
    return candidates[:k]
