"""
Deterministic hashed term-count embeddings.

Every salient term is hashed into one of ``dimension`` slots and counted; the
result is L2-normalised. The hash is derived from SHA-256 rather than the
built-in ``hash()`` so vectors do not change with ``PYTHONHASHSEED``.
"""
from __future__ import annotations

import hashlib
from typing import Iterable

import numpy as np

from ..catalog.models import Product
from .config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig


def _tokens(text: str) -> list[str]:
    return text.lower().split()


def term_hash(term: str) -> int:
    """Signed 64-bit hash of ``term``, stable across processes."""
    digest = hashlib.sha256(term.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=True)


def term_slot(term: str, dimension: int) -> int:
    return abs(term_hash(term)) % dimension


def query_terms(text: str, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> set[str]:
    return {t for t in _tokens(text) if len(t) >= config.min_query_term_length}


def product_terms(product: Product, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> set[str]:
    """Curated fields contribute every token; the description only longer ones."""
    terms: set[str] = set(_tokens(product.name))
    terms.update(_tokens(product.category))
    for tag in product.tags:
        terms.update(_tokens(tag))
    terms.update(
        t for t in _tokens(product.description)
        if len(t) >= config.min_description_term_length
    )
    return terms


def hash_vector(terms: Iterable[str], dimension: int) -> np.ndarray:
    vec = np.zeros(dimension, dtype=np.float64)
    for term in terms:
        vec[term_slot(term, dimension)] += 1.0

    norm = np.linalg.norm(vec)
    if norm > 0:
        vec /= norm
    return vec


def embed_query_text(text: str, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> np.ndarray:
    return hash_vector(query_terms(text, config), config.dimension)


def embed_product_terms(product: Product, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> np.ndarray:
    return hash_vector(product_terms(product, config), config.dimension)
