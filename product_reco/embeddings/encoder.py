from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np
from openai import OpenAI

from ..catalog.models import Product
from ..llm.config import DEFAULT_PROVIDER_CONFIG, ProviderConfig
from .config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig
from .hashing import embed_product_terms, embed_query_text

logger = logging.getLogger(__name__)


def product_text(product: Product) -> str:
    """Descriptive text sent to the embeddings provider for a product."""
    return (
        f"{product.name}. {product.description}. "
        f"Category: {product.category}. Tags: {', '.join(product.tags)}"
    )


class TextEmbedder(ABC):
    strategy: str

    @abstractmethod
    def embed_query(self, text: str) -> np.ndarray:
        """Encode free-text user input into a 1-D vector."""

    @abstractmethod
    def embed_product(self, product: Product) -> np.ndarray:
        """Encode a catalog product into a 1-D vector. May raise on provider faults."""

    @property
    def is_external(self) -> bool:
        return False

    @property
    def dimension(self) -> int | None:
        return None


class LocalHashEmbedder(TextEmbedder):
    strategy = "local"

    def __init__(self, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> None:
        self.config = config

    def embed_query(self, text: str) -> np.ndarray:
        return embed_query_text(text, self.config)

    def embed_product(self, product: Product) -> np.ndarray:
        return embed_product_terms(product, self.config)

    @property
    def dimension(self) -> int:
        return self.config.dimension


class ProviderEmbedder(TextEmbedder):
    """
    Embeddings from an OpenAI-compatible endpoint.

    A failed query call degrades to the local hashing vector for that call
    only; the next call tries the provider again. Product calls raise instead
    and the cache leaves that product out.
    """

    strategy = "provider"

    def __init__(
        self,
        config: ProviderConfig = DEFAULT_PROVIDER_CONFIG,
        fallback: LocalHashEmbedder | None = None,
    ) -> None:
        self.config = config
        self.fallback = fallback or LocalHashEmbedder()
        self._client: OpenAI | None = None
        self._dimension: int | None = None

    @property
    def is_external(self) -> bool:
        return True

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.config.api_key,
                base_url=self.config.endpoint,
                timeout=self.config.timeout,
                max_retries=0,
            )
        return self._client

    def _create_embedding(self, text: str) -> np.ndarray:
        response = self._get_client().embeddings.create(
            model=self.config.embedding_model,
            input=text,
        )
        vec = np.asarray(response.data[0].embedding, dtype=np.float64)
        self._dimension = vec.shape[0]
        return vec

    def embed_query(self, text: str) -> np.ndarray:
        try:
            return self._create_embedding(text)
        except Exception:
            logger.warning("Embedding provider failed for query, using hashed embedding", exc_info=True)
            return self.fallback.embed_query(text)

    def embed_product(self, product: Product) -> np.ndarray:
        return self._create_embedding(product_text(product))


def build_embedder(
    provider_config: ProviderConfig = DEFAULT_PROVIDER_CONFIG,
    embedding_config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
) -> TextEmbedder:
    local = LocalHashEmbedder(embedding_config)
    if provider_config.is_configured:
        return ProviderEmbedder(provider_config, fallback=local)
    return local
