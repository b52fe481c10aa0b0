from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EmbeddingConfig:
    dimension: int = 128
    # Query tokens shorter than this are treated as noise words
    min_query_term_length: int = 3
    min_description_term_length: int = 4
    # Only applied when vectors come from the local hashing strategy
    min_similarity: float = 0.1


DEFAULT_EMBEDDING_CONFIG = EmbeddingConfig()
