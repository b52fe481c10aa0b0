"""
Embeddings layer for semantic retrieval.

Responsibilities:
- Turn query text and catalog products into fixed-length vectors.
- Call an OpenAI-compatible embeddings endpoint when one is configured.
- Fall back to a deterministic hashed term-count vector otherwise, or when
  a single provider call fails.
"""
