from __future__ import annotations

import logging
import threading
import time
from typing import Sequence

from ..catalog.loader import ProductCatalog, get_catalog
from ..catalog.models import Product
from ..embeddings.config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig
from ..embeddings.encoder import TextEmbedder, build_embedder
from ..llm.config import DEFAULT_PROVIDER_CONFIG, ProviderConfig
from .cache import EmbeddingCache
from .errors import InvalidQueryError, RequestCancelled
from .models import Candidate, RecommendedProduct
from .ranking import RELEVANCE_STEP, Ranker, build_ranker, explain_match
from .search import top_k

logger = logging.getLogger(__name__)

TOP_RATED_RELEVANCE = 0.5
CANDIDATE_MULTIPLIER = 2

_engine: RecommendationEngine | None = None
_engine_lock = threading.Lock()


def _top_rated_explanation(product: Product) -> str:
    return f"Top-rated product ({product.rating:.1f} stars)"


def _check_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise RequestCancelled("recommendation request cancelled")


class RecommendationEngine:
    """
    Query -> recommendations pipeline.

    embed query -> warm cache -> similarity top-k -> rank & explain. When no
    candidate is retrieved, or any stage fails unexpectedly, the catalog's
    top-rated products are returned instead. Only an invalid query (and an
    explicit cancellation) reaches the caller as an exception.
    """

    def __init__(
        self,
        catalog: ProductCatalog,
        embedder: TextEmbedder,
        ranker: Ranker,
        cache: EmbeddingCache | None = None,
        embedding_config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
    ) -> None:
        self.catalog = catalog
        self.embedder = embedder
        self.ranker = ranker
        self.cache = cache if cache is not None else EmbeddingCache()
        self.embedding_config = embedding_config

        logger.info(
            "Recommendation engine initialised (mode=%s, embedder=%s, ranker=%s, products=%d)",
            self.mode, embedder.strategy, ranker.strategy, len(catalog),
        )

    @property
    def mode(self) -> str:
        return "ai" if self.embedder.is_external else "fallback"

    def recommend(
        self,
        query: str | None,
        count: int = 5,
        cancel: threading.Event | None = None,
    ) -> list[RecommendedProduct]:
        if query is None or not query.strip():
            raise InvalidQueryError("Query required")
        if count < 1:
            raise InvalidQueryError("count must be at least 1")

        products = self.catalog.all
        if not products:
            logger.warning("Catalog is empty, no recommendations possible")
            return []

        start_time = time.time()
        logger.info("Processing recommendation query: %s", query)
        try:
            results = self._run_pipeline(query, count, products, cancel)
        except RequestCancelled:
            raise
        except Exception:
            logger.error("Recommendation pipeline failed, using top-rated products", exc_info=True)
            results = self._top_rated(products, count)

        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        logger.info("Returned %d recommendations in %.1f ms", len(results), elapsed_ms)
        return results

    def _run_pipeline(
        self,
        query: str,
        count: int,
        products: Sequence[Product],
        cancel: threading.Event | None,
    ) -> list[RecommendedProduct]:
        _check_cancelled(cancel)
        query_vector = self.embedder.embed_query(query)

        _check_cancelled(cancel)
        self.cache.ensure_all(products, self.embedder, cancel)

        # Provider embedding spaces have their own similarity scales
        min_similarity = None if self.embedder.is_external else self.embedding_config.min_similarity
        candidates = top_k(
            query_vector, self.cache, products, count * CANDIDATE_MULTIPLIER, min_similarity,
        )
        if not candidates:
            logger.warning("No semantic matches found, using top-rated products")
            return self._top_rated(products, count)

        _check_cancelled(cancel)
        ranked = self.ranker.rank_and_explain(query, candidates, count)
        return self._top_up(query, ranked[:count], candidates, products, count)

    def _top_rated(self, products: Sequence[Product], count: int) -> list[RecommendedProduct]:
        # sorted() is stable: equal ratings keep catalog order
        best = sorted(products, key=lambda p: -p.rating)[:count]
        return [
            RecommendedProduct.from_product(
                p, explanation=_top_rated_explanation(p), relevance=TOP_RATED_RELEVANCE,
            )
            for p in best
        ]

    def _top_up(
        self,
        query: str,
        ranked: list[RecommendedProduct],
        candidates: Sequence[Candidate],
        products: Sequence[Product],
        count: int,
    ) -> list[RecommendedProduct]:
        """
        Fill a short ranking up to ``min(count, catalog size)``.

        Remaining candidates come first (similarity order), then the highest
        rated products not yet listed. Added items never outrank the item
        before them.
        """
        target = min(count, len(products))
        if len(ranked) >= target:
            return ranked

        results = list(ranked)
        chosen = {r.id for r in results}

        def _previous_relevance() -> float:
            return results[-1].relevance if results else 1.0

        for c in candidates:
            if len(results) >= target:
                return results
            if c.product.id in chosen:
                continue
            relevance = min(_previous_relevance(), max(0.0, 1.0 - RELEVANCE_STEP * len(results)))
            results.append(RecommendedProduct.from_product(
                c.product, explanation=explain_match(c.product, query), relevance=relevance,
            ))
            chosen.add(c.product.id)

        for p in sorted(products, key=lambda p: -p.rating):
            if len(results) >= target:
                break
            if p.id in chosen:
                continue
            relevance = min(_previous_relevance(), TOP_RATED_RELEVANCE)
            results.append(RecommendedProduct.from_product(
                p, explanation=_top_rated_explanation(p), relevance=relevance,
            ))
            chosen.add(p.id)

        return results


def build_engine(
    catalog: ProductCatalog,
    provider_config: ProviderConfig = DEFAULT_PROVIDER_CONFIG,
    embedding_config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
) -> RecommendationEngine:
    """Pick the embedder and ranker once, from configuration completeness."""
    if not provider_config.is_configured:
        logger.warning("LLM provider not configured, using local embeddings and ranking")
    return RecommendationEngine(
        catalog=catalog,
        embedder=build_embedder(provider_config, embedding_config),
        ranker=build_ranker(provider_config),
        embedding_config=embedding_config,
    )


def get_engine() -> RecommendationEngine:
    """Return the process-wide engine, building it on first call."""
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = build_engine(get_catalog())
    return _engine
