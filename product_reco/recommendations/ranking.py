from __future__ import annotations

import json
import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Sequence

from ..catalog.models import Product
from ..llm.config import DEFAULT_PROVIDER_CONFIG, ProviderConfig
from ..llm.groq_client import GroqChatClient, build_ranking_prompt
from .models import Candidate, RecommendedProduct, clamp_relevance

logger = logging.getLogger(__name__)

DEFAULT_EXPLANATION = "Recommended based on your query"
DEFAULT_RELEVANCE = 0.8
RELEVANCE_STEP = 0.1


def explain_match(product: Product, query: str) -> str:
    """Templated explanation naming the category, matched tags and rating."""
    query_lower = query.lower()
    parts: list[str] = []
    if product.category:
        parts.append(f"Recommended because it's in the {product.category} category.")
    else:
        parts.append("Recommended based on similarity to your query.")

    matching_tags = [t for t in product.tags if t and t.lower() in query_lower]
    if matching_tags:
        parts.append(f"It matches your interest in {' and '.join(matching_tags)}.")

    parts.append(f"Rating: {product.rating:.1f} stars.")
    return " ".join(parts)


def fallback_ranking(query: str, candidates: Sequence[Candidate], count: int) -> list[RecommendedProduct]:
    """
    Keep the supplied (similarity) order and assign decreasing relevance.

    Relevance bottoms out at 0.0 after ten items; that tied tail is ordered by
    descending rating.
    """
    ranked = [
        RecommendedProduct.from_product(
            c.product,
            explanation=explain_match(c.product, query),
            relevance=max(0.0, 1.0 - RELEVANCE_STEP * index),
        )
        for index, c in enumerate(candidates[:count])
    ]
    head = [r for r in ranked if r.relevance > 0.0]
    tail = sorted((r for r in ranked if r.relevance <= 0.0), key=lambda r: -r.rating)
    return head + tail


def _coerce_relevance(value: Any) -> float:
    # bool is an int subclass; true/false is not a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_RELEVANCE
    try:
        number = float(value)
    except OverflowError:
        # integers too large for a float
        return DEFAULT_RELEVANCE
    if math.isnan(number):
        return DEFAULT_RELEVANCE
    return clamp_relevance(number)


def _coerce_explanation(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_EXPLANATION


def _ranked_from_items(items: Any, candidates: Sequence[Candidate]) -> list[RecommendedProduct]:
    by_id = {c.product.id: c.product for c in candidates}
    seen: set[str] = set()
    results: list[RecommendedProduct] = []
    for item in items:
        if not isinstance(item, dict) or item.get("id") is None:
            continue
        rid = str(item["id"])
        product = by_id.get(rid)
        if product is None:
            logger.debug("Dropping ranked id %s that is not a candidate", rid)
            continue
        if rid in seen:
            continue
        seen.add(rid)
        results.append(RecommendedProduct.from_product(
            product,
            explanation=_coerce_explanation(item.get("explanation")),
            relevance=_coerce_relevance(item.get("relevance")),
        ))
    return results


def parse_ranking_response(raw: str, candidates: Sequence[Candidate]) -> list[RecommendedProduct]:
    """
    Extract ``[{id, explanation, relevance}, ...]`` from provider text.

    Every field is untrusted: unknown or repeated ids are dropped, missing or
    malformed fields get defaults, and anything that does not decode to a JSON
    array yields an empty list.
    """
    start = raw.find("[")
    end = raw.rfind("]")
    if start < 0 or end <= start:
        logger.warning("Ranking response contains no JSON array")
        return []

    try:
        items = json.loads(raw[start:end + 1])
        return _ranked_from_items(items, candidates)
    except Exception:
        # includes RecursionError from deeply nested arrays
        logger.warning("Failed to parse ranking response", exc_info=True)
        return []


class Ranker(ABC):
    strategy: str

    @abstractmethod
    def rank_and_explain(
        self,
        query: str,
        candidates: Sequence[Candidate],
        count: int,
    ) -> list[RecommendedProduct]:
        """Order and explain at most ``count`` candidates. Never raises."""


class LocalRanker(Ranker):
    strategy = "local"

    def rank_and_explain(
        self,
        query: str,
        candidates: Sequence[Candidate],
        count: int,
    ) -> list[RecommendedProduct]:
        return fallback_ranking(query, candidates, count)


class LLMRanker(Ranker):
    """Ranks through the generative provider, degrading to ``fallback_ranking``."""

    strategy = "provider"

    def __init__(self, client: GroqChatClient) -> None:
        self.client = client

    def rank_and_explain(
        self,
        query: str,
        candidates: Sequence[Candidate],
        count: int,
    ) -> list[RecommendedProduct]:
        if not candidates or count <= 0:
            return []

        prompt = build_ranking_prompt(query, [c.product for c in candidates], count)
        try:
            raw = self.client.complete(prompt)
            ranked = parse_ranking_response(raw, candidates)
        except Exception:
            logger.warning("LLM ranking failed, using similarity-based ranking", exc_info=True)
            return fallback_ranking(query, candidates, count)

        if not ranked:
            logger.warning("LLM ranking returned no usable entries, using similarity-based ranking")
            return fallback_ranking(query, candidates, count)

        logger.info("LLM ranked %d recommendations", len(ranked))
        return ranked[:count]


def build_ranker(config: ProviderConfig = DEFAULT_PROVIDER_CONFIG) -> Ranker:
    if config.is_configured:
        return LLMRanker(GroqChatClient(config))
    return LocalRanker()
