from __future__ import annotations

import logging
from typing import Sequence

from groq import Groq

from ..catalog.models import Product
from .config import DEFAULT_PROVIDER_CONFIG, ProviderConfig

logger = logging.getLogger(__name__)

RANKING_PREAMBLE = (
    "You are a product recommendation expert. "
    "Given a user query and a list of candidate products, select the products "
    "that best match the query, rank them from best to worst match and give a "
    "short explanation of why each one fits."
)


def build_ranking_prompt(query: str, candidates: Sequence[Product], count: int) -> str:
    lines = [RANKING_PREAMBLE, "", f"User Query: {query}", "", "Candidate Products:"]
    for p in candidates:
        lines.append(f"- ID: {p.id}")
        lines.append(f"  Name: {p.name}")
        lines.append(f"  Category: {p.category}")
        lines.append(f"  Description: {p.description}")
        lines.append(f"  Price: ${p.price:.2f}")
        lines.append(f"  Rating: {p.rating:.1f} stars")
        lines.append(f"  Tags: {', '.join(p.tags)}")
        lines.append("")

    lines.append(
        f"Select the top {count} products that best match the user's query and "
        "return them as a JSON array in this exact format:"
    )
    lines.append('[{"id": "<product id>", "explanation": "<why it matches>", "relevance": 0.95}]')
    lines.append("relevance is a number between 0 and 1. Use only IDs from the list above.")
    lines.append("Return ONLY the JSON array, no additional text.")
    return "\n".join(lines)


class GroqChatClient:
    """Single-turn chat completions against the configured endpoint."""

    def __init__(self, config: ProviderConfig = DEFAULT_PROVIDER_CONFIG) -> None:
        self.config = config
        self._client: Groq | None = None

    def _get_client(self) -> Groq:
        if self._client is None:
            self._client = Groq(
                api_key=self.config.api_key,
                base_url=self.config.endpoint or None,
                timeout=self.config.timeout,
                max_retries=0,
            )
        return self._client

    def complete(self, prompt: str) -> str:
        """Send ``prompt`` as one user message and return the raw reply text."""
        response = self._get_client().chat.completions.create(
            model=self.config.chat_model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        return response.choices[0].message.content or ""
