"""Test doubles and a small catalog with known hashed-term overlaps."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

from product_reco.catalog.loader import ProductCatalog
from product_reco.catalog.models import Product
from product_reco.embeddings.encoder import LocalHashEmbedder, TextEmbedder
from product_reco.llm.config import ProviderConfig

PUPPY_FOOD = Product(
    id="p1",
    name="Premium Puppy Food",
    category="Dog Food",
    description="Nutritious puppy formula",
    tags=["puppy", "food"],
    price=Decimal("42.99"),
    rating=4.8,
    stock=10,
)
CAT_WAND = Product(
    id="p2",
    name="Feather Wand Teaser",
    category="Cat Toys",
    description="Keeps indoor cats active",
    tags=["cat", "toy"],
    price=Decimal("7.49"),
    rating=4.4,
    stock=5,
)
AQUARIUM = Product(
    id="p3",
    name="Aquarium Starter Kit",
    category="Fish Supplies",
    description="Tank with filter and heater",
    tags=["fish", "tank"],
    price=Decimal("129.00"),
    rating=4.9,
    stock=2,
)
DOG_BED = Product(
    id="p4",
    name="Orthopedic Dog Bed",
    category="Beds",
    description="Memory foam support",
    tags=["dog", "bed"],
    price=Decimal("89.00"),
    rating=4.7,
    stock=4,
)

SAMPLE_PRODUCTS = [PUPPY_FOOD, CAT_WAND, AQUARIUM, DOG_BED]

# Shares only the "food" slot with PUPPY_FOOD and nothing with the others
PUPPY_QUERY = "food for puppies"
# Hashes into no slot used by any sample product
NO_MATCH_QUERY = "zzyzx quibble"

CONFIGURED_PROVIDER = ProviderConfig(
    endpoint="https://llm.example.test/v1",
    api_key="test-key",
    chat_model="chat-model",
    embedding_model="embed-model",
    enabled=True,
)


def sample_catalog() -> ProductCatalog:
    return ProductCatalog(SAMPLE_PRODUCTS)


def embedding_response(vector: list[float]) -> MagicMock:
    """Shape of an OpenAI embeddings.create() response."""
    item = MagicMock()
    item.embedding = vector
    response = MagicMock()
    response.data = [item]
    return response


def failing_embeddings_for(prefix: str, vector: list[float]):
    """embeddings.create side effect that fails for inputs starting with ``prefix``."""

    def _create(model, input):
        if input.startswith(prefix):
            raise ConnectionError(f"provider unavailable for {input!r}")
        return embedding_response(vector)

    return _create


class CountingEmbedder(TextEmbedder):
    """Hashing embedder that counts calls and can pose as an external provider."""

    def __init__(self, external: bool = False, fail_for: set[str] | None = None, on_product=None):
        self.inner = LocalHashEmbedder()
        self.external = external
        self.strategy = "provider" if external else "local"
        self.fail_for = fail_for or set()
        self.on_product = on_product
        self.query_calls = 0
        self.product_calls = 0

    @property
    def is_external(self) -> bool:
        return self.external

    def embed_query(self, text):
        self.query_calls += 1
        return self.inner.embed_query(text)

    def embed_product(self, product):
        self.product_calls += 1
        if self.on_product is not None:
            self.on_product(product)
        if product.id in self.fail_for:
            raise RuntimeError(f"cannot embed {product.id}")
        return self.inner.embed_product(product)


class BrokenEmbedder(CountingEmbedder):
    def embed_query(self, text):
        self.query_calls += 1
        raise RuntimeError("embedder exploded")


class FakeChatClient:
    """Stands in for GroqChatClient; returns a canned reply or raises."""

    def __init__(self, reply: str = "[]", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls = 0
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.calls += 1
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply
