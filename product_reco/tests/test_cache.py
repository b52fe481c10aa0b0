from __future__ import annotations

import threading
import time

import numpy as np
import pytest

from product_reco.recommendations.cache import EmbeddingCache
from product_reco.recommendations.errors import RequestCancelled
from product_reco.tests.fakes import (
    AQUARIUM,
    CAT_WAND,
    PUPPY_FOOD,
    SAMPLE_PRODUCTS,
    CountingEmbedder,
)


def test_ensure_all_embeds_every_product_once():
    cache = EmbeddingCache()
    embedder = CountingEmbedder()

    cache.ensure_all(SAMPLE_PRODUCTS, embedder)
    cache.ensure_all(SAMPLE_PRODUCTS, embedder)

    assert embedder.product_calls == len(SAMPLE_PRODUCTS)
    assert cache.size == len(SAMPLE_PRODUCTS)
    assert cache.warmups == 1
    assert np.array_equal(cache.get("p1"), embedder.inner.embed_product(PUPPY_FOOD))


def test_get_unknown_id_returns_none():
    cache = EmbeddingCache()
    cache.ensure_all(SAMPLE_PRODUCTS, CountingEmbedder())
    assert cache.get("nope") is None


def test_product_added_after_warmup_is_not_embedded():
    # Known limitation: the cache never extends itself once warm
    cache = EmbeddingCache()
    embedder = CountingEmbedder()

    cache.ensure_all([PUPPY_FOOD], embedder)
    cache.ensure_all([PUPPY_FOOD, AQUARIUM], embedder)

    assert cache.get("p1") is not None
    assert cache.get("p3") is None
    assert embedder.product_calls == 1


def test_failed_product_is_omitted_and_warmup_continues():
    cache = EmbeddingCache()
    cache.ensure_all(SAMPLE_PRODUCTS, CountingEmbedder(fail_for={"p2"}))

    assert cache.get("p2") is None
    assert cache.size == len(SAMPLE_PRODUCTS) - 1


def test_clear_allows_rebuild():
    cache = EmbeddingCache()
    embedder = CountingEmbedder()
    cache.ensure_all([PUPPY_FOOD], embedder)
    cache.clear()

    cache.ensure_all([PUPPY_FOOD, CAT_WAND], embedder)

    assert cache.size == 2
    assert cache.warmups == 2


def test_concurrent_first_requests_warm_up_once():
    cache = EmbeddingCache()

    def slow(product):
        time.sleep(0.01)

    embedder = CountingEmbedder(on_product=slow)
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        cache.ensure_all(SAMPLE_PRODUCTS, embedder)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.warmups == 1
    assert embedder.product_calls == len(SAMPLE_PRODUCTS)
    assert cache.size == len(SAMPLE_PRODUCTS)


def test_cancelled_warmup_commits_nothing():
    cache = EmbeddingCache()
    cancel = threading.Event()
    # Cancel while the first product is being embedded
    embedder = CountingEmbedder(on_product=lambda product: cancel.set())

    with pytest.raises(RequestCancelled):
        cache.ensure_all(SAMPLE_PRODUCTS, embedder, cancel)

    assert cache.size == 0
    assert cache.is_warm is False
    assert embedder.product_calls == 1


def test_stats_reports_strategy_and_dimension():
    cache = EmbeddingCache()
    assert cache.stats() == {"size": 0, "warm": False, "strategy": None, "dimension": None}

    cache.ensure_all(SAMPLE_PRODUCTS, CountingEmbedder())

    assert cache.stats() == {
        "size": len(SAMPLE_PRODUCTS),
        "warm": True,
        "strategy": "local",
        "dimension": 128,
    }
