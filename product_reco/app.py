from __future__ import annotations

from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse

from .catalog.models import Product
from .core.config import DEFAULT_APP_CONFIG
from .core.logging import configure_logging
from .recommendations.errors import InvalidQueryError
from .recommendations.models import RecommendedProduct, RecommendRequest
from .recommendations.retrieval import RecommendationEngine, get_engine

configure_logging(DEFAULT_APP_CONFIG.log_level)

app = FastAPI(title="Product Recommendation API", version="1.0.0")


@app.exception_handler(InvalidQueryError)
async def invalid_query_handler(request: Request, exc: InvalidQueryError) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=400)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata(engine: RecommendationEngine = Depends(get_engine)) -> dict:
    return {
        "mode": engine.mode,
        "products": len(engine.catalog),
        "categories": engine.catalog.categories(),
    }


@app.get("/api/products", response_model=list[Product])
def products(
    category: str | None = None,
    engine: RecommendationEngine = Depends(get_engine),
) -> list[Product]:
    if category:
        return engine.catalog.filter_by_category(category)
    return list(engine.catalog.all)


@app.post("/api/recommend", response_model=list[RecommendedProduct])
def recommend(
    body: RecommendRequest,
    engine: RecommendationEngine = Depends(get_engine),
) -> list[RecommendedProduct]:
    return engine.recommend(body.query, body.count)


# ── Diagnostics ──────────────────────────────────────────────────────────


@app.get("/cache/stats")
def cache_stats(engine: RecommendationEngine = Depends(get_engine)) -> dict:
    return engine.cache.stats()
